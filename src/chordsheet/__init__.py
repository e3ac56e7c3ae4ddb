"""
Chordsheet - Convert and transpose chord sheets between notation formats

Modules:
- chord, chord_parser: chord model and chord-symbol parsing
- model: the format-neutral document model
- handlers: one parser/renderer pair per notation format
- detector, key_detector: format and key detection
- transposer, nashville: transposition and Nashville number conversion
- engine: the detect -> parse -> transpose -> render pipeline
- validator, batch: quality checks and directory conversion
"""

from .chord import Chord, Extension, Key, NashvilleNumber, PitchClass, Quality
from .chord_parser import ChordParser
from .config import EngineConfig, FormatProfile, default_config, load_config
from .detector import FormatDetectionResult, FormatDetector
from .engine import ConversionEngine, ConversionResult, convert, detect_format, detect_key
from .errors import (
    AppError, ChordsheetError, ErrorType, InvalidChordError, InvalidKeyError, UnsupportedFormatError,
)
from .key_detector import KeyDetectionResult, KeyDetector
from .model import (
    AnnotationLine, AnnotationType, ChordPlacement, Chordsheet, EmptyLine, NotationFormat,
    Placement, Section, SectionType, TextLine,
)
from .nashville import NashvilleConverter
from .registry import FormatHandler, FormatRegistry
from .transposer import KeyTransposer
from .validator import (
    BatchValidator, ComparisonValidator, StructuralValidator, ValidationIssue, ValidationResult,
)
from .batch import BatchConverter

__version__ = "0.1.0"

__all__ = [
    # Chords
    'Chord',
    'Extension',
    'Key',
    'NashvilleNumber',
    'PitchClass',
    'Quality',
    'ChordParser',
    # Document model
    'AnnotationLine',
    'AnnotationType',
    'ChordPlacement',
    'Chordsheet',
    'EmptyLine',
    'NotationFormat',
    'Placement',
    'Section',
    'SectionType',
    'TextLine',
    # Configuration
    'EngineConfig',
    'FormatProfile',
    'default_config',
    'load_config',
    # Errors
    'AppError',
    'ChordsheetError',
    'ErrorType',
    'InvalidChordError',
    'InvalidKeyError',
    'UnsupportedFormatError',
    # Detection
    'FormatDetectionResult',
    'FormatDetector',
    'KeyDetectionResult',
    'KeyDetector',
    # Conversion
    'ConversionEngine',
    'ConversionResult',
    'FormatHandler',
    'FormatRegistry',
    'KeyTransposer',
    'NashvilleConverter',
    'convert',
    'detect_format',
    'detect_key',
    # Validation
    'ValidationIssue',
    'ValidationResult',
    'StructuralValidator',
    'ComparisonValidator',
    'BatchValidator',
    # Batch processing
    'BatchConverter',
]
