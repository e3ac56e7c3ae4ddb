"""
Conversion engine

    detect (when no source format is given) -> parse -> transpose (when the
    keys differ) -> render -> assemble

Every stage reports problems as AppError values or warning strings. A
fatal stage error stops the pipeline and the engine returns
success=False; convert() never raises for bad input.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .chord import Key
from .config import EngineConfig, default_config
from .detector import FormatDetectionResult, FormatDetector
from .errors import AppError, ChordsheetError, InvalidKeyError, UnsupportedFormatError
from .key_detector import KeyDetectionResult, KeyDetector
from .model import Chordsheet, NotationFormat
from .registry import FormatRegistry
from .transposer import KeyTransposer, as_key

logger = logging.getLogger(__name__)


FormatLike = Union[NotationFormat, str]
KeyLike = Union[Key, str]


@dataclass
class ConversionResult:
    success: bool
    output: str = ''
    errors: List[AppError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            'success': self.success,
            'output': self.output,
            'errors': [e.to_dict() for e in self.errors],
            'warnings': list(self.warnings),
            'metadata': dict(self.metadata),
        }


class ConversionEngine:
    """Runs the conversion pipeline over already-loaded text"""

    def __init__(self, registry: Optional[FormatRegistry] = None,
                 detector: Optional[FormatDetector] = None,
                 key_detector: Optional[KeyDetector] = None,
                 transposer: Optional[KeyTransposer] = None,
                 config: Optional[EngineConfig] = None):
        self.config = config or default_config()
        self.registry = registry or FormatRegistry.with_defaults(self.config)
        self.detector = detector or FormatDetector(confidence_floor=self.config.confidence_floor)
        self.key_detector = key_detector or KeyDetector()
        self.transposer = transposer or KeyTransposer(self.key_detector)

    def detect_format(self, text: str) -> FormatDetectionResult:
        return self.detector.detect(text)

    def detect_key(self, text: str, fmt: Optional[FormatLike] = None) -> KeyDetectionResult:
        if fmt is None:
            fmt = self.detector.detect(text).format
        return self.key_detector.detect_key(text, fmt)

    def parse(self, text: str, fmt: FormatLike) -> Chordsheet:
        return self.registry.get(fmt).parse(text)

    def render(self, sheet: Chordsheet, fmt: FormatLike) -> str:
        return self.registry.get(fmt).render(sheet)

    def convert(self, text: str, source_format: Optional[FormatLike] = None,
                target_format: FormatLike = NotationFormat.CHORDPRO,
                source_key: Optional[KeyLike] = None,
                target_key: Optional[KeyLike] = None) -> ConversionResult:
        result = ConversionResult(success=False)

        # Target format is checked before any other work
        try:
            target_handler = self.registry.get(target_format)
        except UnsupportedFormatError as e:
            return self._fail(result, AppError.format(str(e), target_format=str(target_format)))
        result.metadata['target_format'] = target_handler.format.value

        if not (text or '').strip():
            result.success = True
            result.warnings.append('Input is empty')
            return result

        # Detect
        if source_format is None:
            detection = self.detector.detect(text)
            source_format = detection.format
            result.metadata['detected_format'] = detection.format.value
            result.metadata['format_confidence'] = detection.confidence
            logger.debug(f"Detected {detection.format.value} ({detection.confidence:.2f})")
            if detection.confidence < self.detector.confidence_floor:
                result.warnings.append(
                    f"Source format guessed as {detection.format.value} with low confidence "
                    f"({detection.confidence:.2f})"
                )
        try:
            source_handler = self.registry.get(source_format)
        except UnsupportedFormatError as e:
            return self._fail(result, AppError.format(str(e), source_format=str(source_format)))
        result.metadata['source_format'] = source_handler.format.value

        # Parse
        try:
            report = source_handler.parser.parse_document(text)
        except ChordsheetError as e:
            return self._fail(result, AppError.parse(str(e), recoverable=False))
        result.warnings.extend(report.warnings)
        sheet = report.chordsheet
        if not sheet.sections and not sheet.title and not sheet.artist and not sheet.original_key:
            return self._fail(result, AppError.parse(
                'No recognizable chord sheet structure found', recoverable=False,
                source_format=source_handler.format.value,
            ))
        result.metadata['sections'] = len(sheet.sections)
        result.metadata['chords'] = len(sheet.chords())

        # Transpose
        if target_key is not None:
            try:
                sheet = self._transpose(sheet, text, source_handler.format, source_key, target_key, result)
            except InvalidKeyError as e:
                return self._fail(result, AppError.transpose(str(e), target_key=str(target_key)))

        # Render
        try:
            rendered = target_handler.renderer.render_document(sheet)
        except ChordsheetError as e:
            return self._fail(result, AppError.conversion(str(e)))
        result.warnings.extend(rendered.warnings)

        result.output = rendered.output
        result.success = True
        return result

    def _transpose(self, sheet: Chordsheet, text: str, source_format: NotationFormat,
                   source_key: Optional[KeyLike], target_key: KeyLike,
                   result: ConversionResult) -> Chordsheet:
        target = as_key(target_key)
        if source_key is not None:
            source = as_key(source_key)
        elif sheet.original_key and self._is_key(sheet.original_key):
            source = as_key(sheet.original_key)
        else:
            if sheet.original_key:
                result.warnings.append(f'Ignoring unrecognized key "{sheet.original_key}"')
            detected = self.key_detector.detect_key(text, source_format)
            source = detected.as_key()
            result.metadata['detected_key'] = source.name
            result.metadata['key_confidence'] = detected.confidence
            result.warnings.append(f"No source key given; detected {source.name} ({detected.confidence:.2f})")

        result.metadata['source_key'] = source.name
        result.metadata['target_key'] = target.name
        if source.tonic.index == target.tonic.index:
            logger.debug(f"Source and target key are both {target.name}; not transposing")
            return sheet
        return self.transposer.transpose_sheet(sheet, target, source)

    @staticmethod
    def _is_key(name: str) -> bool:
        try:
            as_key(name)
        except InvalidKeyError:
            return False
        return True

    @staticmethod
    def _fail(result: ConversionResult, error: AppError) -> ConversionResult:
        logger.error(f"Conversion failed: {error}")
        result.success = False
        result.errors.append(error)
        return result


_default_engine: Optional[ConversionEngine] = None


def default_engine() -> ConversionEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = ConversionEngine()
    return _default_engine


def detect_format(text: str) -> FormatDetectionResult:
    return default_engine().detect_format(text)


def detect_key(text: str, fmt: Optional[FormatLike] = None) -> KeyDetectionResult:
    return default_engine().detect_key(text, fmt)


def convert(text: str, source_format: Optional[FormatLike] = None,
            target_format: FormatLike = NotationFormat.CHORDPRO,
            source_key: Optional[KeyLike] = None,
            target_key: Optional[KeyLike] = None) -> ConversionResult:
    return default_engine().convert(text, source_format, target_format, source_key, target_key)
