"""
Error taxonomy for the conversion engine

Stages report problems as AppError values instead of raising, so callers
always receive a ConversionResult. The exception classes below are for
construction-time validation (bad chord names, bad keys) and registry
lookups.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    PARSE_ERROR = 'PARSE_ERROR'
    CONVERSION_ERROR = 'CONVERSION_ERROR'
    TRANSPOSE_ERROR = 'TRANSPOSE_ERROR'
    FORMAT_ERROR = 'FORMAT_ERROR'
    VALIDATION_ERROR = 'VALIDATION_ERROR'
    FILE_ERROR = 'FILE_ERROR'  # raised by callers doing file I/O, never by the core


@dataclass(frozen=True)
class AppError:
    """A reported problem from one stage of a conversion"""
    type: ErrorType
    message: str
    context: Dict[str, Any] = field(default_factory=dict)
    recoverable: bool = True
    code: Optional[str] = None

    @classmethod
    def parse(cls, message: str, recoverable: bool = True, **context) -> 'AppError':
        return cls(ErrorType.PARSE_ERROR, message, context, recoverable, 'PARSE_FAILED')

    @classmethod
    def conversion(cls, message: str, recoverable: bool = False, **context) -> 'AppError':
        return cls(ErrorType.CONVERSION_ERROR, message, context, recoverable, 'CONVERSION_FAILED')

    @classmethod
    def transpose(cls, message: str, recoverable: bool = False, **context) -> 'AppError':
        return cls(ErrorType.TRANSPOSE_ERROR, message, context, recoverable, 'TRANSPOSE_FAILED')

    @classmethod
    def format(cls, message: str, recoverable: bool = False, **context) -> 'AppError':
        return cls(ErrorType.FORMAT_ERROR, message, context, recoverable, 'UNSUPPORTED_FORMAT')

    @classmethod
    def validation(cls, message: str, recoverable: bool = True, **context) -> 'AppError':
        return cls(ErrorType.VALIDATION_ERROR, message, context, recoverable, 'VALIDATION_FAILED')

    @classmethod
    def file(cls, message: str, recoverable: bool = False, **context) -> 'AppError':
        return cls(ErrorType.FILE_ERROR, message, context, recoverable, 'FILE_FAILED')

    def to_dict(self) -> dict:
        return {
            'type': self.type.value,
            'message': self.message,
            'context': dict(self.context),
            'recoverable': self.recoverable,
            'code': self.code,
        }

    def __str__(self) -> str:
        return f"{self.type.value}: {self.message}"


class ChordsheetError(Exception):
    """Base class for errors raised by this package"""


class InvalidChordError(ChordsheetError, ValueError):
    """A chord, pitch class or Nashville number could not be parsed"""

    def __init__(self, token: str, reason: str = ''):
        self.token = token
        message = f'Invalid chord: "{token}"'
        if reason:
            message += f" ({reason})"
        super().__init__(message)


class InvalidKeyError(ChordsheetError, ValueError):
    """A key name could not be parsed"""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f'Invalid key: "{key}"')


class UnsupportedFormatError(ChordsheetError, KeyError):
    """No parser/renderer is registered for a notation format"""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unsupported format: {self.name}"
