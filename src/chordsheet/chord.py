"""
Chord value objects

PitchClass, Quality, Extension, NashvilleNumber, Key and Chord are frozen
dataclasses. They validate on construction and every operation that
changes a value (transposition, respelling) returns a new object.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from .errors import InvalidChordError, InvalidKeyError


SHARP_NAMES = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']
FLAT_NAMES = ['C', 'Db', 'D', 'Eb', 'E', 'F', 'Gb', 'G', 'Ab', 'A', 'Bb', 'B']

# Every accepted spelling and its chromatic index
PITCH_INDEX = {name: i for i, name in enumerate(SHARP_NAMES)}
PITCH_INDEX.update({name: i for i, name in enumerate(FLAT_NAMES)})

ENHARMONIC = {
    'C#': 'Db', 'Db': 'C#',
    'D#': 'Eb', 'Eb': 'D#',
    'F#': 'Gb', 'Gb': 'F#',
    'G#': 'Ab', 'Ab': 'G#',
    'A#': 'Bb', 'Bb': 'A#',
}

# Keys conventionally written with flats; every other key uses sharps
FLAT_KEYS = frozenset([
    'F', 'Bb', 'Eb', 'Ab', 'Db', 'Gb',
    'Dm', 'Gm', 'Cm', 'Fm', 'Bbm', 'Ebm', 'Abm',
])


KEY_PATTERN = re.compile(r'^([A-Ga-g])([#b]?)\s*(minor|min|major|maj|m|-)?$', re.IGNORECASE)


def normalize_accidentals(text: str) -> str:
    """Replace unicode sharp/flat signs with ASCII"""
    return text.replace('♯', '#').replace('♭', 'b')


@dataclass(frozen=True)
class PitchClass:
    """One of the 12 chromatic pitch classes, with its written spelling"""
    name: str

    def __post_init__(self):
        name = normalize_accidentals(self.name.strip())
        if name not in PITCH_INDEX:
            raise InvalidChordError(self.name, 'unknown pitch class')
        object.__setattr__(self, 'name', name)

    @property
    def index(self) -> int:
        return PITCH_INDEX[self.name]

    @property
    def is_sharp(self) -> bool:
        return self.name.endswith('#')

    @property
    def is_flat(self) -> bool:
        return len(self.name) == 2 and self.name.endswith('b')

    def enharmonic(self) -> 'PitchClass':
        """The other spelling of this pitch, or itself for natural notes"""
        return PitchClass(ENHARMONIC.get(self.name, self.name))

    def same_pitch(self, other: 'PitchClass') -> bool:
        return self.index == other.index

    def transpose(self, semitones: int, prefer_flats: bool = False) -> 'PitchClass':
        return PitchClass.from_index(self.index + semitones, prefer_flats)

    @staticmethod
    def from_index(index: int, prefer_flats: bool = False) -> 'PitchClass':
        names = FLAT_NAMES if prefer_flats else SHARP_NAMES
        return PitchClass(names[index % 12])

    def __str__(self) -> str:
        return self.name


class Quality(str, Enum):
    MAJOR = 'major'
    MINOR = 'minor'
    DIMINISHED = 'diminished'
    AUGMENTED = 'augmented'
    SUSPENDED = 'suspended'
    DOMINANT = 'dominant'

    @property
    def symbol(self) -> str:
        """Marker written right after the root"""
        return QUALITY_SYMBOLS[self]


# Suspended and dominant chords are spelled by their extensions (sus4, 7)
QUALITY_SYMBOLS = {
    Quality.MAJOR: '',
    Quality.MINOR: 'm',
    Quality.DIMINISHED: 'dim',
    Quality.AUGMENTED: 'aug',
    Quality.SUSPENDED: '',
    Quality.DOMINANT: '',
}


@dataclass(frozen=True)
class Extension:
    """
    One extension of a chord, in written order.

    kind is one of 'maj', 'number', 'add', 'sus', 'alteration', 'no',
    'group' or 'raw' (unrecognized trailing text kept verbatim).
    """
    kind: str
    value: str
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class NashvilleNumber:
    """Scale degree 1-7 with optional accidental and explicit quality"""
    degree: int
    accidental: str = ''
    quality: Optional[Quality] = None  # None: the degree's default quality

    ROMAN = ('I', 'II', 'III', 'IV', 'V', 'VI', 'VII')

    def __post_init__(self):
        if not isinstance(self.degree, int) or not 1 <= self.degree <= 7:
            raise InvalidChordError(str(self.degree), 'scale degree must be 1-7')
        accidental = normalize_accidentals(self.accidental)
        if accidental not in ('', 'b', '#'):
            raise InvalidChordError(f"{self.accidental}{self.degree}", 'bad accidental')
        object.__setattr__(self, 'accidental', accidental)

    @staticmethod
    def typical_quality(degree: int, minor_key: bool = False) -> Quality:
        """Triad quality that the degree has in a major or natural minor key"""
        if minor_key:
            if degree in (1, 4):
                return Quality.MINOR
            if degree in (2, 7):
                return Quality.DIMINISHED
            return Quality.MAJOR
        if degree in (2, 3, 6):
            return Quality.MINOR
        if degree == 7:
            return Quality.DIMINISHED
        return Quality.MAJOR

    def resolved_quality(self, minor_key: bool = False) -> Quality:
        if self.quality is not None:
            return self.quality
        return self.typical_quality(self.degree, minor_key)

    def to_roman(self, minor_key: bool = False) -> str:
        numeral = self.ROMAN[self.degree - 1]
        quality = self.resolved_quality(minor_key)
        if quality in (Quality.MINOR, Quality.DIMINISHED):
            numeral = numeral.lower()
        if quality == Quality.DIMINISHED:
            numeral += '°'
        elif quality == Quality.AUGMENTED:
            numeral += '+'
        return self.accidental + numeral

    def __str__(self) -> str:
        marker = QUALITY_SYMBOLS.get(self.quality, '') if self.quality else ''
        return f"{self.accidental}{self.degree}{marker}"


@dataclass(frozen=True)
class Key:
    """A musical key: tonic plus major/minor mode"""
    tonic: PitchClass
    minor: bool = False

    @staticmethod
    def parse(text: str) -> 'Key':
        """Parse 'G', 'F#m', 'Bb minor', 'A min' and similar"""
        if isinstance(text, Key):
            return text
        raw = (text or '').strip()
        match = KEY_PATTERN.match(normalize_accidentals(raw))
        if not match:
            raise InvalidKeyError(raw)
        letter, accidental, mode = match.groups()
        minor = mode is not None and (mode in ('m', '-') or mode.lower() in ('min', 'minor'))
        try:
            return Key(PitchClass(letter.upper() + accidental), minor)
        except InvalidChordError:
            raise InvalidKeyError(raw) from None

    @property
    def name(self) -> str:
        return self.tonic.name + ('m' if self.minor else '')

    @property
    def prefers_flats(self) -> bool:
        return self.name in FLAT_KEYS

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Chord:
    """
    A parsed chord.

    Equality compares root spelling, quality, extensions and bass.
    position, original_notation and nashville describe where and how the
    chord was written and do not take part in comparisons.
    """
    root: PitchClass
    quality: Quality = Quality.MAJOR
    extensions: Tuple[Extension, ...] = ()
    bass: Optional[PitchClass] = None
    position: int = field(default=0, compare=False)
    original_notation: str = field(default='', compare=False)
    nashville: Optional[NashvilleNumber] = field(default=None, compare=False)

    def __post_init__(self):
        if self.position < 0:
            raise ValueError(f"Chord position must be >= 0, got {self.position}")
        object.__setattr__(self, 'extensions', tuple(self.extensions))
        if not self.original_notation:
            object.__setattr__(self, 'original_notation', self.name)

    @property
    def suffix(self) -> str:
        """Everything between the root and the slash: quality marker and extensions"""
        return self.quality.symbol + ''.join(ext.text for ext in self.extensions)

    @property
    def name(self) -> str:
        text = self.root.name + self.suffix
        if self.bass is not None:
            text += '/' + self.bass.name
        return text

    @property
    def is_minor(self) -> bool:
        return self.quality == Quality.MINOR

    @property
    def has_unrecognized(self) -> bool:
        return any(ext.kind == 'raw' for ext in self.extensions)

    def is_equivalent(self, other: 'Chord') -> bool:
        """Same sounding chord, ignoring enharmonic spelling"""
        if self.root.index != other.root.index:
            return False
        if self.quality != other.quality or self.extensions != other.extensions:
            return False
        if (self.bass is None) != (other.bass is None):
            return False
        return self.bass is None or self.bass.index == other.bass.index

    def at(self, position: int) -> 'Chord':
        return replace(self, position=position)

    def __str__(self) -> str:
        return self.name
