"""
Canonical chord-sheet document model

A Chordsheet owns an ordered tuple of Sections; each Section owns an
ordered tuple of Lines. Line is a closed union of TextLine, EmptyLine and
AnnotationLine. Everything is frozen: transposition and other rewrites
build new objects with dataclasses.replace.
"""

import re
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from .chord import Chord


class NotationFormat(str, Enum):
    CHORDPRO = 'chordpro'
    ONSONG = 'onsong'
    SONGBOOK = 'songbook'
    NASHVILLE = 'nashville'
    GUITAR_TABS = 'guitar_tabs'
    PLANNING_CENTER = 'planning_center'

    @classmethod
    def coerce(cls, value: Union['NotationFormat', str]) -> 'NotationFormat':
        """Accept enum members, values and loose names like 'Guitar Tabs' or 'pco'"""
        if isinstance(value, cls):
            return value
        name = re.sub(r'[\s\-]+', '_', str(value).strip().lower())
        name = FORMAT_ALIASES.get(name, name)
        return cls(name)


FORMAT_ALIASES = {
    'pro': 'chordpro',
    'cho': 'chordpro',
    'songbook_pro': 'songbook',
    'nns': 'nashville',
    'tabs': 'guitar_tabs',
    'guitar': 'guitar_tabs',
    'pco': 'planning_center',
    'planningcenter': 'planning_center',
}


class Placement(str, Enum):
    ABOVE = 'above'
    INLINE = 'inline'
    BETWEEN = 'between'


class AnnotationType(str, Enum):
    COMMENT = 'comment'
    INSTRUCTION = 'instruction'
    TEMPO = 'tempo'
    DYNAMICS = 'dynamics'


class SectionType(str, Enum):
    VERSE = 'verse'
    CHORUS = 'chorus'
    BRIDGE = 'bridge'
    PRE_CHORUS = 'pre-chorus'
    INTRO = 'intro'
    OUTRO = 'outro'
    INSTRUMENTAL = 'instrumental'
    SOLO = 'solo'
    CODA = 'coda'
    TAG = 'tag'
    NOTE = 'note'
    UNKNOWN = 'unknown'

    @property
    def label(self) -> str:
        """Default header text for an untitled section"""
        return SECTION_LABELS[self]

    @classmethod
    def from_keyword(cls, word: str) -> Optional['SectionType']:
        """Map a header keyword ('Verse', 'Refrain', 'Pre-Chorus') to a type"""
        key = re.sub(r'[\s_]+', '-', word.strip().lower())
        return SECTION_KEYWORDS.get(key)


SECTION_LABELS = {
    SectionType.VERSE: 'Verse',
    SectionType.CHORUS: 'Chorus',
    SectionType.BRIDGE: 'Bridge',
    SectionType.PRE_CHORUS: 'Pre-Chorus',
    SectionType.INTRO: 'Intro',
    SectionType.OUTRO: 'Outro',
    SectionType.INSTRUMENTAL: 'Instrumental',
    SectionType.SOLO: 'Solo',
    SectionType.CODA: 'Coda',
    SectionType.TAG: 'Tag',
    SectionType.NOTE: 'Note',
    SectionType.UNKNOWN: '',
}

# Header keywords and the section type they introduce
SECTION_KEYWORDS = {
    'verse': SectionType.VERSE,
    'chorus': SectionType.CHORUS,
    'refrain': SectionType.CHORUS,
    'bridge': SectionType.BRIDGE,
    'pre-chorus': SectionType.PRE_CHORUS,
    'prechorus': SectionType.PRE_CHORUS,
    'intro': SectionType.INTRO,
    'outro': SectionType.OUTRO,
    'ending': SectionType.OUTRO,
    'instrumental': SectionType.INSTRUMENTAL,
    'interlude': SectionType.INSTRUMENTAL,
    'break': SectionType.INSTRUMENTAL,
    'solo': SectionType.SOLO,
    'coda': SectionType.CODA,
    'tag': SectionType.TAG,
    'note': SectionType.NOTE,
    'notes': SectionType.NOTE,
}


@dataclass(frozen=True)
class ChordPlacement:
    """A chord anchored to a character range of a TextLine's text"""
    chord: Chord
    start_index: int
    end_index: int
    placement: Placement = Placement.INLINE

    def __post_init__(self):
        if self.start_index < 0 or self.end_index < self.start_index:
            raise ValueError(
                f"Bad chord range {self.start_index}..{self.end_index} for {self.chord.name}"
            )


@dataclass(frozen=True)
class TextLine:
    """Lyric text (possibly empty) with the chords placed on it"""
    text: str
    chords: Tuple[ChordPlacement, ...] = ()
    line_number: int = 0

    def __post_init__(self):
        object.__setattr__(self, 'chords', tuple(self.chords))


@dataclass(frozen=True)
class EmptyLine:
    """A run of `count` blank lines"""
    count: int = 1
    line_number: int = 0

    def __post_init__(self):
        if self.count < 1:
            raise ValueError(f"EmptyLine count must be >= 1, got {self.count}")


@dataclass(frozen=True)
class AnnotationLine:
    """A comment, instruction, tempo or dynamics marking"""
    value: str
    annotation_type: AnnotationType = AnnotationType.COMMENT
    line_number: int = 0


Line = Union[TextLine, EmptyLine, AnnotationLine]


@dataclass(frozen=True)
class Section:
    type: SectionType = SectionType.UNKNOWN
    title: Optional[str] = None
    lines: Tuple[Line, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'lines', tuple(self.lines))

    @property
    def header(self) -> str:
        """Title as written, or the type's default label"""
        return self.title or self.type.label

    def chords(self) -> List[Chord]:
        return [cp.chord for line in self.lines if isinstance(line, TextLine) for cp in line.chords]


@dataclass(frozen=True)
class Chordsheet:
    """A parsed song: metadata plus ordered sections"""
    title: Optional[str] = None
    artist: Optional[str] = None
    original_key: Optional[str] = None
    sections: Tuple[Section, ...] = ()
    metadata: Dict[str, str] = field(default_factory=dict, compare=False)
    id: str = field(default_factory=lambda: uuid.uuid4().hex, compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'sections', tuple(self.sections))

    def chords(self) -> List[Chord]:
        """Every chord in document order"""
        return [chord for section in self.sections for chord in section.chords()]

    @property
    def line_count(self) -> int:
        return sum(len(section.lines) for section in self.sections)

    @property
    def is_empty(self) -> bool:
        return not self.sections and not self.title and not self.artist

    def with_sections(self, sections) -> 'Chordsheet':
        return replace(self, sections=tuple(sections))
