"""
Shared machinery for format parsers and renderers

BaseFormatParser walks a document line by line and hands each line to a
small set of hooks (metadata, section headers, annotations, chord lines)
that every notation overrides. SheetBuilder collects the results into an
immutable Chordsheet. BaseFormatRenderer does the reverse, applying the
spacing and chord placement rules of the format's profile.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..chord import Chord
from ..chord_parser import ChordParser
from ..config import FormatProfile, default_config
from ..model import (
    AnnotationLine, AnnotationType, Chordsheet, EmptyLine, Line,
    NotationFormat, Placement, Section, SectionType, SECTION_KEYWORDS, TextLine,
)


# Keywords that classify an annotation, checked in this order
ANNOTATION_KEYWORDS = [
    (AnnotationType.TEMPO, re.compile(
        r'\b(?:tempo|slow(?:ly|er)?|fast(?:er)?|bpm|moderate(?:ly)?|allegro|andante|adagio|'
        r'largo|presto|rubato|half[- ]time|double[- ]time|upbeat|swing)\b', re.IGNORECASE)),
    (AnnotationType.DYNAMICS, re.compile(
        r'\b(?:loud(?:er|ly)?|soft(?:er|ly)?|quiet(?:er|ly)?|forte|fortissimo|piano|pianissimo|'
        r'mezzo|crescendo|cresc\.?|decrescendo|diminuendo|dim\.|build(?:ing)?|gently|intense|'
        r'ff|pp|mf|mp)\b', re.IGNORECASE)),
    (AnnotationType.INSTRUCTION, re.compile(
        r'\b(?:repeat|play|hold|ritard(?:ando)?|rit\.|fermata|tacet|capo|vamp|stop|pause|'
        r'skip|sing|all|only|instrumental|key change|modulate|fade(?: out)?|\d+x|x\d+)\b',
        re.IGNORECASE)),
]

METADATA_LABELS = {
    'title': 'title',
    'artist': 'artist',
    'author': 'artist',
    'by': 'artist',
    'key': 'key',
    'capo': 'capo',
    'tempo': 'tempo',
    'bpm': 'tempo',
    'time': 'time',
    'album': 'album',
    'year': 'year',
    'composer': 'composer',
    'copyright': 'copyright',
    'ccli': 'ccli',
    'subtitle': 'subtitle',
    'tuning': 'tuning',
}

LABELED_METADATA = re.compile(r'^\s*([A-Za-z ]+?)\s*:\s*(.*?)\s*$')

_KEYWORDS = '|'.join(sorted((re.escape(k) for k in SECTION_KEYWORDS), key=len, reverse=True))
HEADER_PATTERN = re.compile(
    rf'^\s*(?P<open>\[)?\s*(?P<word>{_KEYWORDS}|pre[ -]chorus)(?P<rest>(?:\s+[\w#.]+|\d+)?)\s*'
    rf'(?P<close>\])?\s*(?P<colon>:)?\s*(?P<tail>.*?)\s*$',
    re.IGNORECASE,
)


def classify_annotation(value: str) -> AnnotationType:
    """Sort an annotation into tempo, dynamics, instruction or comment by its wording"""
    for annotation_type, pattern in ANNOTATION_KEYWORDS:
        if pattern.search(value):
            return annotation_type
    return AnnotationType.COMMENT


@dataclass
class HeaderMatch:
    type: SectionType
    title: str
    style: str  # 'colon', 'bare' or 'bracket'
    tail: str = ''


def match_header(line: str) -> Optional[HeaderMatch]:
    """
    Recognize a section header line: 'Verse 1:', 'CHORUS', '[Bridge]'.

    A colon header may carry content after the colon ('Intro: G C D');
    it is returned in `tail`.
    """
    match = HEADER_PATTERN.match(line)
    if not match:
        return None
    bracketed = bool(match.group('open'))
    if bracketed != bool(match.group('close')):
        return None
    tail = match.group('tail')
    if tail and not (match.group('colon') and ChordParser.is_chord_line(tail)):
        return None

    section_type = SectionType.from_keyword(match.group('word'))
    if section_type is None:
        return None
    title = (match.group('word') + match.group('rest')).strip()
    style = 'bracket' if bracketed else ('colon' if match.group('colon') else 'bare')
    return HeaderMatch(section_type, title, style, tail)


@dataclass
class ParseReport:
    chordsheet: Chordsheet
    warnings: List[str] = field(default_factory=list)


@dataclass
class RenderReport:
    output: str
    warnings: List[str] = field(default_factory=list)


class SheetBuilder:
    """
    Accumulates sections and lines while a document is parsed.

    Blank lines are counted and only become an EmptyLine when more content
    follows in the same section, so sections never start or end with
    blank lines.
    """

    def __init__(self):
        self.title: Optional[str] = None
        self.artist: Optional[str] = None
        self.key: Optional[str] = None
        self.metadata: Dict[str, str] = {}
        self.warnings: List[str] = []
        self.sections: List[Section] = []
        self._type: Optional[SectionType] = None
        self._title: Optional[str] = None
        self._lines: List[Line] = []
        self._explicit = False
        self._blank_count = 0
        self._blank_start = 0

    @property
    def has_content(self) -> bool:
        return bool(self.sections or self._lines or self._explicit)

    def set_metadata(self, name: str, value: str):
        name = METADATA_LABELS.get(name.lower().strip(), name.lower().strip())
        value = value.strip()
        # An empty 'Title:' line holds the title slot of an untitled sheet
        if name == 'title':
            self.title = value or None
        elif name == 'artist':
            self.artist = value or None
        elif name == 'key':
            self.key = value or None
        else:
            self.metadata[name] = value

    def start_section(self, section_type: SectionType, title: Optional[str]):
        self.close_section()
        self._type = section_type
        self._title = title
        self._explicit = True

    def close_section(self):
        if self._explicit or self._lines:
            self.sections.append(Section(self._type or SectionType.UNKNOWN, self._title, tuple(self._lines)))
        self._type = None
        self._title = None
        self._lines = []
        self._explicit = False
        self._blank_count = 0

    def blank(self, line_number: int):
        if self._blank_count == 0:
            self._blank_start = line_number
        self._blank_count += 1

    def add(self, line: Line):
        if self._blank_count and self._lines:
            self._lines.append(EmptyLine(self._blank_count, self._blank_start))
        self._blank_count = 0
        self._lines.append(line)

    def warn(self, message: str, line_number: Optional[int] = None):
        if line_number is not None:
            message = f"Line {line_number}: {message}"
        self.warnings.append(message)

    def build(self) -> Chordsheet:
        self.close_section()
        return Chordsheet(
            title=self.title,
            artist=self.artist,
            original_key=self.key,
            sections=tuple(self.sections),
            metadata=dict(self.metadata),
        )


class BaseFormatParser:
    """Parses one notation into a Chordsheet"""

    format: NotationFormat = None
    placement: Placement = Placement.INLINE

    def parse(self, text: str) -> Chordsheet:
        return self.parse_document(text).chordsheet

    def parse_document(self, text: str) -> ParseReport:
        """Parse and also return the warnings collected along the way"""
        lines = (text or '').replace('\r\n', '\n').replace('\r', '\n').split('\n')
        builder = SheetBuilder()
        start = self.read_metadata(lines, builder)
        self.read_body(lines, start, builder)
        return ParseReport(builder.build(), builder.warnings)

    # Hooks

    def read_metadata(self, lines: List[str], builder: SheetBuilder) -> int:
        """Consume a header block; returns the index of the first body line"""
        return 0

    def parse_header(self, line: str) -> Optional[HeaderMatch]:
        return match_header(line)

    def parse_section_end(self, line: str) -> bool:
        return False

    def parse_annotation(self, line: str) -> Optional[str]:
        return None

    def parse_directive(self, line: str, builder: SheetBuilder) -> bool:
        """Handle format-specific lines that are neither text nor headers"""
        return False

    def is_chord_line(self, line: str) -> bool:
        return ChordParser.is_chord_line(line)

    def extract_chord_line(self, line: str) -> Tuple[List[Chord], List[str]]:
        return ChordParser.extract_chord_line(line)

    def parse_text(self, line: str) -> Tuple[str, List[Chord], List[str]]:
        """Text and inline chords of a lyric line"""
        return ChordParser.parse_bracketed_line(line)

    # Line loop

    def _is_structural(self, line: str) -> bool:
        return (
            not line.strip()
            or self.parse_header(line) is not None
            or self.parse_section_end(line)
            or self.parse_annotation(line) is not None
        )

    def read_body(self, lines: List[str], start: int, builder: SheetBuilder):
        i = start
        while i < len(lines):
            line = lines[i].rstrip()
            line_number = i + 1
            i += 1

            if not line.strip():
                builder.blank(line_number)
                continue

            header = self.parse_header(line)
            if header is not None:
                builder.start_section(header.type, header.title)
                if header.tail:
                    # 'Intro: G C D' style header with chords on the same line
                    self._add_chord_line(header.tail, None, line_number, builder)
                continue

            if self.parse_section_end(line):
                builder.close_section()
                continue

            annotation = self.parse_annotation(line)
            if annotation is not None:
                builder.add(AnnotationLine(annotation, classify_annotation(annotation), line_number))
                continue

            if self.parse_directive(line, builder):
                continue

            if self.is_chord_line(line):
                lyric = None
                if i < len(lines) and not self._is_structural(lines[i]) and not self.is_chord_line(lines[i]):
                    lyric = lines[i].rstrip()
                    i += 1
                self._add_chord_line(line, lyric, line_number, builder)
                continue

            text, chords, warnings = self.parse_text(line)
            for warning in warnings:
                builder.warn(warning, line_number)
            builder.add(TextLine(text, ChordParser.build_placements(text, chords, self.placement), line_number))

    def _add_chord_line(self, chord_line: str, lyric: Optional[str], line_number: int, builder: SheetBuilder):
        chords, warnings = self.extract_chord_line(chord_line)
        for warning in warnings:
            builder.warn(warning, line_number)
        text = (lyric or '').rstrip()
        if chords and chords[-1].position > len(text):
            text = text.ljust(chords[-1].position)
        builder.add(TextLine(text, ChordParser.build_placements(text, chords, self.placement), line_number))

    # Shared metadata readers

    @staticmethod
    def read_labeled_metadata(lines: List[str], builder: SheetBuilder, prefix: str = '') -> int:
        """
        Read a leading block of 'Label: value' lines (optionally behind a
        prefix such as '//'), stopping at the first line that is not one.
        """
        i = 0
        while i < len(lines) and not lines[i].strip():
            i += 1
        start = i
        while i < len(lines):
            line = lines[i].strip()
            if prefix:
                if not line.startswith(prefix):
                    break
                line = line[len(prefix):].strip()
            match = LABELED_METADATA.match(line)
            if not match or match.group(1).lower().strip() not in METADATA_LABELS:
                break
            builder.set_metadata(match.group(1), match.group(2))
            i += 1
        return i if i > start else 0


class BaseFormatRenderer:
    """Renders a Chordsheet into one notation"""

    format: NotationFormat = None
    # Parser of the same notation, used to check that the output reads back
    parser_class = None

    def __init__(self, profile: Optional[FormatProfile] = None):
        self.profile = profile or default_config().profile(self.format)

    def render(self, sheet: Chordsheet) -> str:
        return self.render_document(sheet).output

    def render_document(self, sheet: Chordsheet) -> RenderReport:
        """Render and also return warnings about anything that could not be expressed"""
        warnings: List[str] = []
        header = self.render_metadata(sheet, warnings)

        body: List[str] = []
        previous = None
        for section in sheet.sections:
            if previous is not None:
                adjacent = self._ends_with_annotation(previous) or self._starts_with_annotation(section)
                body.extend([''] * self.profile.boundary_gap(adjacent))
            body.extend(self.render_section(section, sheet, warnings))
            previous = section

        if not header and body and self._body_reads_as_metadata(body):
            # Without this the first lyric would come back as the title
            header = self.untitled_header()

        lines = list(header)
        if header and body:
            lines.extend([''] * self.profile.metadata_gap)
        lines.extend(body)
        return RenderReport('\n'.join(lines), warnings)

    def _body_reads_as_metadata(self, body: List[str]) -> bool:
        if self.parser_class is None:
            return False
        scratch = SheetBuilder()
        self.parser_class().read_metadata(body, scratch)
        return bool(scratch.title or scratch.artist or scratch.key or scratch.metadata)

    @staticmethod
    def _starts_with_annotation(section: Section) -> bool:
        return bool(section.lines) and isinstance(section.lines[0], AnnotationLine)

    @staticmethod
    def _ends_with_annotation(section: Section) -> bool:
        return bool(section.lines) and isinstance(section.lines[-1], AnnotationLine)

    # Hooks

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        return []

    def untitled_header(self) -> List[str]:
        """Header of a sheet with no metadata: an empty title slot"""
        return ['Title:']

    def render_section_start(self, section: Section) -> List[str]:
        return []

    def render_section_end(self, section: Section) -> List[str]:
        return []

    def render_annotation(self, line: AnnotationLine) -> str:
        raise NotImplementedError

    def chord_symbol(self, chord: Chord, sheet: Chordsheet, warnings: List[str]) -> str:
        return chord.name

    # Sections and lines

    def render_section(self, section: Section, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        out = self.render_section_start(section)
        for i, line in enumerate(section.lines):
            out.extend(self.render_line(line, sheet, warnings))
            if self._merges_with_next(line, section.lines[i + 1:i + 2]):
                warnings.append(
                    f"Chord-only line before a lyric line in {section.header or 'untitled section'} "
                    f"will read back as one line"
                )
        out.extend(self.render_section_end(section))
        return out

    def _merges_with_next(self, line: Line, following) -> bool:
        """A chord line directly over a plain lyric is read back as a single line"""
        if self.profile.chord_placement == Placement.INLINE or not following:
            return False
        after = following[0]
        return (
            isinstance(line, TextLine) and bool(line.chords) and not line.text.strip()
            and isinstance(after, TextLine) and not after.chords and bool(after.text.strip())
        )

    def render_line(self, line: Line, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        if isinstance(line, TextLine):
            if self.profile.chord_placement == Placement.INLINE:
                return [self.render_inline(line, sheet, warnings)]
            return self.render_above(line, sheet, warnings)
        if isinstance(line, EmptyLine):
            return [''] * line.count
        if isinstance(line, AnnotationLine):
            return [self.render_annotation(line)]
        raise TypeError(f"Unknown line type: {type(line).__name__}")

    def render_inline(self, line: TextLine, sheet: Chordsheet, warnings: List[str]) -> str:
        """Insert [Chord] markers right to left so earlier offsets stay valid"""
        result = line.text
        for cp in reversed(line.chords):
            pos = cp.start_index
            if pos > len(result):
                result = result + ' ' * (pos - len(result))
            symbol = self.chord_symbol(cp.chord, sheet, warnings)
            result = result[:pos] + f"[{symbol}]" + result[pos:]
        return result.rstrip()

    def render_above(self, line: TextLine, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        """A chord line column-aligned over the lyric"""
        lyric = line.text.rstrip()
        if not line.chords:
            return [lyric]

        chord_line = ''
        for cp in line.chords:
            column = cp.start_index
            if chord_line:
                # Chords that would touch are pushed right
                column = max(column, len(chord_line) + 1)
            chord_line = chord_line.ljust(column) + self.chord_symbol(cp.chord, sheet, warnings)

        if not lyric.strip():
            return [chord_line]
        return [chord_line, lyric]
