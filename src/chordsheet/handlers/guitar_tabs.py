"""
Guitar tabs

    // Amazing Grace
    // Artist: John Newton
    // Key: G

    Verse 1:
    G              C        G
    Amazing grace, how sweet the sound
    // let ring

    Solo:
    e|-----0-----|
    B|---1---1---|

Headers end with a colon, chords are bare names over the lyric, and tab
staff lines are kept as plain text.
"""

import re
from typing import List, Optional

from ..model import AnnotationLine, Chordsheet, NotationFormat, Placement, Section, SectionType
from .base import LABELED_METADATA, METADATA_LABELS, BaseFormatParser, BaseFormatRenderer, SheetBuilder

COMMENT_PATTERN = re.compile(r'^\s*//\s?(.*?)\s*$')
TAB_STAFF_PATTERN = re.compile(r'^\s*[A-Ga-g][#b]?\s*\|[-0-9|hpbrsx/\\~()\s.*]*$')


class GuitarTabsParser(BaseFormatParser):
    format = NotationFormat.GUITAR_TABS
    placement = Placement.ABOVE

    def read_metadata(self, lines: List[str], builder: SheetBuilder) -> int:
        i = 0
        while i < len(lines) and not lines[i].strip():
            i += 1
        start = i
        while i < len(lines):
            comment = COMMENT_PATTERN.match(lines[i])
            if not comment:
                break
            if self._labeled_comment(lines[i]):
                labeled = LABELED_METADATA.match(comment.group(1))
                builder.set_metadata(labeled.group(1), labeled.group(2))
            elif i == start and self._ends_title(lines[i + 1:i + 2]):
                builder.set_metadata('title', comment.group(1))
            else:
                break
            i += 1
        return i if i > start else 0

    @staticmethod
    def _labeled_comment(line: str) -> bool:
        comment = COMMENT_PATTERN.match(line)
        labeled = LABELED_METADATA.match(comment.group(1)) if comment else None
        return bool(labeled) and labeled.group(1).lower().strip() in METADATA_LABELS

    def _ends_title(self, following: List[str]) -> bool:
        """A '// text' line is the title only when metadata or a blank line follows"""
        return not following or not following[0].strip() or self._labeled_comment(following[0])

    def parse_annotation(self, line: str) -> Optional[str]:
        match = COMMENT_PATTERN.match(line)
        return match.group(1) if match else None

    def _is_structural(self, line: str) -> bool:
        # A staff line under a chord line is not its lyric
        return super()._is_structural(line) or bool(TAB_STAFF_PATTERN.match(line))

    def is_chord_line(self, line: str) -> bool:
        return not TAB_STAFF_PATTERN.match(line) and super().is_chord_line(line)

    def parse_text(self, line: str):
        # Brackets are literal text in tabs
        return line, [], []


class GuitarTabsRenderer(BaseFormatRenderer):
    format = NotationFormat.GUITAR_TABS
    parser_class = GuitarTabsParser

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        lines = []
        if sheet.title:
            lines.append(f"// {sheet.title}")
        if sheet.artist:
            lines.append(f"// Artist: {sheet.artist}")
        if sheet.original_key:
            lines.append(f"// Key: {sheet.original_key}")
        for name in ('tempo', 'capo', 'tuning'):
            if name in sheet.metadata:
                lines.append(f"// {name.title()}: {sheet.metadata[name]}")
        return lines

    def untitled_header(self) -> List[str]:
        return ['// Title:']

    def render_section_start(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        return [f"{section.header}:"]

    def render_annotation(self, line: AnnotationLine) -> str:
        return f"// {line.value}"
