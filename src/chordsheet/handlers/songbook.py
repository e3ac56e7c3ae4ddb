"""
Songbook Pro

    Amazing Grace
    by John Newton
    Key: G

    Verse 1
    G              C        G
    Amazing grace, how sweet the sound
    (Repeat chorus)

Chords sit on their own line, column-aligned over the lyric.
"""

import re
from typing import List, Optional

from ..chord_parser import ChordParser
from ..model import AnnotationLine, Chordsheet, NotationFormat, Placement, Section, SectionType
from .base import BaseFormatParser, BaseFormatRenderer, SheetBuilder, match_header

ANNOTATION_PATTERN = re.compile(r'^\s*\((.*)\)\s*$')
ARTIST_PATTERN = re.compile(r'^\s*by\s+(.+?)\s*$', re.IGNORECASE)


class SongbookParser(BaseFormatParser):
    format = NotationFormat.SONGBOOK
    placement = Placement.ABOVE

    def read_metadata(self, lines: List[str], builder: SheetBuilder) -> int:
        i = 0
        while i < len(lines) and not lines[i].strip():
            i += 1
        if i >= len(lines):
            return 0

        first = lines[i]
        if (match_header(first) is None and ANNOTATION_PATTERN.match(first) is None
                and not ChordParser.is_chord_line(first)
                and self.read_labeled_metadata(lines[i:i + 1], SheetBuilder()) == 0):
            builder.set_metadata('title', first.strip())
            i += 1
            if i < len(lines):
                artist = ARTIST_PATTERN.match(lines[i])
                if artist:
                    builder.set_metadata('artist', artist.group(1))
                    i += 1

        consumed = self.read_labeled_metadata(lines[i:], builder)
        return i + consumed

    def parse_annotation(self, line: str) -> Optional[str]:
        match = ANNOTATION_PATTERN.match(line)
        return match.group(1).strip() if match else None


class SongbookRenderer(BaseFormatRenderer):
    format = NotationFormat.SONGBOOK
    parser_class = SongbookParser

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        lines = []
        if sheet.title:
            lines.append(sheet.title)
        if sheet.artist:
            if sheet.title:
                lines.append(f"by {sheet.artist}")
            else:
                lines.append(f"Artist: {sheet.artist}")
        if sheet.original_key:
            lines.append(f"Key: {sheet.original_key}")
        for name in ('capo', 'tempo', 'time'):
            if name in sheet.metadata:
                lines.append(f"{name.title()}: {sheet.metadata[name]}")
        return lines

    def render_section_start(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        return [section.header]

    def render_annotation(self, line: AnnotationLine) -> str:
        return f"({line.value})"
