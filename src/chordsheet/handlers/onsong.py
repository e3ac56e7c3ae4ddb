"""
OnSong

    Amazing Grace
    John Newton
    Key: G

    Verse 1:
    [G]Amazing [C]grace, how [G]sweet the sound
    *Repeat 2x

The first two non-blank lines are the title and artist.
"""

import re
from typing import List, Optional

from ..chord_parser import ChordParser
from ..model import AnnotationLine, AnnotationType, Chordsheet, NotationFormat, Placement, Section, SectionType
from .base import (
    LABELED_METADATA, METADATA_LABELS, BaseFormatParser, BaseFormatRenderer, SheetBuilder, match_header,
)

ANNOTATION_PATTERN = re.compile(r'^\s*\*\s*(.*?)\s*$')


class OnSongParser(BaseFormatParser):
    format = NotationFormat.ONSONG
    placement = Placement.INLINE

    def _is_plain_line(self, line: str) -> bool:
        """A line that can be a title or artist: no chords, header or markup"""
        return (
            bool(line.strip())
            and match_header(line) is None
            and ANNOTATION_PATTERN.match(line) is None
            and not ChordParser.BRACKET_PATTERN.search(line)
            and not ChordParser.is_chord_line(line)
        )

    @staticmethod
    def _labeled(line: str):
        match = LABELED_METADATA.match(line)
        if match and match.group(1).lower().strip() in METADATA_LABELS:
            return match.group(1), match.group(2)
        return None

    def read_metadata(self, lines: List[str], builder: SheetBuilder) -> int:
        i = 0
        while i < len(lines) and not lines[i].strip():
            i += 1

        # Title and artist, unless they are given as 'Title:' / 'Artist:' lines
        for slot in ('title', 'artist'):
            if i < len(lines) and self._is_plain_line(lines[i]) and self._labeled(lines[i]) is None:
                builder.set_metadata(slot, lines[i].strip())
                i += 1
            else:
                break

        while i < len(lines) and lines[i].strip():
            labeled = self._labeled(lines[i])
            if labeled is None:
                break
            builder.set_metadata(*labeled)
            i += 1
        return i

    def parse_annotation(self, line: str) -> Optional[str]:
        match = ANNOTATION_PATTERN.match(line)
        return match.group(1) if match else None


class OnSongRenderer(BaseFormatRenderer):
    format = NotationFormat.ONSONG
    parser_class = OnSongParser

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        lines = []
        if sheet.title:
            lines.append(sheet.title)
            if sheet.artist:
                lines.append(sheet.artist)
        elif sheet.artist:
            lines.append(f"Artist: {sheet.artist}")
        if sheet.original_key:
            lines.append(f"Key: {sheet.original_key}")
        for name, value in sheet.metadata.items():
            if name in METADATA_LABELS:
                lines.append(f"{name.title()}: {value}")
            else:
                warnings.append(f"Dropped metadata field '{name}'")
        return lines

    def render_section_start(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        return [f"{section.header}:"]

    def render_annotation(self, line: AnnotationLine) -> str:
        if line.annotation_type == AnnotationType.TEMPO and not line.value.lower().startswith('tempo'):
            return f"*Tempo: {line.value}"
        return f"*{line.value}"
