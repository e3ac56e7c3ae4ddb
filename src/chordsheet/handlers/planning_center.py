"""
Planning Center

    Title: Amazing Grace
    Artist: John Newton
    Key: G

    VERSE 1
    [G]Amazing [C]grace, how [G]sweet the sound
    <b>Softly</b>

Annotations are bold markup lines. Other inline markup in lyric lines is
stripped, and entities are decoded.
"""

import html
import re
from typing import List, Optional

from bs4 import BeautifulSoup

from ..chord_parser import ChordParser
from ..model import AnnotationLine, Chordsheet, NotationFormat, Placement, Section, SectionType, TextLine
from .base import BaseFormatParser, BaseFormatRenderer, SheetBuilder

BOLD_LINE_PATTERN = re.compile(r'^\s*<b>(.*)</b>\s*$', re.IGNORECASE)
MARKUP_PATTERN = re.compile(r'<[^>]+>|&[#\w]+;')


def strip_markup(text: str) -> str:
    """Text content of a line of HTML-ish markup"""
    if not MARKUP_PATTERN.search(text):
        return text
    return BeautifulSoup(text, 'html.parser').get_text()


class PlanningCenterParser(BaseFormatParser):
    format = NotationFormat.PLANNING_CENTER
    placement = Placement.INLINE

    def read_metadata(self, lines: List[str], builder: SheetBuilder) -> int:
        return self.read_labeled_metadata(lines, builder)

    def parse_annotation(self, line: str) -> Optional[str]:
        if not BOLD_LINE_PATTERN.match(line):
            return None
        return strip_markup(line).strip()

    def is_chord_line(self, line: str) -> bool:
        return super().is_chord_line(strip_markup(line))

    def parse_text(self, line: str):
        return ChordParser.parse_bracketed_line(strip_markup(line))


class PlanningCenterRenderer(BaseFormatRenderer):
    format = NotationFormat.PLANNING_CENTER
    parser_class = PlanningCenterParser

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        lines = []
        if sheet.title:
            lines.append(f"Title: {sheet.title}")
        if sheet.artist:
            lines.append(f"Artist: {sheet.artist}")
        if sheet.original_key:
            lines.append(f"Key: {sheet.original_key}")
        for name in ('tempo', 'time', 'capo', 'ccli', 'copyright'):
            if name in sheet.metadata:
                lines.append(f"{name.title()}: {sheet.metadata[name]}")
        return lines

    def render_section_start(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        return [section.header.upper()]

    def render_annotation(self, line: AnnotationLine) -> str:
        return f"<b>{html.escape(line.value, quote=False)}</b>"

    def render_inline(self, line: TextLine, sheet: Chordsheet, warnings: List[str]) -> str:
        return html.escape(super().render_inline(line, sheet, warnings), quote=False)
