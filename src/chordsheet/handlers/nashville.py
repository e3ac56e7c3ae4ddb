"""
Nashville Number System

    Title: Amazing Grace
    Key: G

    Verse 1:
    1              4        1
    Amazing grace, how sweet the sound

Numbers are read against the stated key. A chart without a key is read
in C with a warning.
"""

import re
from typing import List, Optional, Tuple

from ..chord import Chord, Key, PitchClass
from ..chord_parser import ChordParser
from ..errors import InvalidKeyError
from ..key_detector import KeyDetector
from ..model import AnnotationLine, Chordsheet, NotationFormat, Placement, Section, SectionType
from ..nashville import NashvilleConverter
from .base import BaseFormatParser, BaseFormatRenderer, ParseReport, RenderReport, SheetBuilder

ANNOTATION_PATTERN = re.compile(r'^\s*\((.*)\)\s*$')
STATED_KEY = re.compile(r'^\s*key\s*:\s*(\S+)', re.IGNORECASE | re.MULTILINE)


class NashvilleParser(BaseFormatParser):
    format = NotationFormat.NASHVILLE
    placement = Placement.ABOVE

    def __init__(self, key: Optional[Key] = None, default_key: str = 'C'):
        self.key = key
        self.default_key = default_key

    def parse_document(self, text: str) -> ParseReport:
        if self.key is not None:
            return super().parse_document(text)

        warning = None
        stated = STATED_KEY.search(text or '')
        key = None
        if stated:
            try:
                key = Key.parse(stated.group(1))
            except InvalidKeyError:
                warning = f'Unrecognized key "{stated.group(1)}"; reading numbers in {self.default_key}'
        elif self._has_numbers(text):
            warning = f"No key stated; reading numbers in {self.default_key}"
        if key is None:
            key = Key.parse(self.default_key)

        report = NashvilleParser(key, self.default_key).parse_document(text)
        if warning:
            report.warnings.insert(0, warning)
        return report

    def _has_numbers(self, text: str) -> bool:
        return any(self.is_chord_line(line) for line in (text or '').splitlines())

    def read_metadata(self, lines: List[str], builder: SheetBuilder) -> int:
        return self.read_labeled_metadata(lines, builder)

    def parse_annotation(self, line: str) -> Optional[str]:
        match = ANNOTATION_PATTERN.match(line)
        return match.group(1).strip() if match else None

    def _parse_token(self, token: str, position: int = 0) -> Tuple[Optional[Chord], List[str]]:
        chord, warnings = NashvilleConverter.parse_token(token, self.key, position)
        if chord is None:
            # Letter chords are accepted in a number chart
            return ChordParser.try_parse(token, position)
        return chord, warnings

    def is_chord_line(self, line: str) -> bool:
        if not line.strip() or '[' in line:
            return False
        words = [w for w in line.split() if not ChordParser.CHORD_LINE_FILLER.match(w)]
        if not words:
            return False
        numbers = sum(1 for w in words if NashvilleConverter.is_number_token(w))
        return numbers / len(words) > 0.5

    def extract_chord_line(self, line: str) -> Tuple[List[Chord], List[str]]:
        chords = []
        warnings = []
        for match in ChordParser.TOKEN_PATTERN.finditer(line):
            token = match.group(0)
            if ChordParser.CHORD_LINE_FILLER.match(token):
                continue
            chord, token_warnings = self._parse_token(token, match.start())
            warnings.extend(token_warnings)
            if chord is not None:
                chords.append(chord)
        return chords, warnings

    def parse_text(self, line: str):
        return ChordParser.parse_bracketed_line(line, self._parse_token)


class NashvilleRenderer(BaseFormatRenderer):
    format = NotationFormat.NASHVILLE
    parser_class = NashvilleParser

    def __init__(self, profile=None, key: Optional[Key] = None, key_detector: Optional[KeyDetector] = None):
        super().__init__(profile)
        self.key = key
        self.key_detector = key_detector or KeyDetector()

    def render_document(self, sheet: Chordsheet) -> RenderReport:
        if self.key is not None:
            return super().render_document(sheet)

        warning = None
        key = None
        if sheet.original_key:
            try:
                key = Key.parse(sheet.original_key)
            except InvalidKeyError:
                warning = f'Unrecognized key "{sheet.original_key}"'
        if key is None:
            chords = sheet.chords()
            if chords:
                detected = self.key_detector.detect_from_chords(chords)
                key = detected.as_key()
                message = f"No key stated; numbering chords in detected key {key.name}"
                warning = f"{warning}; {message}" if warning else message
            else:
                key = Key(PitchClass('C'))

        report = NashvilleRenderer(self.profile, key, self.key_detector).render_document(sheet)
        if warning:
            report.warnings.insert(0, warning)
        return report

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        lines = []
        if sheet.title:
            lines.append(f"Title: {sheet.title}")
        if sheet.artist:
            lines.append(f"Artist: {sheet.artist}")
        if sheet.original_key or sheet.chords():
            lines.append(f"Key: {self.key.name}")
        for name in ('tempo', 'time', 'capo'):
            if name in sheet.metadata:
                lines.append(f"{name.title()}: {sheet.metadata[name]}")
        return lines

    def render_section_start(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        return [f"{section.header}:"]

    def render_annotation(self, line: AnnotationLine) -> str:
        return f"({line.value})"

    def chord_symbol(self, chord: Chord, sheet: Chordsheet, warnings: List[str]) -> str:
        return NashvilleConverter.format_chord(chord, self.key)
