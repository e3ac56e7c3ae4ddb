"""
Format detection

Each format has a signature: weighted structural features that are
characteristic of it (positive weight) or rule it out (negative weight).
A format's score is the sum of the weights of the features found in the
text, divided by the sum of its positive weights, clamped to 0..1.

Ties are broken by FORMAT_PRIORITY so the same text always gets the same
answer. The best guess is always returned; a score under the confidence
floor is reported through the indicators, never as "unknown".
"""

import re
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .chord_parser import ChordParser
from .config import default_config
from .handlers.base import match_header
from .handlers.guitar_tabs import TAB_STAFF_PATTERN
from .model import NotationFormat
from .nashville import NashvilleConverter

# Tie-break order, most specific syntax first
FORMAT_PRIORITY = [
    NotationFormat.CHORDPRO,
    NotationFormat.PLANNING_CENTER,
    NotationFormat.ONSONG,
    NotationFormat.NASHVILLE,
    NotationFormat.GUITAR_TABS,
    NotationFormat.SONGBOOK,
]

DIRECTIVE = re.compile(r'^\s*\{[A-Za-z_]+\s*(?::[^}]*)?\}\s*$')
METADATA_DIRECTIVE = re.compile(r'^\s*\{\s*(?:title|t|artist|subtitle|st|key|capo|tempo|album|year)\s*:', re.IGNORECASE)
SECTION_DIRECTIVE = re.compile(r'^\s*\{\s*(?:start_of_|end_of_|soc|eoc|sov|eov|sob|eob)', re.IGNORECASE)
CURLY = re.compile(r'\{[^}]*\}')
HTML_TAG = re.compile(r'</?(?:b|i|u|em|strong|br|span|div|p)\b[^>]*>', re.IGNORECASE)
STAR_COMMENT = re.compile(r'^\s*\*\S')
PAREN_LINE = re.compile(r'^\s*\(.*\)\s*$')
SLASH_COMMENT = re.compile(r'^\s*//')
KEY_LINE = re.compile(r'^\s*(?://\s*)?key\s*:', re.IGNORECASE)


class TextFeatures:
    """Line-level facts about a document, computed once per detection"""

    def __init__(self, text: str):
        self.lines = [line.rstrip() for line in (text or '').splitlines() if line.strip()]
        self.directive = any(DIRECTIVE.match(l) for l in self.lines)
        self.metadata_directive = any(METADATA_DIRECTIVE.match(l) for l in self.lines)
        self.section_directive = any(SECTION_DIRECTIVE.match(l) for l in self.lines)
        self.curly = any(CURLY.search(l) for l in self.lines)
        self.html_tag = any(HTML_TAG.search(l) for l in self.lines)
        self.star_comment = any(STAR_COMMENT.match(l) for l in self.lines)
        self.paren_line = any(PAREN_LINE.match(l) for l in self.lines)
        self.slash_comment = any(SLASH_COMMENT.match(l) for l in self.lines)
        self.key_stated = any(KEY_LINE.match(l) for l in self.lines) or any(
            re.match(r'^\s*\{\s*key\s*:', l, re.IGNORECASE) for l in self.lines)
        self.tab_staff = any(TAB_STAFF_PATTERN.match(l) for l in self.lines)

        headers = [match_header(l) for l in self.lines]
        self.colon_header = any(h is not None and h.style == 'colon' for h in headers)
        self.bare_header = any(h is not None and h.style == 'bare' for h in headers)

        self.bracket_chord = False
        self.bracket_before_lyric = False
        for line in self.lines:
            if '[' not in line or DIRECTIVE.match(line):
                continue
            text, chords, _ = ChordParser.parse_bracketed_line(line)
            if chords:
                self.bracket_chord = True
                if text.strip():
                    self.bracket_before_lyric = True

        self.letter_chord_line = any(ChordParser.is_chord_line(l) for l in self.lines)
        self.numeral_chord_line = any(self._is_numeral_line(l) for l in self.lines)

    @staticmethod
    def _is_numeral_line(line: str) -> bool:
        words = [w.strip('[]') for w in line.split() if not ChordParser.CHORD_LINE_FILLER.match(w)]
        words = [w for w in words if w]
        if not words:
            return False
        numbers = sum(1 for w in words if NashvilleConverter.is_number_token(w))
        return numbers / len(words) > 0.5


@dataclass(frozen=True)
class Indicator:
    name: str
    weight: float
    test: Callable[[TextFeatures], bool]


SIGNATURES: Dict[NotationFormat, List[Indicator]] = {
    NotationFormat.CHORDPRO: [
        Indicator('{directive: value} lines', 3, lambda f: f.directive),
        Indicator('{title:}/{artist:}/{key:} metadata directives', 2, lambda f: f.metadata_directive),
        Indicator('{start_of_...}/{end_of_...} sections', 2, lambda f: f.section_directive),
        Indicator('[Chord] inline chords', 1, lambda f: f.bracket_chord),
    ],
    NotationFormat.ONSONG: [
        Indicator('[Chord] inline with lyrics', 3, lambda f: f.bracket_before_lyric),
        Indicator('*comment lines', 2, lambda f: f.star_comment),
        Indicator('Name: section headers', 2, lambda f: f.colon_header),
        Indicator('curly-brace directives', -3, lambda f: f.curly),
        Indicator('HTML markup', -2, lambda f: f.html_tag),
    ],
    NotationFormat.PLANNING_CENTER: [
        Indicator('HTML-style markup', 3, lambda f: f.html_tag),
        Indicator('[Chord] inline chords', 2, lambda f: f.bracket_chord),
        Indicator('bare section headers', 2, lambda f: f.bare_header),
        Indicator('curly-brace directives', -3, lambda f: f.curly),
    ],
    NotationFormat.NASHVILLE: [
        Indicator('numeral chord lines', 4, lambda f: f.numeral_chord_line),
        Indicator('stated key', 1, lambda f: f.key_stated),
        Indicator('letter-name chord lines', -2, lambda f: f.letter_chord_line),
    ],
    NotationFormat.SONGBOOK: [
        Indicator('chord line above lyrics', 3, lambda f: f.letter_chord_line),
        Indicator('(instruction) lines', 3, lambda f: f.paren_line),
        Indicator('bare section headers', 1, lambda f: f.bare_header),
        Indicator('[Chord] inline chords', -3, lambda f: f.bracket_chord),
        Indicator('Name: section headers', -1, lambda f: f.colon_header),
    ],
    NotationFormat.GUITAR_TABS: [
        Indicator('chord line above lyrics', 2, lambda f: f.letter_chord_line),
        Indicator('Name: section headers', 2, lambda f: f.colon_header),
        Indicator('tab staff lines', 3, lambda f: f.tab_staff),
        Indicator('// comment lines', 2, lambda f: f.slash_comment),
        Indicator('[Chord] inline chords', -3, lambda f: f.bracket_chord),
    ],
}


@dataclass
class FormatDetectionResult:
    format: NotationFormat
    confidence: float
    indicators: List[str] = field(default_factory=list)
    scores: Dict[NotationFormat, float] = field(default_factory=dict)


class FormatDetector:
    """Scores text against every format signature"""

    def __init__(self, signatures: Optional[Dict[NotationFormat, List[Indicator]]] = None,
                 confidence_floor: Optional[float] = None):
        self.signatures = signatures or SIGNATURES
        if confidence_floor is None:
            confidence_floor = default_config().confidence_floor
        self.confidence_floor = confidence_floor

    def score(self, fmt: NotationFormat, features: TextFeatures) -> Tuple[float, List[str]]:
        """Normalized score of one format plus the names of its matched positive indicators"""
        indicators = self.signatures[fmt]
        possible = sum(i.weight for i in indicators if i.weight > 0)
        matched = [i for i in indicators if i.test(features)]
        total = sum(i.weight for i in matched)
        score = max(0.0, total) / possible if possible else 0.0
        return round(min(score, 1.0), 4), [i.name for i in matched if i.weight > 0]

    def detect_all(self, text: str) -> List[FormatDetectionResult]:
        """Every format with its score, best first; ties in FORMAT_PRIORITY order"""
        features = TextFeatures(text)
        results = []
        order = [f for f in FORMAT_PRIORITY if f in self.signatures]
        order += [f for f in self.signatures if f not in order]
        for fmt in order:
            confidence, matched = self.score(fmt, features)
            results.append(FormatDetectionResult(fmt, confidence, matched))
        # sorted() is stable, so equal scores keep priority order
        return sorted(results, key=lambda r: -r.confidence)

    def detect(self, text: str) -> FormatDetectionResult:
        ranked = self.detect_all(text)
        best = ranked[0]
        indicators = list(best.indicators)
        if best.confidence < self.confidence_floor:
            indicators.append(
                f"low confidence: best score {best.confidence:.2f} is below {self.confidence_floor:.2f}"
            )
        return FormatDetectionResult(
            best.format, best.confidence, indicators,
            {r.format: r.confidence for r in ranked},
        )
