"""
Chord parsing

Turns chord tokens ("F#m7b5", "C/G", "Asus4add9") into Chord values and
finds chords in lines, either as inline brackets ("[G]Amazing [C]grace")
or as a chord line written above the lyric it belongs to.

Bad tokens never abort a line: they are skipped (or kept as a raw
extension) and a warning string is returned alongside the result.
"""

import re
from typing import List, Optional, Tuple

from .chord import PITCH_INDEX, Chord, Extension, PitchClass, Quality, normalize_accidentals
from .errors import InvalidChordError
from .model import ChordPlacement, Placement


class ChordParser:
    """Parses chord tokens and chord-bearing lines"""

    ROOT_PATTERN = re.compile(r'^([A-G][#b]?)')

    # Leading quality marker of a suffix; 'maj' is an extension, not a quality
    QUALITY_PATTERNS = [
        (re.compile(r'^(?:min|m(?!aj)|-)'), Quality.MINOR),
        (re.compile(r'^(?:dim|°)'), Quality.DIMINISHED),
        (re.compile(r'^(?:aug|\+)'), Quality.AUGMENTED),
    ]

    # Tried in order at each position of the suffix
    EXTENSION_PATTERNS = [
        ('maj', re.compile(r'(?:maj|Maj|M|Δ)(\d*)')),
        ('add', re.compile(r'add(\d+)')),
        ('sus', re.compile(r'sus(\d*)')),
        ('no', re.compile(r'no(\d+)')),
        ('alteration', re.compile(r'([#b+\-]\d+)')),
        ('number', re.compile(r'(\d+(?:/\d+)?)')),
        ('group', re.compile(r'\(([^()]*)\)')),
    ]

    BRACKET_PATTERN = re.compile(r'\[([^\[\]]*)\]')
    TOKEN_PATTERN = re.compile(r'\S+')

    # Tokens that can appear on a chord line without being chords
    CHORD_LINE_FILLER = re.compile(r'^(?:\|+|:?\|\|?:?|/+|-+|\.+|N\.?C\.?|x\d+|\d+x|\(x?\d+x?\))$', re.IGNORECASE)

    @staticmethod
    def split_bass(token: str) -> Tuple[str, Optional[str]]:
        """Split 'C/G' into ('C', 'G'); '6/9' style suffixes are left alone"""
        head, sep, tail = token.rpartition('/')
        if sep and tail in PITCH_INDEX:
            return head, tail
        return token, None

    @staticmethod
    def parse_suffix(suffix: str) -> Tuple[Quality, List[Extension], List[str]]:
        """
        Parse the text after the root into a quality and ordered extensions.

        Unrecognized trailing text becomes a single 'raw' extension and a
        warning so it survives rendering.
        """
        warnings = []
        quality = Quality.MAJOR
        rest = suffix

        for pattern, candidate in ChordParser.QUALITY_PATTERNS:
            match = pattern.match(rest)
            if match:
                quality = candidate
                rest = rest[match.end():]
                break

        extensions = []
        while rest:
            for kind, pattern in ChordParser.EXTENSION_PATTERNS:
                match = pattern.match(rest)
                if match and match.end() > 0:
                    extensions.append(Extension(kind, match.group(1), match.group(0)))
                    rest = rest[match.end():]
                    break
            else:
                extensions.append(Extension('raw', rest, rest))
                warnings.append(f'Unrecognized chord suffix "{rest}"')
                rest = ''

        if quality == Quality.MAJOR and extensions:
            if any(ext.kind == 'sus' for ext in extensions):
                quality = Quality.SUSPENDED
            elif extensions[0].kind == 'number' and extensions[0].value in ('7', '9', '11', '13'):
                quality = Quality.DOMINANT

        return quality, extensions, warnings

    @staticmethod
    def try_parse(token: str, position: int = 0) -> Tuple[Optional[Chord], List[str]]:
        """
        Leniently parse one chord token.

        Returns (None, [warning]) when the token has no valid root.
        """
        original = token
        token = normalize_accidentals(token.strip())
        if not token:
            return None, ['Skipping empty chord']

        body, bass_name = ChordParser.split_bass(token)
        match = ChordParser.ROOT_PATTERN.match(body)
        if not match or match.group(1) not in PITCH_INDEX:
            return None, [f'Skipping invalid chord: "{original}"']

        quality, extensions, warnings = ChordParser.parse_suffix(body[match.end():])
        warnings = [f'{w} in "{original}"' for w in warnings]

        chord = Chord(
            root=PitchClass(match.group(1)),
            quality=quality,
            extensions=tuple(extensions),
            bass=PitchClass(bass_name) if bass_name else None,
            position=position,
            original_notation=original.strip(),
        )
        return chord, warnings

    @staticmethod
    def parse_chord(token: str, position: int = 0) -> Chord:
        """Strictly parse one chord token, raising InvalidChordError on anything unrecognized"""
        chord, warnings = ChordParser.try_parse(token, position)
        if chord is None or chord.has_unrecognized:
            raise InvalidChordError(token, warnings[0] if warnings else '')
        return chord

    @staticmethod
    def is_chord(token: str) -> bool:
        chord, _ = ChordParser.try_parse(token)
        return chord is not None and not chord.has_unrecognized

    @staticmethod
    def parse(line: str) -> List[Chord]:
        """All chords found in a line, bracketed or bare, in order"""
        if ChordParser.BRACKET_PATTERN.search(line):
            _, chords, _ = ChordParser.parse_bracketed_line(line)
            return chords
        if ChordParser.is_chord_line(line):
            chords, _ = ChordParser.extract_chord_line(line)
            return chords
        return []

    @staticmethod
    def parse_bracketed_line(line: str, parse_token=None) -> Tuple[str, List[Chord], List[str]]:
        """
        Strip [Chord] tokens out of a line.

        `parse_token(token, position)` resolves each bracketed token and
        defaults to try_parse.

        Returns the lyric text, the chords with positions relative to that
        text, and warnings for tokens that were skipped.
        """
        chords = []
        warnings = []
        text_parts = []
        text_length = 0
        cursor = 0

        for match in ChordParser.BRACKET_PATTERN.finditer(line):
            segment = line[cursor:match.start()]
            text_parts.append(segment)
            text_length += len(segment)
            cursor = match.end()

            chord, token_warnings = (parse_token or ChordParser.try_parse)(match.group(1), text_length)
            warnings.extend(token_warnings)
            if chord is not None:
                chords.append(chord)

        text_parts.append(line[cursor:])
        return ''.join(text_parts), chords, warnings

    @staticmethod
    def is_chord_line(line: str) -> bool:
        """Determine if a line is primarily chords"""
        if not line.strip() or '[' in line:
            return False

        words = [w for w in line.split() if not ChordParser.CHORD_LINE_FILLER.match(w)]
        if not words:
            return False

        # If most words are chords, it's a chord line
        chord_count = sum(1 for w in words if ChordParser.is_chord(w))
        return chord_count / len(words) > 0.5

    @staticmethod
    def extract_chord_line(line: str) -> Tuple[List[Chord], List[str]]:
        """Chords of a chord line, positioned at the column where each starts"""
        chords = []
        warnings = []
        for match in ChordParser.TOKEN_PATTERN.finditer(line):
            token = match.group(0)
            if ChordParser.CHORD_LINE_FILLER.match(token):
                continue
            chord, token_warnings = ChordParser.try_parse(token, match.start())
            warnings.extend(token_warnings)
            if chord is not None:
                chords.append(chord)
        return chords, warnings

    @staticmethod
    def build_placements(text: str, chords: List[Chord],
                         placement: Placement = Placement.INLINE) -> Tuple[ChordPlacement, ...]:
        """Anchor each chord from its position up to the next chord's position"""
        ordered = sorted(chords, key=lambda c: c.position)
        placements = []
        for i, chord in enumerate(ordered):
            start = min(chord.position, len(text))
            end = ordered[i + 1].position if i + 1 < len(ordered) else len(text)
            placements.append(ChordPlacement(chord, start, max(start, min(end, len(text))), placement))
        return tuple(placements)
