"""
Nashville Number System conversion

Numbers are scale degrees of a stated key. A bare number is a major chord;
minor is written '2m' or '2-', diminished '7°' or '7dim'. Bass notes are
degrees too ('1/3'). Roots outside the key's scale get an accidental.
"""

import re
from typing import List, Optional, Tuple

from .chord import Chord, Key, NashvilleNumber, PitchClass, Quality, normalize_accidentals
from .chord_parser import ChordParser
from .errors import InvalidChordError

MAJOR_SCALE = [0, 2, 4, 5, 7, 9, 11]
MINOR_SCALE = [0, 2, 3, 5, 7, 8, 10]

# Non-diatonic semitone offsets and how they are written
MAJOR_CHROMATIC = {1: ('b', 2), 3: ('b', 3), 6: ('b', 5), 8: ('b', 6), 10: ('b', 7)}
MINOR_CHROMATIC = {1: ('b', 2), 4: ('#', 3), 6: ('b', 5), 9: ('#', 6), 11: ('#', 7)}

NASHVILLE_TOKEN = re.compile(r'^([#b]?)([1-7])([^/]*)(?:/([#b]?)([1-7]))?$')


class NashvilleConverter:
    """Converts between Nashville numbers and chords in a key"""

    @staticmethod
    def scale(key: Key) -> List[int]:
        return MINOR_SCALE if key.minor else MAJOR_SCALE

    @staticmethod
    def degree_to_pitch(degree: int, accidental: str, key: Key) -> PitchClass:
        offset = NashvilleConverter.scale(key)[degree - 1]
        if accidental == 'b':
            offset -= 1
        elif accidental == '#':
            offset += 1
        prefer_flats = accidental == 'b' or (key.prefers_flats and accidental != '#')
        return key.tonic.transpose(offset, prefer_flats)

    @staticmethod
    def pitch_to_degree(pitch: PitchClass, key: Key) -> Tuple[str, int]:
        """(accidental, degree) of a pitch relative to the key's tonic"""
        offset = (pitch.index - key.tonic.index) % 12
        scale = NashvilleConverter.scale(key)
        if offset in scale:
            return '', scale.index(offset) + 1
        chromatic = MINOR_CHROMATIC if key.minor else MAJOR_CHROMATIC
        return chromatic[offset]

    @staticmethod
    def is_number_token(token: str) -> bool:
        match = NASHVILLE_TOKEN.match(normalize_accidentals(token))
        if not match:
            return False
        _, extensions, _ = ChordParser.parse_suffix(match.group(3))
        return not any(ext.kind == 'raw' for ext in extensions)

    @staticmethod
    def parse_token(token: str, key: Key, position: int = 0) -> Tuple[Optional[Chord], List[str]]:
        """
        Resolve a Nashville token ('4', 'b7', '2m7', '5/7') to a chord in `key`.

        Returns (None, [warning]) for tokens that are not numbers.
        """
        match = NASHVILLE_TOKEN.match(normalize_accidentals(token.strip()))
        if not match:
            return None, [f'Skipping invalid chord: "{token}"']

        accidental, degree, suffix, bass_accidental, bass_degree = match.groups()
        quality, extensions, warnings = ChordParser.parse_suffix(suffix)
        warnings = [f'{w} in "{token}"' for w in warnings]

        marker_given = quality not in (Quality.MAJOR, Quality.SUSPENDED, Quality.DOMINANT)
        number = NashvilleNumber(int(degree), accidental, quality if marker_given else None)
        bass = None
        if bass_degree:
            bass = NashvilleConverter.degree_to_pitch(int(bass_degree), bass_accidental, key)

        chord = Chord(
            root=NashvilleConverter.degree_to_pitch(int(degree), accidental, key),
            quality=quality,
            extensions=tuple(extensions),
            bass=bass,
            position=position,
            original_notation=token.strip(),
            nashville=number,
        )
        return chord, warnings

    @staticmethod
    def chord_to_number(chord: Chord, key: Key) -> NashvilleNumber:
        accidental, degree = NashvilleConverter.pitch_to_degree(chord.root, key)
        explicit = chord.quality if chord.quality in (
            Quality.MINOR, Quality.DIMINISHED, Quality.AUGMENTED) else None
        return NashvilleNumber(degree, accidental, explicit)

    @staticmethod
    def format_chord(chord: Chord, key: Key) -> str:
        """Write a chord as a Nashville token in `key`, e.g. Am7/G in C -> 6m7/5"""
        number = NashvilleConverter.chord_to_number(chord, key)
        text = f"{number.accidental}{number.degree}{chord.suffix}"
        if chord.bass is not None:
            bass_accidental, bass_degree = NashvilleConverter.pitch_to_degree(chord.bass, key)
            text += f"/{bass_accidental}{bass_degree}"
        return text

    @staticmethod
    def number_to_chord(number: NashvilleNumber, key: Key) -> Chord:
        quality = number.quality or Quality.MAJOR
        return Chord(
            root=NashvilleConverter.degree_to_pitch(number.degree, number.accidental, key),
            quality=quality,
            nashville=number,
        )

    @staticmethod
    def parse_number(text: str) -> NashvilleNumber:
        """Parse a bare number such as 'b7' or '2m'; raises InvalidChordError"""
        match = NASHVILLE_TOKEN.match(normalize_accidentals(text.strip()))
        if not match or match.group(4) is not None:
            raise InvalidChordError(text, 'not a Nashville number')
        quality, extensions, _ = ChordParser.parse_suffix(match.group(3))
        if extensions:
            raise InvalidChordError(text, 'extensions are not part of a scale degree')
        explicit = None if quality == Quality.MAJOR else quality
        return NashvilleNumber(int(match.group(2)), match.group(1), explicit)
