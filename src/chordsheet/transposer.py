"""
Key transposition

Moves chords, and whole chord sheets, by a semitone interval or into a
target key. Root and bass move by the same interval; quality and
extensions are copied unchanged. Enharmonic spelling follows the target
key's conventional spelling (FLAT_KEYS), or the chord's own spelling
when no key is given.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from .chord import Chord, Key, PitchClass, Quality
from .chord_parser import ChordParser
from .errors import InvalidKeyError
from .model import AnnotationLine, Chordsheet, EmptyLine, TextLine
from .nashville import MAJOR_SCALE, MINOR_SCALE

logger = logging.getLogger(__name__)


KeyLike = Union[Key, PitchClass, str]

# Order in which sharps and flats are added to a key signature
SHARP_ORDER = ['F#', 'C#', 'G#', 'D#', 'A#', 'E#', 'B#']
FLAT_ORDER = ['Bb', 'Eb', 'Ab', 'Db', 'Gb', 'Cb', 'Fb']

# Diatonic triads of the major and natural minor scale, degree by degree
MAJOR_TRIADS = [Quality.MAJOR, Quality.MINOR, Quality.MINOR, Quality.MAJOR,
                Quality.MAJOR, Quality.MINOR, Quality.DIMINISHED]
MINOR_TRIADS = [Quality.MINOR, Quality.DIMINISHED, Quality.MAJOR, Quality.MINOR,
                Quality.MINOR, Quality.MAJOR, Quality.MAJOR]
MAJOR_SEVENTHS = ['maj7', 'm7', 'm7', 'maj7', '7', 'm7', 'm7b5']
MINOR_SEVENTHS = ['m7', 'm7b5', '7', 'm7', 'm7', '7', '7']


@dataclass(frozen=True)
class KeySignature:
    sharps: int = 0
    flats: int = 0
    accidentals: List[str] = field(default_factory=list)


def as_key(value: KeyLike) -> Key:
    """Coerce a Key, PitchClass or key name into a Key"""
    if isinstance(value, Key):
        return value
    if isinstance(value, PitchClass):
        return Key(value)
    if not isinstance(value, str):
        raise InvalidKeyError(repr(value))
    return Key.parse(value)


class KeyTransposer:
    """Transposes chords and chord sheets"""

    def __init__(self, key_detector=None):
        # Used only when a sheet without a stated key is transposed to a target key
        self._key_detector = key_detector

    @staticmethod
    def _spell(note: PitchClass, semitones: int, target: Optional[Key]) -> PitchClass:
        prefer_flats = target.prefers_flats if target is not None else note.is_flat
        return note.transpose(semitones, prefer_flats)

    def transpose(self, chord: Chord, semitones: int, target_key: Optional[KeyLike] = None) -> Chord:
        """
        Transpose one chord.

        original_notation is regenerated from the new spelling; position
        and Nashville degree are kept.

        Without a target key each step keeps the spelling the chord has at
        that point, so composing steps agrees with a single step only up to
        enharmonic spelling: Db +1 +1 is D#, Db +2 is Eb. Use
        Chord.is_equivalent to compare such results.
        """
        target = as_key(target_key) if target_key is not None else None
        root = self._spell(chord.root, semitones, target)
        bass = self._spell(chord.bass, semitones, target) if chord.bass is not None else None
        # An empty original_notation is regenerated from the new spelling
        return replace(chord, root=root, bass=bass, original_notation='')

    def transpose_to_key(self, chord: Chord, from_key: KeyLike, to_key: KeyLike) -> Chord:
        source, target = as_key(from_key), as_key(to_key)
        return self.transpose(chord, (target.tonic.index - source.tonic.index) % 12, target)

    @staticmethod
    def get_key_distance(from_key: KeyLike, to_key: KeyLike) -> int:
        """
        Shortest signed distance in semitones from one key to another.

        Always in -5..+6: upward when the upward path is six or fewer
        semitones, downward otherwise. A tritone is +6.
        """
        source, target = as_key(from_key), as_key(to_key)
        distance = (target.tonic.index - source.tonic.index) % 12
        if distance > 6:
            distance -= 12
        return distance

    @staticmethod
    def relative_key(key: KeyLike) -> Key:
        """Relative minor of a major key, or relative major of a minor key"""
        key = as_key(key)
        if key.minor:
            return Key(key.tonic.transpose(3, key.prefers_flats), minor=False)
        return Key(key.tonic.transpose(9, key.prefers_flats), minor=True)

    @staticmethod
    def parallel_key(key: KeyLike) -> Key:
        key = as_key(key)
        return Key(key.tonic, minor=not key.minor)

    @staticmethod
    def are_keys_enharmonic(first: KeyLike, second: KeyLike) -> bool:
        """Same tonic pitch and same mode, however spelled ('C#' and 'Db')"""
        a, b = as_key(first), as_key(second)
        return a.tonic.index == b.tonic.index and a.minor == b.minor

    @staticmethod
    def key_signature(key: KeyLike) -> KeySignature:
        """
        Sharps or flats of a key, in signature order.

        Minor keys share the signature of their relative major. A key spelled
        past seven sharps (A#, D#, G#) gets the signature of its flat spelling.
        """
        key = as_key(key)
        major = KeyTransposer.relative_key(key) if key.minor else key
        sharps = (major.tonic.index * 7) % 12
        if major.prefers_flats or sharps > 7:
            flats = (12 - sharps) % 12
            return KeySignature(flats=flats, accidentals=FLAT_ORDER[:flats])
        return KeySignature(sharps=sharps, accidentals=SHARP_ORDER[:sharps])

    @staticmethod
    def scale_degrees(key: KeyLike) -> List[PitchClass]:
        """The seven notes of the major or natural minor scale, spelled for the key"""
        key = as_key(key)
        intervals = MINOR_SCALE if key.minor else MAJOR_SCALE
        return [key.tonic.transpose(i, key.prefers_flats) for i in intervals]

    @staticmethod
    def chords_in_key(key: KeyLike, include_sevenths: bool = False) -> List[Chord]:
        """
        Diatonic triads of a key, degree by degree.

        With include_sevenths, each triad is followed by its diatonic
        seventh chord (Cmaj7, Dm7, ... Bm7b5 in C).
        """
        key = as_key(key)
        triads = MINOR_TRIADS if key.minor else MAJOR_TRIADS
        sevenths = MINOR_SEVENTHS if key.minor else MAJOR_SEVENTHS
        chords = []
        for root, quality, seventh in zip(KeyTransposer.scale_degrees(key), triads, sevenths):
            chords.append(Chord(root, quality))
            if include_sevenths:
                chords.append(ChordParser.parse_chord(root.name + seventh))
        return chords

    def transpose_sheet(self, sheet: Chordsheet, target_key: KeyLike,
                        source_key: Optional[KeyLike] = None) -> Chordsheet:
        """
        Return a copy of `sheet` moved into `target_key`.

        The source key comes from the argument, then the sheet's
        original_key, then key detection over the sheet's chords.
        """
        target = as_key(target_key)
        if source_key is not None:
            source = as_key(source_key)
        elif sheet.original_key:
            source = as_key(sheet.original_key)
        else:
            source = self._detect_source_key(sheet)

        semitones = (target.tonic.index - source.tonic.index) % 12
        logger.debug(f"Transposing {sheet.title or sheet.id} from {source} to {target} ({semitones:+d})")
        return self.transpose_sheet_by(sheet, semitones, target)

    def transpose_sheet_by(self, sheet: Chordsheet, semitones: int,
                           target_key: Optional[KeyLike] = None) -> Chordsheet:
        """
        Return a copy of `sheet` with every chord moved by `semitones`

        A sheet that states a key gets the new key; a sheet without one
        stays without one.
        """
        target = as_key(target_key) if target_key is not None else None
        sections = tuple(
            replace(section, lines=tuple(self._transpose_line(line, semitones, target) for line in section.lines))
            for section in sheet.sections
        )

        metadata = dict(sheet.metadata)
        new_key = None
        if sheet.original_key and target is not None:
            new_key = target.name
        elif sheet.original_key:
            try:
                old = as_key(sheet.original_key)
                new_key = Key(old.tonic.transpose(semitones, old.tonic.is_flat), old.minor).name
            except InvalidKeyError:
                logger.warning(f"Cannot transpose unrecognized key {sheet.original_key!r}")
                new_key = sheet.original_key
        if new_key and 'key' in metadata:
            metadata['key'] = new_key

        return replace(sheet, sections=sections, original_key=new_key, metadata=metadata)

    def _transpose_line(self, line, semitones: int, target: Optional[Key]):
        if isinstance(line, TextLine):
            chords = tuple(
                replace(cp, chord=self.transpose(cp.chord, semitones, target))
                for cp in line.chords
            )
            return replace(line, chords=chords)
        if isinstance(line, (EmptyLine, AnnotationLine)):
            return line
        raise TypeError(f"Unknown line type: {type(line).__name__}")

    def _detect_source_key(self, sheet: Chordsheet) -> Key:
        if self._key_detector is None:
            from .key_detector import KeyDetector
            self._key_detector = KeyDetector()
        result = self._key_detector.detect_from_chords(sheet.chords())
        return Key(result.key, result.is_minor)
