"""
Key detection from a song's chords

Each of the 24 major and minor keys is scored by how many of the song's
chords are diatonic to it, how many common progressions appear in the
chord sequence, and whether the song starts or ends on the tonic.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union

from .chord import Chord, Key, PitchClass, Quality
from .chord_parser import ChordParser
from .model import NotationFormat
from .nashville import NashvilleConverter

# Candidate keys, spelled the way they are usually written
MAJOR_KEYS = ['C', 'Db', 'D', 'Eb', 'E', 'F', 'F#', 'G', 'Ab', 'A', 'Bb', 'B']
MINOR_KEYS = ['C', 'C#', 'D', 'Eb', 'E', 'F', 'F#', 'G', 'G#', 'A', 'Bb', 'B']

# Common keys, used to break near ties
PREFERRED_KEYS = ['G', 'C', 'D', 'A', 'E', 'Am', 'Em', 'Dm', 'F', 'Bm', 'Bb', 'Eb']

# Diatonic triads as (semitones above tonic, simplified quality)
MAJOR_DIATONIC = {
    (0, 'maj'): '1', (2, 'min'): '2m', (4, 'min'): '3m', (5, 'maj'): '4',
    (7, 'maj'): '5', (9, 'min'): '6m', (11, 'dim'): '7°',
}
MINOR_DIATONIC = {
    (0, 'min'): '1m', (2, 'dim'): '2°', (3, 'maj'): '3', (5, 'min'): '4m',
    (7, 'min'): '5m', (8, 'maj'): '6', (10, 'maj'): '7',
    # harmonic minor dominant and leading-tone chord
    (7, 'maj'): '5', (11, 'dim'): '7°',
}

MAJOR_PROGRESSIONS = [
    ['1', '5', '6m', '4'],
    ['1', '4', '5', '1'],
    ['6m', '4', '1', '5'],
    ['1', '6m', '4', '5'],
    ['1', '4', '1', '5'],
    ['4', '5', '1'],
    ['1', '5', '6m'],
    ['2m', '5', '1'],
    ['6m', '2m', '5', '1'],
]
MINOR_PROGRESSIONS = [
    ['1m', '7', '6', '7'],
    ['1m', '4m', '5', '1m'],
    ['1m', '6', '7', '1m'],
    ['1m', '3', '7', '1m'],
    ['1m', '4m', '1m'],
    ['1m', '5', '1m'],
    ['6', '7', '1m'],
    ['1m', '2°', '5', '1m'],
]

NASHVILLE_KEY = re.compile(r'^\s*(?:\{\s*key\s*:\s*|key\s*[:=]\s*)([^}\s]+)', re.IGNORECASE | re.MULTILINE)


@dataclass
class KeyAnalysis:
    progression_matches: List[str] = field(default_factory=list)
    chord_frequency: Dict[str, int] = field(default_factory=dict)
    diatonic_fit: float = 0.0
    alternatives: List[Tuple[str, float]] = field(default_factory=list)


@dataclass
class KeyDetectionResult:
    key: PitchClass
    is_minor: bool
    confidence: float
    analysis: KeyAnalysis = field(default_factory=KeyAnalysis)

    @property
    def key_name(self) -> str:
        return self.key.name + ('m' if self.is_minor else '')

    def as_key(self) -> Key:
        return Key(self.key, self.is_minor)


class KeyDetector:
    """Infers the key of a chord sheet from its chord vocabulary"""

    def detect_key(self, text: str, fmt: Union[NotationFormat, str] = NotationFormat.CHORDPRO) -> KeyDetectionResult:
        fmt = NotationFormat.coerce(fmt)
        if fmt == NotationFormat.NASHVILLE:
            stated = NASHVILLE_KEY.search(text or '')
            if stated:
                try:
                    key = Key.parse(stated.group(1))
                except ValueError:
                    key = None
                if key is not None:
                    return KeyDetectionResult(
                        key.tonic, key.minor, 1.0,
                        KeyAnalysis(progression_matches=[f"stated key {key.name}"], diatonic_fit=1.0),
                    )
            # Numbers without a stated key are read in C
            return self.detect_from_chords(self._nashville_chords(text))
        return self.detect_from_chords(self._chords(text))

    @staticmethod
    def _chords(text: str) -> List[Chord]:
        chords = []
        for line in (text or '').splitlines():
            stripped = line.strip()
            # Directive lines like {title: ...} carry no chords
            if stripped.startswith('{') and stripped.endswith('}'):
                continue
            chords.extend(ChordParser.parse(line))
        return chords

    @staticmethod
    def _nashville_chords(text: str) -> List[Chord]:
        key = Key(PitchClass('C'))
        chords = []
        for line in (text or '').splitlines():
            tokens = line.replace('[', ' ').replace(']', ' ').split()
            if not tokens or not all(NashvilleConverter.is_number_token(t) for t in tokens):
                continue
            for token in tokens:
                chord, _ = NashvilleConverter.parse_token(token, key)
                if chord is not None:
                    chords.append(chord)
        return chords

    @staticmethod
    def _simplify(chord: Chord) -> str:
        if chord.quality == Quality.DIMINISHED:
            return 'dim'
        if chord.quality == Quality.MINOR:
            if any(ext.text == 'b5' for ext in chord.extensions):
                return 'dim'
            return 'min'
        if chord.quality == Quality.AUGMENTED:
            return 'aug'
        return 'maj'

    @staticmethod
    def _degrees(chords: List[Chord], tonic: int, minor: bool) -> List[Optional[str]]:
        """Scale-degree label of each chord in the key, None when non-diatonic"""
        table = MINOR_DIATONIC if minor else MAJOR_DIATONIC
        return [table.get(((c.root.index - tonic) % 12, KeyDetector._simplify(c))) for c in chords]

    @staticmethod
    def _progressions(degrees: List[Optional[str]], minor: bool) -> List[str]:
        # Repeated chords do not break a progression
        sequence = [d for i, d in enumerate(degrees) if i == 0 or d != degrees[i - 1]]
        matches = []
        for pattern in (MINOR_PROGRESSIONS if minor else MAJOR_PROGRESSIONS):
            n = len(pattern)
            if any(sequence[i:i + n] == pattern for i in range(len(sequence) - n + 1)):
                matches.append('-'.join(pattern))
        return matches

    def _score(self, chords: List[Chord], tonic: int, minor: bool) -> Tuple[float, float, List[str]]:
        degrees = self._degrees(chords, tonic, minor)
        fit = sum(1 for d in degrees if d is not None) / len(chords)
        matches = self._progressions(degrees, minor)

        tonic_label = '1m' if minor else '1'
        if degrees[0] == tonic_label or degrees[-1] == tonic_label:
            tonic_weight = 1.0
        else:
            tonic_weight = degrees.count(tonic_label) / len(degrees)

        confidence = 0.6 * fit + 0.25 * min(len(matches) / 2, 1.0) + 0.15 * tonic_weight
        return round(confidence, 4), fit, matches

    def detect_from_chords(self, chords: List[Chord]) -> KeyDetectionResult:
        """Score all 24 keys against an ordered chord list"""
        frequency = dict(Counter(c.name for c in chords))
        if not chords:
            return KeyDetectionResult(PitchClass('C'), False, 0.0, KeyAnalysis(chord_frequency=frequency))

        scored = []
        for names, minor in ((MAJOR_KEYS, False), (MINOR_KEYS, True)):
            for name in names:
                tonic = PitchClass(name)
                confidence, fit, matches = self._score(chords, tonic.index, minor)
                scored.append((confidence, fit, matches, tonic, minor))

        best_confidence = max(s[0] for s in scored)
        best_fit = max(s[1] for s in scored)
        if best_fit == 0:
            return KeyDetectionResult(PitchClass('C'), False, 0.1, KeyAnalysis(chord_frequency=frequency))

        # Near ties go to the more common key, then to major
        def preference(entry):
            confidence, _, _, tonic, minor = entry
            name = tonic.name + ('m' if minor else '')
            rank = PREFERRED_KEYS.index(name) if name in PREFERRED_KEYS else len(PREFERRED_KEYS)
            return (rank, minor, -confidence)

        contenders = [s for s in scored if best_confidence - s[0] <= 0.03]
        confidence, fit, matches, tonic, minor = min(contenders, key=preference)

        ranked = sorted(scored, key=lambda s: -s[0])
        alternatives = [
            (s[3].name + ('m' if s[4] else ''), s[0])
            for s in ranked[:5]
            if not (s[3] == tonic and s[4] == minor)
        ]
        analysis = KeyAnalysis(
            progression_matches=matches,
            chord_frequency=frequency,
            diatonic_fit=round(fit, 4),
            alternatives=alternatives,
        )
        return KeyDetectionResult(tonic, minor, confidence, analysis)
