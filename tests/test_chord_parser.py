"""
Tests for chord token and chord line parsing
"""

import pytest

from chordsheet import InvalidChordError, Placement, Quality
from chordsheet.chord_parser import ChordParser


class TestParseChord:
    """Tests for ChordParser.parse_chord()"""

    @pytest.mark.parametrize('token,root,quality,suffix', [
        ('G', 'G', Quality.MAJOR, ''),
        ('Am', 'A', Quality.MINOR, 'm'),
        ('Ebm', 'Eb', Quality.MINOR, 'm'),
        ('C7', 'C', Quality.DOMINANT, '7'),
        ('Cmaj7', 'C', Quality.MAJOR, 'maj7'),
        ('Bdim', 'B', Quality.DIMINISHED, 'dim'),
        ('Caug', 'C', Quality.AUGMENTED, 'aug'),
        ('Dsus4', 'D', Quality.SUSPENDED, 'sus4'),
        ('F#m7b5', 'F#', Quality.MINOR, 'm7b5'),
        ('Asus4add9', 'A', Quality.SUSPENDED, 'sus4add9'),
    ])
    def test_parse_chord(self, token, root, quality, suffix):
        chord = ChordParser.parse_chord(token)
        assert chord.root.name == root
        assert chord.quality == quality
        assert chord.suffix == suffix
        assert chord.name == token

    def test_extensions_keep_written_order(self):
        chord = ChordParser.parse_chord('F#m7b5')
        assert [(e.kind, e.text) for e in chord.extensions] == [('number', '7'), ('alteration', 'b5')]

    def test_slash_chord(self):
        chord = ChordParser.parse_chord('C/G')
        assert chord.root.name == 'C'
        assert chord.bass.name == 'G'
        assert chord.name == 'C/G'

    def test_six_nine_is_not_a_slash_chord(self):
        chord = ChordParser.parse_chord('C6/9')
        assert chord.bass is None
        assert chord.name == 'C6/9'

    def test_invalid_root_raises(self):
        with pytest.raises(InvalidChordError):
            ChordParser.parse_chord('X')
        with pytest.raises(InvalidChordError):
            ChordParser.parse_chord('H7')

    def test_unrecognized_suffix_raises_in_strict_mode(self):
        with pytest.raises(InvalidChordError):
            ChordParser.parse_chord('Cxyz')

    def test_unrecognized_suffix_is_kept_in_lenient_mode(self):
        chord, warnings = ChordParser.try_parse('Cxyz')
        assert chord is not None
        assert chord.has_unrecognized
        assert chord.name == 'Cxyz'
        assert 'Unrecognized chord suffix' in warnings[0]

    def test_try_parse_invalid_root(self):
        chord, warnings = ChordParser.try_parse('X')
        assert chord is None
        assert warnings == ['Skipping invalid chord: "X"']

    def test_is_chord(self):
        assert ChordParser.is_chord('Bb')
        assert not ChordParser.is_chord('Amazing')
        assert not ChordParser.is_chord('the')


class TestParseLine:
    """Tests for inline and chord-line parsing"""

    def test_bracketed_line(self):
        text, chords, warnings = ChordParser.parse_bracketed_line('[G]Amazing [C]grace')
        assert text == 'Amazing grace'
        assert [(c.name, c.position) for c in chords] == [('G', 0), ('C', 8)]
        assert warnings == []

    def test_invalid_token_is_skipped_with_warning(self):
        text, chords, warnings = ChordParser.parse_bracketed_line('[X]Test [C]chord')
        assert text == 'Test chord'
        assert [c.name for c in chords] == ['C']
        assert chords[0].position == 5
        assert len(warnings) == 1

    def test_parse_finds_inline_chords(self):
        assert [c.name for c in ChordParser.parse('[C]Amazing [F]grace')] == ['C', 'F']

    def test_parse_finds_chord_line(self):
        assert [c.name for c in ChordParser.parse('G   C   D7')] == ['G', 'C', 'D7']

    def test_parse_plain_lyric(self):
        assert ChordParser.parse('Amazing grace how sweet') == []

    @pytest.mark.parametrize('line,expected', [
        ('G       C          G', True),
        ('| G | C | D | x2', True),
        ('Am  F  C  G  N.C.', True),
        ('Amazing grace, how sweet the sound', False),
        ('A man and a plan', False),
        ('[G]Amazing grace', False),
        ('', False),
    ])
    def test_is_chord_line(self, line, expected):
        assert ChordParser.is_chord_line(line) is expected

    def test_extract_chord_line_positions(self):
        chords, warnings = ChordParser.extract_chord_line('G       C          G')
        assert [c.position for c in chords] == [0, 8, 19]
        assert warnings == []

    def test_build_placements(self):
        chords, _ = ChordParser.extract_chord_line('G       C')
        placements = ChordParser.build_placements('Amazing grace', chords, Placement.ABOVE)
        assert [(p.start_index, p.end_index) for p in placements] == [(0, 8), (8, 13)]
        assert all(p.placement == Placement.ABOVE for p in placements)

    def test_build_placements_clamps_to_text(self):
        chords, _ = ChordParser.extract_chord_line('G             C')
        placements = ChordParser.build_placements('Hi', chords)
        assert [(p.start_index, p.end_index) for p in placements] == [(0, 2), (2, 2)]
