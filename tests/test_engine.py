"""
Tests for the conversion pipeline
"""

import pytest

from chordsheet import ConversionEngine, ErrorType, NotationFormat, convert, detect_format, detect_key


@pytest.fixture
def engine():
    return ConversionEngine()


class TestConvert:
    """Tests for ConversionEngine.convert()"""

    def test_chordpro_to_onsong(self, engine):
        result = engine.convert('{title: Amazing Grace}\n[C]Amazing [F]grace', 'chordpro', 'onsong')
        assert result.success
        lines = result.output.splitlines()
        assert lines[0] == 'Amazing Grace'
        assert '[C]Amazing [F]grace' in lines
        assert result.errors == []

    def test_every_target_format(self, engine, chordpro_sample):
        for fmt in NotationFormat:
            result = engine.convert(chordpro_sample, NotationFormat.CHORDPRO, fmt)
            assert result.success, result.errors
            assert 'Amazing Grace' in result.output
            assert result.metadata['target_format'] == fmt.value

    def test_detects_source_format(self, engine, songbook_sample):
        result = engine.convert(songbook_sample, target_format='chordpro')
        assert result.success
        assert result.metadata['detected_format'] == 'songbook'
        assert '[G]Amazing [C]grace, how [G]sweet the sound' in result.output

    def test_low_confidence_detection_warns(self, engine):
        result = engine.convert('Amazing grace how sweet the sound', target_format='onsong')
        assert result.success
        assert any('low confidence' in w for w in result.warnings)

    def test_transpose_to_target_key(self, engine, chordpro_sample):
        result = engine.convert(chordpro_sample, 'chordpro', 'chordpro', target_key='A')
        assert result.success
        assert '{key: A}' in result.output
        assert '[A]Amazing [D]grace, how [A]sweet the sound' in result.output
        assert result.metadata['source_key'] == 'G'
        assert result.metadata['target_key'] == 'A'

    def test_same_key_is_untouched(self, engine, chordpro_sample):
        result = engine.convert(chordpro_sample, 'chordpro', 'chordpro', target_key='G')
        assert result.output == chordpro_sample

    def test_detects_missing_source_key(self, engine):
        result = engine.convert('[C]one [F]two [G]three [C]four', 'chordpro', 'chordpro', target_key='D')
        assert result.success
        assert result.output == '[D]one [G]two [A]three [D]four'
        assert result.metadata['detected_key'] == 'C'
        assert any(w.startswith('No source key given') for w in result.warnings)

    def test_explicit_source_key(self, engine):
        result = engine.convert('[G]one [C]two', 'chordpro', 'chordpro', source_key='G', target_key='A')
        assert result.output == '[A]one [D]two'

    def test_nashville_to_letters_and_back(self, engine, nashville_sample):
        letters = engine.convert(nashville_sample, 'nashville', 'chordpro')
        assert '[G]Amazing [C]grace' in letters.output
        numbers = engine.convert(letters.output, 'chordpro', 'nashville', target_key='D')
        assert 'Key: D' in numbers.output.splitlines()
        assert '1       4          1' in numbers.output.splitlines()

    def test_parse_warnings_are_collected(self, engine):
        result = engine.convert('[X]Test [C]chord', 'chordpro', 'onsong')
        assert result.success
        assert result.output == 'Test [C]chord'
        assert result.warnings == ['Line 1: Skipping invalid chord: "X"']

    def test_to_dict(self, engine):
        data = engine.convert('[C]la', 'chordpro', 'onsong').to_dict()
        assert set(data) == {'success', 'output', 'errors', 'warnings', 'metadata'}
        assert data['success'] is True


class TestConvertFailures:
    """Fatal errors come back as AppError values"""

    def test_empty_input(self, engine):
        result = engine.convert('   \n\n', 'chordpro', 'onsong')
        assert result.success
        assert result.output == ''
        assert result.warnings == ['Input is empty']

    def test_unsupported_target(self, engine):
        result = engine.convert('[C]la', 'chordpro', 'midi')
        assert not result.success
        assert result.output == ''
        assert result.errors[0].type == ErrorType.FORMAT_ERROR
        assert result.errors[0].code == 'UNSUPPORTED_FORMAT'
        assert not result.errors[0].recoverable

    def test_unsupported_source(self, engine):
        result = engine.convert('[C]la', 'midi', 'onsong')
        assert not result.success
        assert result.errors[0].type == ErrorType.FORMAT_ERROR

    def test_no_structure(self, engine):
        result = engine.convert('{frobnicate: yes}', 'chordpro', 'onsong')
        assert not result.success
        assert result.errors[0].type == ErrorType.PARSE_ERROR
        assert not result.errors[0].recoverable

    def test_invalid_target_key(self, engine, chordpro_sample):
        result = engine.convert(chordpro_sample, 'chordpro', 'onsong', target_key='H')
        assert not result.success
        assert result.errors[0].type == ErrorType.TRANSPOSE_ERROR
        assert result.output == ''

    def test_unrecognized_sheet_key_is_ignored(self, engine):
        text = '{key: Q}\n[C]one [F]two [G]three [C]four'
        result = engine.convert(text, 'chordpro', 'chordpro', target_key='D')
        assert result.success
        assert any('Ignoring unrecognized key "Q"' in w for w in result.warnings)
        assert '[D]one' in result.output


class TestModuleFunctions:
    """Tests for the module-level shortcuts"""

    def test_convert(self):
        result = convert('{title: Amazing Grace}\n[C]Amazing [F]grace', 'chordpro', 'onsong')
        assert result.success
        assert result.output.splitlines()[0] == 'Amazing Grace'

    def test_detect_format(self, planning_center_sample):
        assert detect_format(planning_center_sample).format == NotationFormat.PLANNING_CENTER

    def test_detect_key(self):
        result = detect_key('[C] [Am] [F] [G]', NotationFormat.CHORDPRO)
        assert result.key.name == 'C'
        assert not result.is_minor
        assert result.confidence >= 0.5

    def test_detect_key_detects_format(self, nashville_sample):
        assert detect_key(nashville_sample).key_name == 'G'
