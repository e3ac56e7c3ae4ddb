"""
Tests for the per-format parsers and renderers
"""

import pytest

from chordsheet import (
    AnnotationLine, AnnotationType, ChordParser, ChordPlacement, Chordsheet, ComparisonValidator,
    EmptyLine, FormatRegistry, NotationFormat, Placement, Section, SectionType, TextLine,
)
from chordsheet.handlers import (
    ChordProParser, ChordProRenderer, GuitarTabsParser, NashvilleParser, NashvilleRenderer,
    OnSongParser, OnSongRenderer, PlanningCenterParser, PlanningCenterRenderer, SongbookParser,
    SongbookRenderer, classify_annotation, match_header,
)
from chordsheet.handlers.planning_center import strip_markup


@pytest.fixture
def registry():
    return FormatRegistry.with_defaults()


def two_sections(first_lines, second_lines):
    return Chordsheet(sections=(
        Section(SectionType.VERSE, None, tuple(first_lines)),
        Section(SectionType.CHORUS, None, tuple(second_lines)),
    ))


class TestHeaders:
    """Tests for match_header() and classify_annotation()"""

    @pytest.mark.parametrize('line,section_type,title,style', [
        ('Verse 1:', SectionType.VERSE, 'Verse 1', 'colon'),
        ('CHORUS', SectionType.CHORUS, 'CHORUS', 'bare'),
        ('[Bridge]', SectionType.BRIDGE, 'Bridge', 'bracket'),
        ('Pre-Chorus', SectionType.PRE_CHORUS, 'Pre-Chorus', 'bare'),
        ('Refrain:', SectionType.CHORUS, 'Refrain', 'colon'),
    ])
    def test_match_header(self, line, section_type, title, style):
        header = match_header(line)
        assert header.type == section_type
        assert header.title == title
        assert header.style == style

    @pytest.mark.parametrize('line', ['Verses', 'Chorus of angels', 'Amazing grace', '[Bridge'])
    def test_not_a_header(self, line):
        assert match_header(line) is None

    def test_header_with_chords(self):
        header = match_header('Intro: G C D')
        assert header.type == SectionType.INTRO
        assert header.tail == 'G C D'

    @pytest.mark.parametrize('value,expected', [
        ('Slowly', AnnotationType.TEMPO),
        ('Softly', AnnotationType.DYNAMICS),
        ('Repeat 2x', AnnotationType.INSTRUCTION),
        ('Lead vocal', AnnotationType.COMMENT),
    ])
    def test_classify_annotation(self, value, expected):
        assert classify_annotation(value) == expected


class TestChordPro:
    """Tests for ChordPro parsing and rendering"""

    def test_parse_metadata(self, amazing_grace):
        assert amazing_grace.title == 'Amazing Grace'
        assert amazing_grace.artist == 'John Newton'
        assert amazing_grace.original_key == 'G'

    def test_parse_sections(self, amazing_grace):
        verse, chorus = amazing_grace.sections
        assert verse.type == SectionType.VERSE
        assert verse.title == 'Verse 1'
        assert chorus.type == SectionType.CHORUS
        assert chorus.title is None

    def test_parse_inline_chords(self, amazing_grace):
        line = amazing_grace.sections[0].lines[0]
        assert line.text == 'Amazing grace, how sweet the sound'
        assert [(cp.chord.name, cp.start_index, cp.end_index) for cp in line.chords] == [
            ('G', 0, 8), ('C', 8, 19), ('G', 19, 34),
        ]
        assert all(cp.placement == Placement.INLINE for cp in line.chords)

    def test_parse_comment(self, amazing_grace):
        annotation = amazing_grace.sections[1].lines[-1]
        assert isinstance(annotation, AnnotationLine)
        assert annotation.value == 'Repeat 2x'
        assert annotation.annotation_type == AnnotationType.INSTRUCTION

    def test_render_round_trip_is_exact(self, chordpro_sample, amazing_grace):
        assert ChordProRenderer().render(amazing_grace) == chordpro_sample

    def test_short_environment_directives(self):
        sheet = ChordProParser().parse('{soc}\n[G]Praise\n{eoc}')
        assert sheet.sections[0].type == SectionType.CHORUS

    def test_meta_directive(self):
        sheet = ChordProParser().parse('{title: Song}\n{meta: ccli 12345}\n[G]la')
        assert sheet.metadata == {'ccli': '12345'}
        assert '{meta: ccli 12345}' in ChordProRenderer().render(sheet)

    def test_unknown_directive_warns(self):
        report = ChordProParser().parse_document('{frobnicate: yes}\n[G]la')
        assert any('frobnicate' in w for w in report.warnings)
        assert len(report.chordsheet.sections) == 1

    def test_invalid_chord_warns_and_keeps_text(self):
        report = ChordProParser().parse_document('[X]Test [C]chord')
        line = report.chordsheet.sections[0].lines[0]
        assert line.text == 'Test chord'
        assert [cp.chord.name for cp in line.chords] == ['C']
        assert report.warnings == ['Line 1: Skipping invalid chord: "X"']

    def test_blank_lines_inside_section(self):
        sheet = ChordProParser().parse('{start_of_verse}\n[G]one\n\n\n[C]two\n\n{end_of_verse}')
        lines = sheet.sections[0].lines
        assert isinstance(lines[1], EmptyLine)
        assert lines[1].count == 2
        assert len(lines) == 3


class TestOnSong:
    """Tests for OnSong"""

    def test_parse(self, onsong_sample):
        sheet = OnSongParser().parse(onsong_sample)
        assert (sheet.title, sheet.artist, sheet.original_key) == ('Amazing Grace', 'John Newton', 'G')
        assert [s.title for s in sheet.sections] == ['Verse 1', 'Chorus']
        assert sheet.sections[1].lines[-1].value == 'Repeat 2x'

    def test_render(self, onsong_sample, amazing_grace):
        assert OnSongRenderer().render(amazing_grace) == onsong_sample

    def test_render_warns_about_dropped_metadata(self):
        sheet = Chordsheet(title='Song', metadata={'capo': '2', 'mood': 'happy'},
                           sections=(Section(lines=(TextLine('la'),)),))
        report = OnSongRenderer().render_document(sheet)
        assert 'Capo: 2' in report.output.splitlines()
        assert report.warnings == ["Dropped metadata field 'mood'"]

    def test_tempo_annotation(self):
        sheet = Chordsheet(sections=(Section(lines=(AnnotationLine('Slowly', AnnotationType.TEMPO),)),))
        assert OnSongRenderer().render(sheet) == '*Tempo: Slowly'


class TestSongbook:
    """Tests for Songbook Pro"""

    def test_parse_chord_lines(self, songbook_sample):
        sheet = SongbookParser().parse(songbook_sample)
        assert sheet.title == 'Amazing Grace'
        assert sheet.artist == 'John Newton'
        line = sheet.sections[0].lines[0]
        assert line.text == 'Amazing grace, how sweet the sound'
        assert [(cp.chord.name, cp.start_index) for cp in line.chords] == [('G', 0), ('C', 8), ('G', 19)]
        assert all(cp.placement == Placement.ABOVE for cp in line.chords)

    def test_parse_annotation(self, songbook_sample):
        sheet = SongbookParser().parse(songbook_sample)
        assert sheet.sections[1].lines[-1].value == 'Repeat 2x'

    def test_render(self, songbook_sample, amazing_grace):
        assert SongbookRenderer().render(amazing_grace) == songbook_sample

    def test_chord_only_line(self):
        chord = ChordParser.parse_chord('G')
        sheet = Chordsheet(sections=(Section(lines=(TextLine('', (ChordPlacement(chord, 0, 0),)),)),))
        assert SongbookRenderer().render(sheet) == 'G'

    def test_colliding_chords_are_pushed_apart(self):
        g, c = ChordParser.parse_chord('Gmaj7'), ChordParser.parse_chord('C')
        line = TextLine('Oh my', (ChordPlacement(g, 0, 2), ChordPlacement(c, 2, 5)))
        sheet = Chordsheet(sections=(Section(lines=(line,)),))
        assert SongbookRenderer().render(sheet).splitlines()[0] == 'Gmaj7 C'


class TestSpacing:
    """Blank lines between sections follow each format's profile"""

    def test_songbook_section_gap(self):
        sheet = two_sections([TextLine('La la')], [TextLine('Oh')])
        assert SongbookRenderer().render(sheet) == 'Verse\nLa la\n\n\nChorus\nOh'

    def test_songbook_annotation_gap(self):
        sheet = two_sections([TextLine('La la'), AnnotationLine('Repeat')], [TextLine('Oh')])
        assert SongbookRenderer().render(sheet) == 'Verse\nLa la\n(Repeat)\n\n\n\nChorus\nOh'

    def test_chordpro_single_gap(self):
        sheet = two_sections([TextLine('La la'), AnnotationLine('Repeat')], [TextLine('Oh')])
        assert ChordProRenderer().render(sheet) == (
            '{start_of_verse}\nLa la\n{comment: Repeat}\n{end_of_verse}\n\n'
            '{start_of_chorus}\nOh\n{end_of_chorus}'
        )

    def test_guitar_tabs_gap(self, registry):
        sheet = two_sections([TextLine('La la')], [TextLine('Oh')])
        assert registry.get('guitar_tabs').render(sheet) == 'Verse:\nLa la\n\n\nChorus:\nOh'

    def test_empty_lines_are_kept(self):
        sheet = two_sections([TextLine('a'), EmptyLine(2), TextLine('b')], [TextLine('c')])
        assert ChordProRenderer().render(sheet).splitlines()[1:5] == ['a', '', '', 'b']


class TestNashville:
    """Tests for the Nashville Number System format"""

    def test_parse_numbers_in_stated_key(self, nashville_sample):
        report = NashvilleParser().parse_document(nashville_sample)
        assert report.warnings == []
        assert [c.name for c in report.chordsheet.chords()] == ['G', 'C', 'G', 'G', 'D', 'G', 'C', 'G']
        assert report.chordsheet.original_key == 'G'

    def test_missing_key_warns(self):
        report = NashvilleParser().parse_document('1   4   5\nla  la  la')
        assert report.warnings[0].startswith('No key stated')
        assert [c.name for c in report.chordsheet.chords()] == ['C', 'F', 'G']

    def test_letter_chords_are_accepted(self):
        sheet = NashvilleParser().parse('Key: D\n\n1   G   5\nla  la  la')
        assert [c.name for c in sheet.chords()] == ['D', 'G', 'A']

    def test_render(self, nashville_sample, amazing_grace):
        assert NashvilleRenderer().render(amazing_grace) == nashville_sample

    def test_render_detects_missing_key(self):
        sheet = ChordProParser().parse('[C]one [Am]two [F]three [G]four')
        report = NashvilleRenderer().render_document(sheet)
        assert report.output.splitlines()[0] == 'Key: C'
        assert report.output.splitlines()[2] == '1   6m  4     5'
        assert 'detected key C' in report.warnings[0]


class TestGuitarTabs:
    """Tests for guitar tab sheets"""

    def test_parse(self, guitar_tabs_sample):
        sheet = GuitarTabsParser().parse(guitar_tabs_sample)
        assert (sheet.title, sheet.artist, sheet.original_key) == ('Amazing Grace', 'John Newton', 'G')
        verse, solo = sheet.sections
        assert verse.lines[-1].value == 'let ring'
        assert solo.type == SectionType.SOLO
        assert [line.text for line in solo.lines] == ['e|-----0-----|', 'B|---1---1---|']
        assert solo.chords() == []


class TestPlanningCenter:
    """Tests for Planning Center"""

    def test_parse(self, planning_center_sample):
        sheet = PlanningCenterParser().parse(planning_center_sample)
        assert sheet.title == 'Amazing Grace'
        assert [s.type for s in sheet.sections] == [SectionType.VERSE, SectionType.CHORUS]
        annotation = sheet.sections[0].lines[-1]
        assert annotation.value == 'Softly'
        assert annotation.annotation_type == AnnotationType.DYNAMICS

    def test_markup_is_stripped(self):
        sheet = PlanningCenterParser().parse('<i>Amazing</i> [G]grace &amp; love')
        line = sheet.sections[0].lines[0]
        assert line.text == 'Amazing grace & love'
        assert line.chords[0].start_index == 8

    def test_strip_markup_leaves_plain_text_alone(self):
        assert strip_markup('[G]Plain < text') == '[G]Plain < text'

    def test_render_escapes(self):
        sheet = Chordsheet(sections=(Section(SectionType.VERSE, 'Verse 1', (
            TextLine('Salt & light'), AnnotationLine('Build <slowly>'),
        )),))
        assert PlanningCenterRenderer().render(sheet) == 'VERSE 1\nSalt &amp; light\n<b>Build &lt;slowly&gt;</b>'


class TestRoundTrips:
    """Render into every format and parse back"""

    @pytest.mark.parametrize('fmt', list(NotationFormat))
    def test_round_trip_keeps_chords_and_sections(self, registry, amazing_grace, fmt):
        handler = registry.get(fmt)
        back = handler.parse(handler.render(amazing_grace))
        result = ComparisonValidator.compare(amazing_grace, back)
        assert result.valid, result.issues
        assert back.title == amazing_grace.title

    @pytest.mark.parametrize('source', list(NotationFormat))
    def test_every_sample_parses(self, registry, samples, source):
        sheet = registry.get(source).parse(samples[source])
        assert sheet.title == 'Amazing Grace'
        assert sheet.original_key == 'G'
        assert sheet.sections

    @pytest.mark.parametrize('title', [None, 'Hello World'])
    @pytest.mark.parametrize('fmt', list(NotationFormat))
    def test_round_trip_edge_cases(self, registry, fmt, title):
        sheet = edge_case_sheet(title)
        handler = registry.get(fmt)
        back = handler.parse(handler.render(sheet))
        result = ComparisonValidator.compare(sheet, back)
        assert result.valid, result.issues
        assert back.title == title
        assert back.line_count == sheet.line_count == 5
        assert ComparisonValidator.section_types(back) == [
            SectionType.UNKNOWN, SectionType.VERSE, SectionType.CHORUS, SectionType.BRIDGE,
        ]
        assert isinstance(back.sections[1].lines[0], AnnotationLine)
        assert back.sections[3].lines[0].text == ''

    @pytest.mark.parametrize('renderer', [OnSongRenderer(), SongbookRenderer()])
    def test_untitled_sheet_keeps_empty_title_slot(self, renderer):
        sheet = Chordsheet(sections=(Section(lines=(TextLine('Hello there'),)),))
        output = renderer.render(sheet)
        assert output.splitlines()[0] == 'Title:'
        back = renderer.parser_class().parse(output)
        assert back.title is None
        assert back.sections[0].lines[0].text == 'Hello there'

    def test_guitar_tabs_leading_annotation_is_not_a_title(self, registry):
        sheet = Chordsheet(sections=(Section(lines=(AnnotationLine('let ring'), TextLine('la'))),))
        handler = registry.get('guitar_tabs')
        output = handler.render(sheet)
        assert output == '// let ring\nla'
        back = handler.parse(output)
        assert back.title is None
        assert back.line_count == 2
        assert back.sections[0].lines[0].value == 'let ring'

    def test_guitar_tabs_lone_annotation_section(self, registry):
        sheet = Chordsheet(sections=(
            Section(lines=(AnnotationLine('let ring'),)),
            Section(SectionType.VERSE, None, (TextLine('la'),)),
        ))
        handler = registry.get('guitar_tabs')
        output = handler.render(sheet)
        assert output.splitlines()[0] == '// Title:'
        back = handler.parse(output)
        assert back.title is None
        assert ComparisonValidator.section_types(back) == [SectionType.UNKNOWN, SectionType.VERSE]
        assert back.sections[0].lines[0].value == 'let ring'


def edge_case_sheet(title=None):
    """Untitled lead-in, annotation-first verse, empty chorus and a chord-only line"""
    g, c, d = (ChordParser.parse_chord(name) for name in ('G', 'C', 'D'))
    return Chordsheet(title=title, sections=(
        Section(SectionType.UNKNOWN, None, (TextLine('Hello there friend'),)),
        Section(SectionType.VERSE, 'Verse 1', (
            AnnotationLine('Softly', AnnotationType.DYNAMICS),
            TextLine('Morning has come', (ChordPlacement(g, 0, 7), ChordPlacement(c, 8, 11))),
        )),
        Section(SectionType.CHORUS, None, ()),
        Section(SectionType.BRIDGE, None, (
            TextLine('', (ChordPlacement(d, 0, 0),)),
            TextLine('Wander home', (ChordPlacement(g, 0, 6),)),
        )),
    ))


class TestAmbiguousLines:
    """Tests for warnings about output that reads back differently"""

    def chord_then_lyric(self):
        g = ChordParser.parse_chord('G')
        return Chordsheet(sections=(Section(SectionType.VERSE, None, (
            TextLine('', (ChordPlacement(g, 0, 0),)),
            TextLine('plain lyric here'),
        )),))

    def test_chord_line_over_plain_lyric_warns(self):
        report = SongbookRenderer().render_document(self.chord_then_lyric())
        assert report.output == 'Verse\nG\nplain lyric here'
        assert report.warnings == ['Chord-only line before a lyric line in Verse will read back as one line']
        assert SongbookParser().parse(report.output).line_count == 1

    def test_inline_formats_do_not_warn(self):
        report = ChordProRenderer().render_document(self.chord_then_lyric())
        assert report.warnings == []

    def test_lyric_before_chord_line_does_not_warn(self):
        g = ChordParser.parse_chord('G')
        sheet = Chordsheet(sections=(Section(SectionType.VERSE, None, (
            TextLine('plain lyric here'),
            TextLine('', (ChordPlacement(g, 0, 0),)),
        )),))
        assert SongbookRenderer().render_document(sheet).warnings == []
