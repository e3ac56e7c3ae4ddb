"""
ChordPro

    {title: Amazing Grace}
    {artist: John Newton}
    {key: G}

    {start_of_verse: Verse 1}
    [G]Amazing [C]grace, how [G]sweet the sound
    {comment: Slowly}
    {end_of_verse}
"""

import re
from typing import List, Optional

from ..model import AnnotationLine, Chordsheet, NotationFormat, Placement, Section, SectionType
from .base import BaseFormatParser, BaseFormatRenderer, HeaderMatch, SheetBuilder

DIRECTIVE_PATTERN = re.compile(r'^\s*\{\s*([A-Za-z_]+)\s*(?::\s*(.*?))?\s*\}\s*$')

METADATA_DIRECTIVES = {
    't': 'title',
    'title': 'title',
    'artist': 'artist',
    'st': 'subtitle',
    'subtitle': 'subtitle',
    'key': 'key',
    'capo': 'capo',
    'tempo': 'tempo',
    'time': 'time',
    'album': 'album',
    'year': 'year',
    'composer': 'composer',
    'lyricist': 'lyricist',
    'copyright': 'copyright',
    'duration': 'duration',
}

COMMENT_DIRECTIVES = {'comment', 'c', 'comment_italic', 'ci', 'comment_box', 'cb', 'highlight'}

# Short forms of the environment directives
SHORT_ENVIRONMENTS = {
    'soc': ('start', 'chorus'), 'eoc': ('end', 'chorus'),
    'sov': ('start', 'verse'), 'eov': ('end', 'verse'),
    'sob': ('start', 'bridge'), 'eob': ('end', 'bridge'),
    'sot': ('start', 'tab'), 'eot': ('end', 'tab'),
}

# Metadata written at the top of a rendered sheet, in this order
RENDERED_METADATA = ['subtitle', 'album', 'year', 'composer', 'lyricist', 'capo', 'tempo', 'time',
                     'duration', 'copyright']


def split_directive(line: str):
    """('start_of_verse', 'Verse 1') for '{start_of_verse: Verse 1}', else None"""
    match = DIRECTIVE_PATTERN.match(line)
    if not match:
        return None
    return match.group(1).lower(), (match.group(2) or '').strip()


def environment(name: str):
    """('start'|'end', section word) for an environment directive name"""
    if name in SHORT_ENVIRONMENTS:
        return SHORT_ENVIRONMENTS[name]
    for edge in ('start', 'end'):
        prefix = f"{edge}_of_"
        if name.startswith(prefix):
            return edge, name[len(prefix):]
    return None


class ChordProParser(BaseFormatParser):
    format = NotationFormat.CHORDPRO
    placement = Placement.INLINE

    def parse_header(self, line: str) -> Optional[HeaderMatch]:
        directive = split_directive(line)
        if directive is None:
            return None
        env = environment(directive[0])
        if env is None or env[0] != 'start':
            return None
        word = env[1]
        section_type = SectionType.from_keyword(word) or SectionType.UNKNOWN
        title = directive[1] or None
        if section_type == SectionType.UNKNOWN and not title:
            title = word.replace('_', ' ').title()
        return HeaderMatch(section_type, title, 'directive')

    def parse_section_end(self, line: str) -> bool:
        directive = split_directive(line)
        if directive is None:
            return False
        env = environment(directive[0])
        return env is not None and env[0] == 'end'

    def parse_annotation(self, line: str) -> Optional[str]:
        directive = split_directive(line)
        if directive and directive[0] in COMMENT_DIRECTIVES:
            return directive[1]
        return None

    def parse_directive(self, line: str, builder: SheetBuilder) -> bool:
        directive = split_directive(line)
        if directive is None:
            return False
        name, value = directive
        if name in METADATA_DIRECTIVES:
            builder.set_metadata(METADATA_DIRECTIVES[name], value)
        elif name.startswith('meta'):
            # {meta: name value}
            meta_name, _, meta_value = value.partition(' ')
            builder.set_metadata(meta_name, meta_value)
        else:
            builder.warn(f"Ignoring unknown directive {{{name}}}")
        return True

    def is_chord_line(self, line: str) -> bool:
        # ChordPro keeps chords inline
        return False


class ChordProRenderer(BaseFormatRenderer):
    format = NotationFormat.CHORDPRO
    parser_class = ChordProParser

    def render_metadata(self, sheet: Chordsheet, warnings: List[str]) -> List[str]:
        lines = []
        if sheet.title:
            lines.append(f"{{title: {sheet.title}}}")
        if sheet.artist:
            lines.append(f"{{artist: {sheet.artist}}}")
        if sheet.original_key:
            lines.append(f"{{key: {sheet.original_key}}}")
        for name in RENDERED_METADATA:
            if name in sheet.metadata:
                lines.append(f"{{{name}: {sheet.metadata[name]}}}")
        for name, value in sheet.metadata.items():
            if name not in RENDERED_METADATA and name not in METADATA_DIRECTIVES.values():
                lines.append(f"{{meta: {name} {value}}}")
        return lines

    @staticmethod
    def _environment(section: Section) -> str:
        if section.type == SectionType.UNKNOWN:
            return 'part'
        return section.type.value.replace('-', '')

    def render_section_start(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        env = self._environment(section)
        if section.title:
            return [f"{{start_of_{env}: {section.title}}}"]
        return [f"{{start_of_{env}}}"]

    def render_section_end(self, section: Section) -> List[str]:
        if section.type == SectionType.UNKNOWN and not section.title:
            return []
        return [f"{{end_of_{self._environment(section)}}}"]

    def render_annotation(self, line: AnnotationLine) -> str:
        return f"{{comment: {line.value}}}"
