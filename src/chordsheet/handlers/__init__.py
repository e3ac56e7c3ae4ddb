"""Parser/renderer pairs, one module per notation format"""

from .base import (
    BaseFormatParser, BaseFormatRenderer, HeaderMatch, ParseReport, RenderReport, SheetBuilder,
    classify_annotation, match_header,
)
from .chordpro import ChordProParser, ChordProRenderer
from .guitar_tabs import GuitarTabsParser, GuitarTabsRenderer
from .nashville import NashvilleParser, NashvilleRenderer
from .onsong import OnSongParser, OnSongRenderer
from .planning_center import PlanningCenterParser, PlanningCenterRenderer
from .songbook import SongbookParser, SongbookRenderer

__all__ = [
    'BaseFormatParser', 'BaseFormatRenderer', 'HeaderMatch', 'ParseReport', 'RenderReport',
    'SheetBuilder', 'classify_annotation', 'match_header',
    'ChordProParser', 'ChordProRenderer',
    'GuitarTabsParser', 'GuitarTabsRenderer',
    'NashvilleParser', 'NashvilleRenderer',
    'OnSongParser', 'OnSongRenderer',
    'PlanningCenterParser', 'PlanningCenterRenderer',
    'SongbookParser', 'SongbookRenderer',
]
