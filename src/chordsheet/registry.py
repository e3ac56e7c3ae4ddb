"""
Format registry

Maps each NotationFormat to its parser and renderer. Adding a format means
registering one more pair; nothing else looks formats up by name.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from .config import EngineConfig, default_config
from .errors import UnsupportedFormatError
from .handlers import (
    BaseFormatParser, BaseFormatRenderer,
    ChordProParser, ChordProRenderer,
    GuitarTabsParser, GuitarTabsRenderer,
    NashvilleParser, NashvilleRenderer,
    OnSongParser, OnSongRenderer,
    PlanningCenterParser, PlanningCenterRenderer,
    SongbookParser, SongbookRenderer,
)
from .model import NotationFormat


@dataclass(frozen=True)
class FormatHandler:
    format: NotationFormat
    parser: BaseFormatParser
    renderer: BaseFormatRenderer

    def parse(self, text: str):
        return self.parser.parse(text)

    def render(self, sheet) -> str:
        return self.renderer.render(sheet)


class FormatRegistry:
    """Lookup table from format to parser/renderer pair"""

    def __init__(self):
        self._handlers: Dict[NotationFormat, FormatHandler] = {}

    def register(self, fmt: Union[NotationFormat, str], parser: BaseFormatParser,
                 renderer: BaseFormatRenderer) -> FormatHandler:
        fmt = NotationFormat.coerce(fmt)
        handler = FormatHandler(fmt, parser, renderer)
        self._handlers[fmt] = handler
        return handler

    def get(self, fmt: Union[NotationFormat, str]) -> FormatHandler:
        try:
            key = NotationFormat.coerce(fmt)
        except ValueError:
            raise UnsupportedFormatError(str(fmt)) from None
        if key not in self._handlers:
            raise UnsupportedFormatError(key.value)
        return self._handlers[key]

    def supports(self, fmt: Union[NotationFormat, str]) -> bool:
        try:
            self.get(fmt)
        except UnsupportedFormatError:
            return False
        return True

    def formats(self) -> List[NotationFormat]:
        return list(self._handlers)

    @classmethod
    def with_defaults(cls, config: Optional[EngineConfig] = None) -> 'FormatRegistry':
        """Registry with every built-in format, using the config's profiles"""
        config = config or default_config()
        registry = cls()
        registry.register(NotationFormat.CHORDPRO, ChordProParser(),
                          ChordProRenderer(config.profile(NotationFormat.CHORDPRO)))
        registry.register(NotationFormat.ONSONG, OnSongParser(),
                          OnSongRenderer(config.profile(NotationFormat.ONSONG)))
        registry.register(NotationFormat.SONGBOOK, SongbookParser(),
                          SongbookRenderer(config.profile(NotationFormat.SONGBOOK)))
        registry.register(NotationFormat.NASHVILLE, NashvilleParser(default_key=config.default_key),
                          NashvilleRenderer(config.profile(NotationFormat.NASHVILLE)))
        registry.register(NotationFormat.GUITAR_TABS, GuitarTabsParser(),
                          GuitarTabsRenderer(config.profile(NotationFormat.GUITAR_TABS)))
        registry.register(NotationFormat.PLANNING_CENTER, PlanningCenterParser(),
                          PlanningCenterRenderer(config.profile(NotationFormat.PLANNING_CENTER)))
        return registry
