"""
Format profiles and engine settings

Defaults ship as package data in formats.yaml. A user file with the same
shape can override any subset of keys.
"""

from dataclasses import dataclass, field, replace
from importlib import resources
from pathlib import Path
from typing import Dict, Optional, Union

import yaml

from .model import NotationFormat, Placement


@dataclass(frozen=True)
class FormatProfile:
    """Rendering rules for one notation format"""
    label: str
    section_gap: int = 1
    annotation_gap: int = 1
    metadata_gap: int = 1
    chord_placement: Placement = Placement.INLINE

    def boundary_gap(self, annotation_adjacent: bool) -> int:
        """Blank lines between two sections"""
        if annotation_adjacent:
            return max(self.section_gap, self.annotation_gap)
        return self.section_gap


@dataclass(frozen=True)
class EngineConfig:
    confidence_floor: float = 0.3
    default_key: str = 'C'
    profiles: Dict[NotationFormat, FormatProfile] = field(default_factory=dict, compare=False)

    def profile(self, fmt: Union[NotationFormat, str]) -> FormatProfile:
        fmt = NotationFormat.coerce(fmt)
        if fmt not in self.profiles:
            return FormatProfile(label=fmt.value)
        return self.profiles[fmt]

    @classmethod
    def from_yaml(cls, yaml_content: str, base: Optional['EngineConfig'] = None) -> 'EngineConfig':
        """Parse from YAML content, layering it over `base` when given."""
        data = yaml.safe_load(yaml_content) or {}
        config = base or cls()

        engine = data.get('engine', {})
        profiles = dict(config.profiles)
        for name, values in data.get('formats', {}).items():
            fmt = NotationFormat.coerce(name)
            current = profiles.get(fmt, FormatProfile(label=values.get('label', fmt.value)))
            updates = {k: v for k, v in values.items() if k in FormatProfile.__dataclass_fields__}
            if 'chord_placement' in updates:
                updates['chord_placement'] = Placement(updates['chord_placement'])
            for gap in ('section_gap', 'annotation_gap', 'metadata_gap'):
                if gap in updates and int(updates[gap]) < 0:
                    raise ValueError(f"{name}.{gap} must be >= 0")
            profiles[fmt] = replace(current, **updates)

        return replace(
            config,
            confidence_floor=float(engine.get('confidence_floor', config.confidence_floor)),
            default_key=str(engine.get('default_key', config.default_key)),
            profiles=profiles,
        )


def load_config(path: Optional[Union[str, Path]] = None) -> EngineConfig:
    """Packaged defaults, optionally overridden by the YAML file at `path`"""
    defaults = resources.files('chordsheet').joinpath('formats.yaml').read_text(encoding='utf-8')
    config = EngineConfig.from_yaml(defaults)
    if path is not None:
        config = EngineConfig.from_yaml(Path(path).read_text(encoding='utf-8'), base=config)
    return config


_default_config: Optional[EngineConfig] = None


def default_config() -> EngineConfig:
    """Packaged defaults, loaded once"""
    global _default_config
    if _default_config is None:
        _default_config = load_config()
    return _default_config
