"""
Canonical Plugin Mapping Catalog.

Plugin-specific CC mappings keyed by normalized plugin name. The catalog
is built from declarative YAML control descriptors (one file per plugin)
and can be written to / read from a single JSON file so the converted
form can ship without the YAML sources.

The router only ever calls lookup(device_name).
"""

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Any, Iterable, Union

import yaml

from .errors import CatalogError
from .mappings import Curve, ParameterMapping


logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r'[^a-z0-9]+')

YAML_SUFFIXES = ('.yaml', '.yml')


def normalize_plugin_name(name: str) -> str:
    """
    Catalog key for a plugin or device name.

    Lowercases and collapses every run of non-alphanumeric characters to a
    single hyphen. Leading and trailing hyphens are kept.

    Examples:
        >>> normalize_plugin_name("TAL-U-NO-LX V2")   # 'tal-u-no-lx-v2'
        >>> normalize_plugin_name("Jup-8 V4")         # 'jup-8-v4'
    """
    return _NON_ALNUM.sub('-', str(name).lower())


@dataclass
class PluginMapping:
    """A canonical mapping set for one plugin."""
    plugin_name: str
    plugin_manufacturer: Optional[str] = None
    mappings: List[ParameterMapping] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> str:
        return normalize_plugin_name(self.plugin_name)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the generated catalog JSON shape."""
        return {
            'pluginName': self.plugin_name,
            'pluginManufacturer': self.plugin_manufacturer,
            'mappings': {str(m.cc_number): m.to_dict() for m in self.mappings},
            'metadata': dict(self.metadata),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PluginMapping':
        mappings = [
            ParameterMapping.from_dict(cc, entry)
            for cc, entry in (data.get('mappings') or {}).items()
        ]
        return cls(
            plugin_name=data['pluginName'],
            plugin_manufacturer=data.get('pluginManufacturer'),
            mappings=mappings,
            metadata=dict(data.get('metadata') or {}),
        )


# =============================================================================
# YAML Descriptor Conversion
# =============================================================================

def _parse_parameter_index(value: Any) -> Optional[int]:
    """Integer parameter index, or None for named specials like 'bypass'."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    match = re.match(r'^\s*([+-]?\d+)', str(value))
    if not match:
        return None
    return int(match.group(1))


def convert_descriptor(descriptor: Dict[str, Any], source: str = "<descriptor>") -> Optional[PluginMapping]:
    """
    Convert one parsed YAML control descriptor to a PluginMapping.

    Controls are skipped when they have no cc or plugin_parameter, are
    button groups, or name a non-numeric parameter. Every converted entry
    targets device 0 with a linear curve. Entries are ordered by CC number
    and a repeated CC keeps the last control.

    Returns:
        PluginMapping, or None if the descriptor has no plugin or controls
    """
    if not isinstance(descriptor, dict):
        logger.warning(f"Skipping {source}: not a mapping document")
        return None

    plugin = descriptor.get('plugin')
    controls = descriptor.get('controls')
    if not isinstance(plugin, dict) or not plugin.get('name') or not controls:
        logger.warning(f"Skipping {source}: missing plugin or controls")
        return None

    by_cc: Dict[int, ParameterMapping] = {}
    for control in controls:
        if not isinstance(control, dict):
            continue
        if control.get('cc') is None or control.get('plugin_parameter') is None:
            continue
        if control.get('type') == 'button_group':
            continue

        parameter_index = _parse_parameter_index(control['plugin_parameter'])
        if parameter_index is None:
            continue

        cc_number = int(control['cc'])
        by_cc[cc_number] = ParameterMapping(
            cc_number=cc_number,
            device_index=0,
            parameter_index=parameter_index,
            parameter_name=control.get('name') or f"CC {cc_number}",
            curve=Curve.LINEAR,
        )

    metadata = descriptor.get('metadata') or {}
    return PluginMapping(
        plugin_name=plugin.get('name'),
        plugin_manufacturer=plugin.get('manufacturer'),
        mappings=[by_cc[cc] for cc in sorted(by_cc)],
        metadata={
            'name': metadata.get('name'),
            'description': metadata.get('description'),
            'version': descriptor.get('version'),
        },
    )


def find_yaml_files(directory: Path) -> List[Path]:
    """All YAML files under directory, in sorted path order."""
    return sorted(p for p in Path(directory).rglob('*')
                  if p.is_file() and p.suffix.lower() in YAML_SUFFIXES)


# =============================================================================
# Catalog
# =============================================================================

class CanonicalCatalog:
    """
    Canonical plugin mappings keyed by normalized plugin name.

    Usage:
        catalog = CanonicalCatalog.load_yaml_directory(Path("maps"))
        entry = catalog.lookup("Mini V4")
        if entry:
            print(entry.plugin_name, len(entry.mappings))
        catalog.write_json(Path("catalog.json"))
    """

    def __init__(self, entries: Optional[Iterable[PluginMapping]] = None):
        self._entries: Dict[str, PluginMapping] = {}
        for entry in entries or []:
            self.add(entry)

    def add(self, entry: PluginMapping) -> str:
        """Add an entry, replacing any entry with the same key. Returns the key."""
        key = entry.key
        self._entries[key] = entry
        return key

    def lookup(self, name: str) -> Optional[PluginMapping]:
        """Find the mapping set for a plugin/device name."""
        return self._entries.get(normalize_plugin_name(name))

    def keys(self) -> List[str]:
        return list(self._entries.keys())

    def entries(self) -> List[PluginMapping]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: str) -> bool:
        return normalize_plugin_name(name) in self._entries

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def load_yaml_directory(cls, directory: Union[str, Path]) -> 'CanonicalCatalog':
        """
        Build a catalog from every YAML descriptor under directory.

        Unreadable or incomplete files are logged and skipped.
        """
        directory = Path(directory)
        if not directory.is_dir():
            raise CatalogError(f"Canonical maps directory not found: {directory}")

        catalog = cls()
        yaml_files = find_yaml_files(directory)
        logger.info(f"Found {len(yaml_files)} YAML files in {directory}")

        for yaml_path in yaml_files:
            relative = yaml_path.relative_to(directory)
            try:
                with open(yaml_path, 'r', encoding='utf-8') as f:
                    descriptor = yaml.safe_load(f)
                entry = convert_descriptor(descriptor, source=str(relative))
            except (yaml.YAMLError, OSError, ValueError, TypeError) as e:
                logger.warning(f"{relative}: {e}")
                continue

            if entry and entry.plugin_name:
                catalog.add(entry)
                logger.info(f"{relative} -> {entry.plugin_name}")

        return catalog

    @classmethod
    def load_json(cls, path: Union[str, Path]) -> 'CanonicalCatalog':
        """Load a catalog written by write_json."""
        path = Path(path)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Could not read catalog {path}: {e}") from e
        if not isinstance(data, dict):
            raise CatalogError(f"Invalid catalog {path}: top level must be an object")

        catalog = cls()
        for key, entry_data in data.items():
            try:
                entry = PluginMapping.from_dict(entry_data)
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                raise CatalogError(f"Invalid catalog entry '{key}' in {path}: {e}") from e
            catalog._entries[key] = entry
        return catalog

    def to_dict(self) -> Dict[str, Any]:
        return {key: entry.to_dict() for key, entry in self._entries.items()}

    def write_json(self, path: Union[str, Path]) -> Path:
        """Write the catalog as JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2)
        return path


def load_catalog(path: Optional[Union[str, Path]]) -> CanonicalCatalog:
    """
    Load a catalog from a JSON file or a YAML descriptor directory.

    A missing or empty path yields an empty catalog.
    """
    if not path:
        return CanonicalCatalog()

    path = Path(path)
    if not path.exists():
        logger.warning(f"Catalog not found: {path} - using empty catalog")
        return CanonicalCatalog()
    if path.is_dir():
        return CanonicalCatalog.load_yaml_directory(path)
    return CanonicalCatalog.load_json(path)
