"""
Registry of plugins bundled with an IDE distribution.

Each subdirectory of ``<ide>/plugins`` is one plugin. Its id comes from
``META-INF/plugin.xml`` inside one of the jars in ``<plugin>/lib``; when no
descriptor can be read the directory name is used instead.
"""

import logging
import xml.etree.ElementTree as ET
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

PLUGIN_XML = "META-INF/plugin.xml"


@dataclass(frozen=True)
class BuiltinPlugin:
    """A plugin shipped inside the IDE distribution."""

    id: str
    directory: Path
    version: Optional[str] = None


def _read_plugin_xml(lib_dir: Path) -> Optional[ET.Element]:
    for jar in sorted(lib_dir.glob("*.jar")):
        try:
            with zipfile.ZipFile(jar) as zf:
                if PLUGIN_XML not in zf.namelist():
                    continue
                return ET.fromstring(zf.read(PLUGIN_XML))
        except (zipfile.BadZipFile, OSError, ET.ParseError) as e:
            logger.debug(f"Skipping unreadable plugin jar {jar}: {e}")
    return None


def _load_plugin(directory: Path) -> BuiltinPlugin:
    root = _read_plugin_xml(directory / "lib")
    if root is None:
        return BuiltinPlugin(id=directory.name, directory=directory)

    plugin_id = (root.findtext("id") or root.findtext("name") or directory.name).strip()
    version = root.findtext("version")
    return BuiltinPlugin(
        id=plugin_id,
        directory=directory,
        version=version.strip() if version else None,
    )


@dataclass
class BuiltinPluginsRegistry:
    """Bundled plugins indexed by plugin id."""

    plugins: Dict[str, BuiltinPlugin] = field(default_factory=dict)

    @classmethod
    def from_directory(cls, plugins_dir: Path) -> "BuiltinPluginsRegistry":
        """
        Scan a plugins directory.

        A missing directory yields an empty registry.
        """
        registry = cls()
        if not plugins_dir.is_dir():
            logger.debug(f"No bundled plugins directory: {plugins_dir}")
            return registry

        for directory in sorted(p for p in plugins_dir.iterdir() if p.is_dir()):
            plugin = _load_plugin(directory)
            registry.plugins[plugin.id] = plugin

        logger.debug(f"Found {len(registry.plugins)} bundled plugins in {plugins_dir}")
        return registry

    def find_plugin(self, name: str) -> Optional[BuiltinPlugin]:
        """Find a plugin by id, or by its directory name."""
        if name in self.plugins:
            return self.plugins[name]
        for plugin in self.plugins.values():
            if plugin.directory.name == name:
                return plugin
        return None

    @property
    def plugin_ids(self) -> List[str]:
        return sorted(self.plugins)

    def __len__(self) -> int:
        return len(self.plugins)
