"""
Configuration module for PortLens.

Loads and saves scan settings as JSON, by default at
~/.config/portlens/config.json (override with PORTLENS_CONFIG).
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from portlens.shell import DEFAULT_SEARCH_PATH, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(
    os.getenv(
        "PORTLENS_CONFIG",
        Path.home() / ".config" / "portlens" / "config.json",
    )
)

DEFAULT_CONFIG = {
    "command_timeout": DEFAULT_TIMEOUT,
    "search_path": DEFAULT_SEARCH_PATH,
    "lsof_binary": "lsof",
    "ps_binary": "ps",
    "container_binary": "docker",
    "include_containers": True,
    "icon_cache_size": 128,
}


@dataclass
class ScanSettings:
    """Tunables for the scanning pipeline."""
    command_timeout: float = DEFAULT_CONFIG["command_timeout"]
    search_path: str = DEFAULT_CONFIG["search_path"]
    lsof_binary: str = DEFAULT_CONFIG["lsof_binary"]
    ps_binary: str = DEFAULT_CONFIG["ps_binary"]
    container_binary: str = DEFAULT_CONFIG["container_binary"]
    include_containers: bool = DEFAULT_CONFIG["include_containers"]
    icon_cache_size: int = DEFAULT_CONFIG["icon_cache_size"]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScanSettings":
        command_timeout = float(
            data.get("command_timeout", DEFAULT_CONFIG["command_timeout"])
        )
        if command_timeout <= 0:
            command_timeout = DEFAULT_CONFIG["command_timeout"]
        search_path = str(data.get("search_path", DEFAULT_CONFIG["search_path"]))
        lsof_binary = str(data.get("lsof_binary") or DEFAULT_CONFIG["lsof_binary"])
        ps_binary = str(data.get("ps_binary") or DEFAULT_CONFIG["ps_binary"])
        container_binary = str(
            data.get("container_binary") or DEFAULT_CONFIG["container_binary"]
        )
        include_containers = bool(
            data.get("include_containers", DEFAULT_CONFIG["include_containers"])
        )
        icon_cache_size = max(
            1, int(data.get("icon_cache_size", DEFAULT_CONFIG["icon_cache_size"]))
        )

        return cls(
            command_timeout=command_timeout,
            search_path=search_path,
            lsof_binary=lsof_binary,
            ps_binary=ps_binary,
            container_binary=container_binary,
            include_containers=include_containers,
            icon_cache_size=icon_cache_size,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "command_timeout": self.command_timeout,
            "search_path": self.search_path,
            "lsof_binary": self.lsof_binary,
            "ps_binary": self.ps_binary,
            "container_binary": self.container_binary,
            "include_containers": self.include_containers,
            "icon_cache_size": self.icon_cache_size,
        }


def ensure_config_dir(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def load_settings(path: Optional[Path] = None) -> ScanSettings:
    """
    Load settings from a JSON file.

    Args:
        path: Settings file (defaults to CONFIG_PATH)

    Returns:
        ScanSettings; defaults when the file is missing, unreadable or invalid
    """
    path = path or CONFIG_PATH
    data: Dict[str, Any] = {}
    if path.exists():
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = json.load(handle)
            if isinstance(loaded, dict):
                data = loaded
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable config %s: %s", path, e)
    try:
        return ScanSettings.from_dict(data)
    except (TypeError, ValueError) as e:
        logger.warning("Ignoring invalid config %s: %s", path, e)
        return ScanSettings()


def save_settings(settings: ScanSettings, path: Optional[Path] = None) -> None:
    """Write settings as pretty, key-sorted JSON, creating the directory."""
    path = path or CONFIG_PATH
    ensure_config_dir(path)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(settings.to_dict(), handle, indent=2, sort_keys=True)


__all__ = ["CONFIG_PATH", "ScanSettings", "load_settings", "save_settings"]
