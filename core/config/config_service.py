"""Typed, layered configuration loader with precedence handling."""
from __future__ import annotations

import os
import configparser
from dataclasses import dataclass, fields
from pathlib import Path
from threading import RLock
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

# --------------------------------------------------------------------------- #
#  Paths & default definitions
# --------------------------------------------------------------------------- #

def _find_project_root() -> Path:
    here = Path(__file__).resolve()
    for parent in here.parents:
        if (parent / "core").is_dir():
            return parent
    return here.parent

PROJECT_ROOT = _find_project_root()
CONFIG_DIR = PROJECT_ROOT / "core" / "config"
DEFAULTS_INI = CONFIG_DIR / "defaults.ini"
ENV_PREFIX = "LABORCOUNTER_"


def _data_dir() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "LaborCounter"
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share")) / "laborcounter"


_DEFAULTS: Dict[str, Dict[str, Any]] = {
    "Storage": {
        "path": (_data_dir() / "sessions.db").as_posix(),
        "record_key": "labor-counter.session-store.v1",
        "quota_bytes": str(50 * 1024 * 1024),
        "warning_ratio": "0.8",
    },
    "Tracker": {
        "min_duration_sec": "5",
        "max_duration_sec": "180",
        "tap_debounce_ms": "1000",
        "tick_interval_ms": "1000",
        "rollover_interval_ms": "60000",
        "max_recent_entries": "10",
        "edit_window_ms": "120000",
        "clear_hold_ms": "1500",
        "timezone": "",
    },
    "Logging": {
        "db_path": (_data_dir() / "logs.db").as_posix(),
        "level": "INFO",
    },
    "General": {
        "app_name": "Labor Counter",
        "version": "",
    },
}


# --------------------------------------------------------------------------- #
#  Datamodels
# --------------------------------------------------------------------------- #

@dataclass
class StorageConfig:
    path: Path
    record_key: str = "labor-counter.session-store.v1"
    quota_bytes: int = 50 * 1024 * 1024
    warning_ratio: float = 0.8


@dataclass
class TrackerConfig:
    min_duration_sec: int = 5
    max_duration_sec: int = 180
    tap_debounce_ms: int = 1000
    tick_interval_ms: int = 1000
    rollover_interval_ms: int = 60_000
    max_recent_entries: int = 10
    edit_window_ms: int = 120_000
    clear_hold_ms: int = 1500
    timezone: str = ""


@dataclass
class LoggingConfig:
    db_path: Path
    level: str = "INFO"


@dataclass
class GeneralConfig:
    app_name: str = ""
    version: str = ""


# --------------------------------------------------------------------------- #
#  Helpers
# --------------------------------------------------------------------------- #

def _read_ini(path: Path) -> Dict[str, Dict[str, Any]]:
    if not path.exists():
        return {}
    cp = configparser.ConfigParser()
    cp.read(path, encoding="utf-8")
    return {section: dict(cp.items(section)) for section in cp.sections()}


def _apply(target: Dict[str, Dict[str, Any]], source: Dict[str, Dict[str, Any]],
           layer: str, origin: str,
           sources: Dict[Tuple[str, str], Dict[str, str]]) -> None:
    for section, items in source.items():
        sec = target.setdefault(section, {})
        for key, value in items.items():
            sec[key] = value
            sources[(section, key)] = {"layer": layer, "source": origin}


def _cast(value: Any, typ: Any) -> Any:
    # annotations are strings under `from __future__ import annotations`
    if typ in (Path, "Path"):
        return Path(str(value)).expanduser()
    if typ in (bool, "bool"):
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in {"1", "true", "yes", "on"}
    if typ in (int, "int"):
        return int(value)
    if typ in (float, "float"):
        return float(value)
    return str(value)


def _build_dataclass(cls: type, data: Dict[str, Any]) -> Any:
    kwargs = {}
    for field in fields(cls):
        val = data.get(field.name, field.default)
        kwargs[field.name] = _cast(val, field.type)
    return cls(**kwargs)


def _env_overlays(environ: Mapping[str, str]) -> Dict[str, Dict[str, Any]]:
    result: Dict[str, Dict[str, Any]] = {}
    for env_key, value in environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        remainder = env_key[len(ENV_PREFIX):]
        parts = remainder.split("__", 1)
        if len(parts) != 2:
            continue
        section, key = parts
        section = section.title()
        key = key.lower()
        result.setdefault(section, {})[key] = value
    return result


def _user_config_path() -> Path:
    if os.name == "nt":
        appdata = os.environ.get("APPDATA") or (Path.home() / "AppData" / "Roaming")
        return Path(appdata) / "LaborCounter" / "config.ini"
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")) / "laborcounter" / "config.ini"


# --------------------------------------------------------------------------- #
#  ConfigService
# --------------------------------------------------------------------------- #


class ConfigService:
    """Facade merging layered configuration with type safety."""

    def __init__(
        self,
        *,
        defaults_ini: Optional[Path] = None,
        user_ini: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._lock = RLock()
        self._defaults_ini = defaults_ini or DEFAULTS_INI
        self._user_ini = user_ini or _user_config_path()
        self._environ = environ if environ is not None else os.environ
        self.reload()

    # ------------------------------------------------------------------ #
    def reload(self) -> None:
        """Re-reads every layer; later layers win key by key."""
        layers = (
            ("code", "embedded", _DEFAULTS),
            ("defaults.ini", str(self._defaults_ini), _read_ini(self._defaults_ini)),
            ("env", "os.environ", _env_overlays(self._environ)),
            ("user", str(self._user_ini), _read_ini(self._user_ini)),
        )
        with self._lock:
            merged: Dict[str, Dict[str, Any]] = {}
            sources: Dict[Tuple[str, str], Dict[str, str]] = {}
            for layer, origin, data in layers:
                _apply(merged, data, layer, origin, sources)

            self._merged = merged
            self._sources = sources

            self.storage = _build_dataclass(StorageConfig, merged.get("Storage", {}))
            self.tracker = _build_dataclass(TrackerConfig, merged.get("Tracker", {}))
            self.logging = _build_dataclass(LoggingConfig, merged.get("Logging", {}))
            self.general = _build_dataclass(GeneralConfig, merged.get("General", {}))

    # ------------------------------------------------------------------ #
    def get(self, section: str, key: str, *, cast: Callable[[Any], Any] | type = str) -> Any:
        val = self._merged.get(section, {}).get(key)
        if val is None:
            return None
        if isinstance(cast, type):
            return _cast(val, cast)
        return cast(val)

    def meta_source(self, section: str, key: str) -> Dict[str, str] | None:
        return self._sources.get((section, key))
