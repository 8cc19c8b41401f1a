from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader for the inventory viewer.

Responsibilities:
- Load the optional YAML file (default config/viewer.yml)
- Validate it against the packaged config_schema.json
- Overlay environment variables (.env is loaded by the CLI beforehand)
- Apply defaults (sheet_tab=2026, token_path=.inventory_viewer/token.json)

A missing client id is not an error: the viewer degrades to read-only.
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/viewer.yml")
DEFAULT_SHEET_TAB = "2026"
DEFAULT_TOKEN_PATH = ".inventory_viewer/token.json"

# env var -> config key
ENV_KEYS = {
    "GOOGLE_CLIENT_ID": "client_id",
    "GOOGLE_SHEET_ID": "sheet_id",
    "GOOGLE_DRIVE_FOLDER_ID": "drive_folder_id",
    "SHEET_TAB": "sheet_tab",
    "SHEET_EXPORT_GID": "export_gid",
    "TOKEN_PATH": "token_path",
}


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class ViewerConfig:
    client_id: str | None
    sheet_id: str | None
    drive_folder_id: str | None
    sheet_tab: str = DEFAULT_SHEET_TAB
    export_gid: str | None = None
    token_path: str = DEFAULT_TOKEN_PATH

    @property
    def read_only(self) -> bool:
        """No OAuth client configured -> viewing only, writes disabled."""
        return not self.client_id

    def require_sheet_id(self) -> str:
        if not self.sheet_id:
            raise ConfigError("Sheet ID not configured (set GOOGLE_SHEET_ID)")
        return self.sheet_id

    def require_folder_id(self) -> str:
        if not self.drive_folder_id:
            raise ConfigError("Upload configuration missing (set GOOGLE_DRIVE_FOLDER_ID)")
        return self.drive_folder_id

    def require_writable(self) -> None:
        if self.read_only:
            raise ConfigError("Configuration missing: GOOGLE_CLIENT_ID not set, editing is disabled")


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return data


def _env_overrides(env: Mapping[str, str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for var, key in ENV_KEYS.items():
        value = env.get(var)
        if value is not None and value.strip() != "":
            out[key] = value.strip()
    return out


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> ViewerConfig:
    """Load configuration; environment variables take precedence over the file.

    An explicitly given path must exist. The default path is optional.
    """
    if path is not None and not path.exists():
        raise ConfigError(f"config file not found: {path}")
    cfg_path = path or DEFAULT_CONFIG_PATH
    data = _read_yaml(cfg_path) if cfg_path.exists() else {}
    _validate_config_schema(data)

    merged = {**data, **_env_overrides(os.environ if env is None else env)}
    gid = merged.get("export_gid")
    return ViewerConfig(
        client_id=merged.get("client_id") or None,
        sheet_id=merged.get("sheet_id") or None,
        drive_folder_id=merged.get("drive_folder_id") or None,
        sheet_tab=merged.get("sheet_tab") or DEFAULT_SHEET_TAB,
        export_gid=str(gid) if gid not in (None, "") else None,
        token_path=merged.get("token_path") or DEFAULT_TOKEN_PATH,
    )

