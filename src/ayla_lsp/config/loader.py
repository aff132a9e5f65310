from __future__ import annotations

import tomllib
from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import TypeVar, cast

from ayla_lsp.config.types import AnalysisSettings, AylaConfig, LogLevel, ServerSettings

E = TypeVar("E", bound=Enum)

CONFIG_FILENAME = "ayla-lsp.toml"


def discover_config_path(*, cwd: Path, explicit_config: Path | None) -> Path | None:
    if explicit_config is not None:
        return explicit_config
    candidate = cwd / CONFIG_FILENAME
    return candidate if candidate.is_file() else None


def load_config(path: str | Path) -> AylaConfig:
    config_path = Path(path)
    with config_path.open("rb") as f:
        payload = tomllib.load(f)

    if not isinstance(payload, Mapping):
        raise ValueError("config payload must be a TOML table/object")

    root = cast(Mapping[str, object], payload)
    schema_version = _require_str(root, "schema_version")
    if schema_version != "1":
        raise ValueError('`schema_version` must be "1"')

    return AylaConfig(
        schema_version=schema_version,
        server=_parse_server(root.get("server"), path="server"),
        analysis=_parse_analysis(root.get("analysis"), path="analysis"),
    )


def _parse_server(raw: object, *, path: str) -> ServerSettings:
    table = _require_mapping(raw, path)
    defaults = ServerSettings()

    log_level = _parse_enum(
        table.get("log_level", defaults.log_level.value),
        enum_cls=LogLevel,
        path=f"{path}.log_level",
    )
    log_file = defaults.log_file
    if "log_file" in table:
        log_file = _parse_optional_non_empty_str(table.get("log_file"), path=f"{path}.log_file")
    return ServerSettings(log_level=log_level, log_file=log_file)


def _parse_analysis(raw: object, *, path: str) -> AnalysisSettings:
    table = _require_mapping(raw, path)
    defaults = AnalysisSettings()

    hover_language = defaults.hover_language
    if "hover_language" in table:
        hover_language = _require_str(table, "hover_language", path=f"{path}.hover_language")

    semantic = table.get("semantic_diagnostics", defaults.semantic_diagnostics)
    if not isinstance(semantic, bool):
        raise ValueError(f"`{path}.semantic_diagnostics` must be a boolean")

    max_errors = _parse_positive_int(
        table.get("max_parse_errors", defaults.max_parse_errors),
        path=f"{path}.max_parse_errors",
    )
    return AnalysisSettings(
        hover_language=hover_language,
        semantic_diagnostics=semantic,
        max_parse_errors=max_errors,
    )


def _require_mapping(raw: object, path: str) -> Mapping[str, object]:
    if raw is None:
        return {}
    if not isinstance(raw, Mapping):
        raise ValueError(f"`{path}` must be a TOML table/object")
    return cast(Mapping[str, object], raw)


def _require_str(table: Mapping[str, object], key: str, *, path: str | None = None) -> str:
    raw = table.get(key)
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"`{path or key}` must be a non-empty string")
    return raw.strip()


def _parse_optional_non_empty_str(raw: object, *, path: str) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str) or not raw.strip():
        raise ValueError(f"`{path}` must be a non-empty string when provided")
    return raw.strip()


def _parse_positive_int(raw: object, *, path: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise ValueError(f"`{path}` must be an integer")
    if raw < 1:
        raise ValueError(f"`{path}` must be >= 1")
    return raw


def _parse_enum(raw: object, *, enum_cls: type[E], path: str) -> E:
    if not isinstance(raw, str):
        raise ValueError(f"`{path}` must be a string")
    try:
        return enum_cls(raw)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValueError(f"`{path}` must be one of: {allowed}") from exc
