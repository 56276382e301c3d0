from __future__ import annotations

import logging
import tomllib
from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias, TypeVar

from pydantic import BaseModel, ValidationError

from svls.exceptions import ConfigMissingError, ConfigParseError, ConfigReadError
from svls.schema import RuleSettings, ServerConfiguration

DEFAULT_CONFIG_NAME = ".svls.toml"
RULE_CONFIG_NAME = ".svlint.toml"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

ModelT = TypeVar("ModelT", bound=BaseModel)

logger = logging.getLogger(__name__)


def search_config(filename: str | Path, start: Path | None = None) -> Path | None:
    """Return ``<dir>/<filename>`` for the nearest directory that has it.

    The search starts at ``start`` (the working directory by default) and
    walks up to the filesystem root.
    """
    base = start if start is not None else Path.cwd()
    for directory in (base, *base.parents):
        candidate = directory / filename
        if candidate.exists():
            return candidate
    return None


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigReadError(path) from exc
    try:
        return tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigParseError(path) from exc


def _load_model(path: Path, model: type[ModelT]) -> ModelT:
    data = _load_toml(path)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigParseError(path) from exc


def load_configuration(path: Path | None) -> ServerConfiguration:
    if path is None:
        return ServerConfiguration()
    configuration = _load_model(path, ServerConfiguration)
    logger.debug("loaded %s: %s", path, configuration)
    return configuration


def load_rule_settings(path: Path | None) -> RuleSettings:
    if path is None:
        raise ConfigMissingError(Path(RULE_CONFIG_NAME))
    settings = _load_model(path, RuleSettings)
    logger.debug("loaded %s: %d rule entries", path, len(settings.rules))
    return settings
