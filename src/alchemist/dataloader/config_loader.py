# src/alchemist/dataloader/config_loader.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from alchemist.errors import ConfigError
from alchemist.schemas.models import Config

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    @brief
    Reads config.yaml and produces a validated ``Config``.

    @details
    YAML is parsed with ``yaml.safe_load`` and validated against the
    pydantic schema (unknown keys are rejected). Optional overrides (for
    example from CLI flags) are merged over the file contents before
    validation, so they go through the same checks. Paths in the file are
    taken relative to the working directory. Every failure mode is reported
    as ``ConfigError``.
    """

    def load(self, path: Path, overrides: Mapping[str, Any] | None = None) -> Config:
        """
        @brief
        Load and validate configuration.

        @params
            path : Path
                Filesystem path to the configuration file (.yaml or .yml).
            overrides : Mapping[str, Any] | None
                Top-level keys replacing file values; ``None`` values are ignored.

        @returns
            Validated Config instance with defaults applied.

        @raises
            ConfigError
                Missing file, wrong extension, malformed YAML, non-mapping
                root or schema violation.
        """
        # (1) Parse YAML into a plain mapping
        data = self._read_yaml(path)

        # (2) Apply overrides on top of file values
        if overrides:
            data.update({k: v for k, v in overrides.items() if v is not None})

        # (3) Validate against the schema
        cfg = self._validate(data)
        logger.debug("Configuration loaded from %s", path)
        return cfg

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        if not isinstance(path, Path):
            raise ConfigError(
                message=f"Invalid path type: expected pathlib.Path, got {type(path).__name__}",
                source="ConfigLoader._read_yaml",
                suggested_action="Pass a pathlib.Path object pointing to config.yaml.",
            )
        if not path.exists():
            raise ConfigError(
                message=f"Configuration file not found: {path}",
                source="ConfigLoader._read_yaml",
                suggested_action="Create config/config.yaml or pass --config.",
            )
        if path.suffix.lower() not in {".yaml", ".yml"}:
            raise ConfigError(
                message=f"Invalid configuration file extension: {path.suffix}",
                source="ConfigLoader._read_yaml",
                suggested_action="Use a .yaml or .yml configuration file.",
            )

        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(
                message=f"YAML parsing failed: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Fix YAML syntax or indentation.",
            ) from e
        except OSError as e:
            raise ConfigError(
                message=f"Unable to read configuration file: {e}",
                source="ConfigLoader._read_yaml",
                suggested_action="Check file permissions and path accessibility.",
            ) from e

        # Empty file: all defaults
        if data is None:
            return {}
        if not isinstance(data, Mapping):
            raise ConfigError(
                message="Configuration root must be a mapping (key: value pairs).",
                source="ConfigLoader._read_yaml",
                suggested_action="Use top-level key: value pairs in config.yaml.",
            )
        return dict(data)

    def _validate(self, data: dict[str, Any]) -> Config:
        try:
            return Config.model_validate(data)
        except ValidationError as e:
            raise ConfigError(
                message=f"Invalid configuration structure: {e}",
                source="ConfigLoader._validate",
                suggested_action=(
                    "Check field names and types in config.yaml. "
                    "Unknown keys are not allowed."
                ),
            ) from e


__all__ = ["ConfigLoader"]
