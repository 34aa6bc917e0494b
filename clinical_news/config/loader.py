"""Configuration loader with structured validation errors."""

import hashlib
from pathlib import Path
from typing import TypeVar

import structlog
import yaml
from pydantic import BaseModel, ValidationError

from clinical_news.config.schemas.ranking import RankingConfig
from clinical_news.config.schemas.sources import SourcesConfig


logger = structlog.get_logger()

ConfigT = TypeVar("ConfigT", bound=BaseModel)


class ConfigValidationError(Exception):
    """Raised when a configuration file is missing, unparseable or invalid."""

    def __init__(self, errors: list[dict[str, str]], file_path: str) -> None:
        """Initialize the error.

        Args:
            errors: List of validation error details (loc, msg, type).
            file_path: Path to the file that failed validation.
        """
        self.errors = errors
        self.file_path = file_path
        super().__init__(f"Validation failed for {file_path}: {len(errors)} errors")


class ConfigLoader:
    """Loads and validates the YAML configuration files.

    Every failure (missing file, YAML syntax, schema) is reported as a
    ConfigValidationError carrying loc/msg/type records.
    """

    def __init__(self, request_id: str = "") -> None:
        """Initialize the loader.

        Args:
            request_id: Identifier used to correlate log events.
        """
        self._log = logger.bind(component="config", request_id=request_id)
        self._file_checksums: dict[str, str] = {}

    @property
    def file_checksums(self) -> dict[str, str]:
        """SHA-256 checksums of the files loaded so far."""
        return self._file_checksums.copy()

    def load_sources(self, path: Path) -> SourcesConfig:
        """Load sources.yaml.

        Raises:
            ConfigValidationError: If the file is missing or invalid.
        """
        config = self._load(path, SourcesConfig, file_type="sources")
        self._log.info(
            "sources_config_loaded",
            source_count=len(config.sources),
            enabled_count=len(config.enabled_sources),
        )
        return config

    def load_ranking(self, path: Path | None) -> RankingConfig:
        """Load ranking.yaml, falling back to defaults when no path is given.

        Raises:
            ConfigValidationError: If a given file is missing or invalid.
        """
        if path is None:
            return RankingConfig()
        return self._load(path, RankingConfig, file_type="ranking")

    def _load(self, path: Path, model: type[ConfigT], file_type: str) -> ConfigT:
        log = self._log.bind(file_path=str(path), file_type=file_type)
        log.info("loading_config_file")

        try:
            content_bytes = path.read_bytes()
        except FileNotFoundError as e:
            log.error("config_file_not_found", error=str(e))
            raise ConfigValidationError(
                [{"loc": "file", "msg": str(e), "type": "file_not_found"}],
                str(path),
            ) from e

        checksum = hashlib.sha256(content_bytes).hexdigest()
        self._file_checksums[str(path.resolve())] = checksum

        try:
            data = yaml.safe_load(content_bytes.decode("utf-8")) or {}
        except yaml.YAMLError as e:
            log.error("config_yaml_parse_error", error=str(e))
            raise ConfigValidationError(
                [{"loc": "yaml", "msg": str(e), "type": "yaml_parse_error"}],
                str(path),
            ) from e

        try:
            config = model.model_validate(data)
        except ValidationError as e:
            errors = [
                {
                    "loc": ".".join(str(loc) for loc in err["loc"]) or "root",
                    "msg": err["msg"],
                    "type": err["type"],
                }
                for err in e.errors()
            ]
            log.error(
                "config_validation_failed",
                validation_error_count=len(errors),
                errors=errors,
            )
            raise ConfigValidationError(errors, str(path)) from e

        log.info("config_file_loaded", file_sha256=checksum)
        return config
