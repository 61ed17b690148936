"""
Configuration for relsub.
"""

import copy
import os
import re
import yaml
from pathlib import Path
from typing import Dict, Any, Optional, Union, cast

from relsub.core.exceptions import ConfigurationError
from relsub.core.logging import logger

CONFIG_FILE_NAME = ".relsub"

RF2_COLUMNS = (
    "id",
    "effective_time",
    "active",
    "module_id",
    "source_id",
    "destination_id",
    "group",
    "type_id",
    "characteristic_type_id",
    "modifier_id",
)


class ConfigValidator:
    """
    Configuration validator.

    Validations:
    1. RF2 column positions are distinct non-negative integers
    2. SCTIDs are positive integers
    3. Report limits are non-negative
    4. The effective time pattern compiles
    5. Safety policy and exclusive types are well formed
    """

    KNOWN_POLICIES = ("authoring", "permissive")

    def validate_config(self, config: Dict[str, Any]) -> None:
        """Validate the merged configuration, raising ConfigurationError on the first problem."""
        rf2 = config.get("rf2", {})
        columns = rf2.get("columns", {})
        for name in RF2_COLUMNS:
            position = columns.get(name)
            if not isinstance(position, int) or isinstance(position, bool) or position < 0:
                logger.error("Invalid RF2 column {name}: {position}", name=name, position=position)
                raise ConfigurationError(
                    f"Invalid RF2 column position for '{name}': {position}",
                    context={"setting": f"rf2.columns.{name}"},
                )
        if len(set(columns[name] for name in RF2_COLUMNS)) != len(RF2_COLUMNS):
            raise ConfigurationError("RF2 column positions must be distinct")

        for setting in (
            "rf2.stated_characteristic_id",
            "rf2.inferred_characteristic_id",
            "hierarchy.is_a_type_id",
        ):
            value = self._lookup(config, setting)
            if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                raise ConfigurationError(
                    f"Invalid SCTID for '{setting}': {value}", context={"setting": setting}
                )

        pattern = rf2.get("effective_time_pattern")
        try:
            re.compile(pattern)
        except (re.error, TypeError) as e:
            raise ConfigurationError(
                f"Invalid effective time pattern: {pattern}", cause=e
            ) from e

        limit = self._lookup(config, "report.failure_limit")
        if not isinstance(limit, int) or isinstance(limit, bool) or limit < 0:
            raise ConfigurationError(f"Invalid report.failure_limit: {limit}")

        safety = config.get("safety", {})
        policy = safety.get("policy")
        if policy not in self.KNOWN_POLICIES:
            raise ConfigurationError(
                f"Unknown safety policy '{policy}'. Allowed: {', '.join(self.KNOWN_POLICIES)}"
            )

        exclusive = safety.get("group_exclusive_types")
        if exclusive != "*" and not (
            isinstance(exclusive, list)
            and all(isinstance(t, int) and not isinstance(t, bool) for t in exclusive)
        ):
            raise ConfigurationError(
                "safety.group_exclusive_types must be '*' or a list of type SCTIDs"
            )

    @staticmethod
    def _lookup(config: Dict[str, Any], dotted: str) -> Any:
        current: Any = config
        for part in dotted.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
        return current


class Settings:
    """
    Run configuration.

    Priority order:
    1. Default values
    2. YAML file (`--config` or `.relsub` in the working directory)
    3. Environment variables
    """

    def __init__(self, config_path: Optional[Union[str, Path]] = None) -> None:
        self._explicit_path = Path(config_path) if config_path else None
        self.config = self._load_config()
        self.validator = ConfigValidator()
        self.validator.validate_config(self.config)
        logger.debug(
            "Settings initialized from {source}",
            source=str(self._find_config_file() or "defaults"),
        )

    def _get_default_config(self) -> Dict[str, Any]:
        """Defaults for an international edition RF2 release."""
        return {
            "rf2": {
                "delimiter": "\t",
                "line_terminator": "\r\n",
                "encoding": "utf-8",
                "active_flag": "1",
                "inactive_flag": "0",
                "stated_characteristic_id": 900000000000010007,
                "inferred_characteristic_id": 900000000000011006,
                "effective_time_pattern": r"[0-9]{8}",
                "columns": {name: index for index, name in enumerate(RF2_COLUMNS)},
            },
            "descriptions": {
                "fsn_type_id": 900000000000003001,
                "columns": {"active": 2, "concept_id": 4, "type_id": 6, "term": 7},
            },
            "hierarchy": {"is_a_type_id": 116680003},
            "safety": {"policy": "authoring", "group_exclusive_types": []},
            "report": {"failure_limit": 10},
            "logging": {"level": "INFO", "file": None, "rotation_size_mb": 10},
        }

    def _find_config_file(self) -> Optional[Path]:
        """Explicit path first, then `.relsub` in the current directory."""
        if self._explicit_path is not None:
            return self._explicit_path

        local_config = Path.cwd() / CONFIG_FILE_NAME
        if local_config.is_file():
            return local_config

        return None

    def _load_config(self) -> Dict[str, Any]:
        """Merge defaults, the YAML file and environment overrides."""
        defaults = self._get_default_config()

        config_path = self._find_config_file()
        if config_path is not None:
            if not config_path.is_file():
                raise ConfigurationError(
                    f"Configuration file not found: {config_path}",
                    context={"file": str(config_path)},
                )
            try:
                with open(config_path, encoding="utf-8") as f:
                    file_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.error("Error reading configuration file {file}", file=str(config_path))
                raise ConfigurationError(
                    f"Error reading configuration file: {e}", cause=e
                ) from e

            if file_config:
                if not isinstance(file_config, dict):
                    raise ConfigurationError(
                        f"Configuration file must contain a mapping: {config_path}"
                    )
                self._deep_merge(defaults, file_config)

        env_overrides = {
            "RELSUB_LOG_LEVEL": (("logging", "level"), str),
            "RELSUB_IS_A_TYPE": (("hierarchy", "is_a_type_id"), int),
            "RELSUB_FAILURE_LIMIT": (("report", "failure_limit"), int),
        }

        for env_key, (path_tuple, convert) in env_overrides.items():
            env_value = os.getenv(env_key)
            if env_value:
                try:
                    value_to_set: Any = convert(env_value)
                except ValueError as e:
                    raise ConfigurationError(
                        f"Invalid value for {env_key}: {env_value}", cause=e
                    ) from e
                self._set_nested(defaults, path_tuple, value_to_set)

        return defaults

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> None:
        """Deep merge of dictionaries."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(cast(Dict[str, Any], base[key]), cast(Dict[str, Any], value))
            else:
                base[key] = copy.deepcopy(value)

    def _set_nested(self, data: Dict[str, Any], path: tuple[str, ...], value: Any) -> None:
        """Set value at nested path."""
        current = data
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with support for dotted paths ("rf2.columns.id")."""
        if "." in key:
            current: Any = self.config
            for part in key.split("."):
                if isinstance(current, dict) and part in current:
                    current = current[part]
                else:
                    return default
            return current
        return self.config.get(key, default)

    def require(self, key: str) -> Any:
        """
        Get required value or raise exception.

        Useful for values the run cannot proceed without.
        """
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            logger.error("Required config missing: {key}", key=key)
            raise ConfigurationError(f"Missing required config: {key}")
        return value
