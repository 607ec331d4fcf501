"""
Search tuning configuration for chatwise-recall.
Loaded from chatwise-search.yaml and validated against a small schema.
"""

from pathlib import Path
from typing import Any

import yaml

from chatwise_recall.config.constants import (
    CHATWISE_RECALL_HOME,
    CONFIDENCE_BASE,
    CONFIDENCE_BREADTH_SATURATION,
    CONFIDENCE_BREADTH_WEIGHT,
    CONFIDENCE_HITS_SATURATION,
    CONFIDENCE_HITS_WEIGHT,
    CONFIDENCE_STOP_THRESHOLD,
    DEFAULT_LIMIT_CHATS,
    DEFAULT_LIMIT_SNIPPETS,
    DEFAULT_RECENT_USER_SECS,
    DEFAULT_SNIPPET_WINDOW,
    MAX_LIMIT_CHATS,
    MAX_LIMIT_SNIPPETS,
    MAX_RECENT_USER_SECS,
    MAX_SNIPPET_WINDOW,
    RECENCY_CONFIDENCE_BASE,
    RECENCY_CONFIDENCE_BREADTH_WEIGHT,
    SEARCH_CONFIG_FILENAME,
)
from chatwise_recall.utils.logger import log_debug, log_error


def _number_field(default: float, min_val: float = 0.0, max_val: float = 1.0) -> dict:
    return {"type": "number", "min": min_val, "max": max_val, "default": default}


def _integer_field(default: int, min_val: int, max_val: int) -> dict:
    return {"type": "integer", "min": min_val, "max": max_val, "default": default}


SEARCH_CONFIG_SCHEMA: dict[str, dict[str, dict[str, Any]]] = {
    "confidence": {
        "base": _number_field(CONFIDENCE_BASE),
        "hits_weight": _number_field(CONFIDENCE_HITS_WEIGHT),
        "hits_saturation": _number_field(
            CONFIDENCE_HITS_SATURATION, min_val=1, max_val=1000
        ),
        "breadth_weight": _number_field(CONFIDENCE_BREADTH_WEIGHT),
        "breadth_saturation": _number_field(
            CONFIDENCE_BREADTH_SATURATION, min_val=1, max_val=1000
        ),
        "recency_base": _number_field(RECENCY_CONFIDENCE_BASE),
        "recency_breadth_weight": _number_field(RECENCY_CONFIDENCE_BREADTH_WEIGHT),
        "stop_threshold": _number_field(CONFIDENCE_STOP_THRESHOLD),
    },
    "search": {
        "limit_chats": _integer_field(DEFAULT_LIMIT_CHATS, 1, MAX_LIMIT_CHATS),
        "limit_snippets_per_chat": _integer_field(
            DEFAULT_LIMIT_SNIPPETS, 1, MAX_LIMIT_SNIPPETS
        ),
        "snippet_window": _integer_field(DEFAULT_SNIPPET_WINDOW, 1, MAX_SNIPPET_WINDOW),
        "exclude_recent_user_secs": _integer_field(
            DEFAULT_RECENT_USER_SECS, 0, MAX_RECENT_USER_SECS
        ),
    },
}


def get_search_config_path(config_dir: Path | None = None) -> Path:
    """Return the search config file path for a directory or the default home."""
    if config_dir is not None:
        return config_dir / SEARCH_CONFIG_FILENAME
    return Path(CHATWISE_RECALL_HOME or "~/.chatwise-recall").expanduser() / (
        "config/" + SEARCH_CONFIG_FILENAME
    )


def validate_search_config(
    raw_config: Any,
) -> tuple[bool, list[str], dict[str, dict[str, Any]]]:
    """Validate a raw config mapping.

    Invalid or missing values fall back to their schema default.

    Returns:
        Tuple of (is_valid, errors, normalized_config)
    """
    errors: list[str] = []
    normalized: dict[str, dict[str, Any]] = {}

    if not isinstance(raw_config, dict):
        errors.append(f"root: must be a dict, got {type(raw_config).__name__}")
        raw_config = {}

    for section, fields in SEARCH_CONFIG_SCHEMA.items():
        raw_section = raw_config.get(section, {})
        if not isinstance(raw_section, dict):
            errors.append(f"{section}: must be a dict, got {type(raw_section).__name__}")
            raw_section = {}

        normalized[section] = {}
        for key, field in fields.items():
            path = f"{section}.{key}"
            if key not in raw_section:
                normalized[section][key] = field["default"]
                continue

            value = raw_section[key]
            error = _validate_field(value, field)
            if error:
                errors.append(f"{path}: {error}")
                normalized[section][key] = field["default"]
            else:
                normalized[section][key] = value

        for key in raw_section:
            if key not in fields:
                errors.append(f"{section}.{key}: unknown field")

    for section in raw_config:
        if section not in SEARCH_CONFIG_SCHEMA:
            errors.append(f"{section}: unknown field")

    return not errors, errors, normalized


def _validate_field(value: Any, field: dict[str, Any]) -> str | None:
    if isinstance(value, bool):
        return f"must be a {field['type']}, got bool"
    if field["type"] == "integer" and not isinstance(value, int):
        return f"must be an integer, got {type(value).__name__}"
    if field["type"] == "number" and not isinstance(value, int | float):
        return f"must be a number, got {type(value).__name__}"
    if value < field["min"]:
        return f"must be >= {field['min']}, got {value}"
    if value > field["max"]:
        return f"must be <= {field['max']}, got {value}"
    return None


class SearchConfig:
    """Schema-validated search tuning configuration."""

    def __init__(self, config_dir: Path | None = None):
        self.config_file = get_search_config_path(config_dir)
        raw_config = self._load_config_from_file(self.config_file)
        self.is_valid, self.validation_errors, self._config = validate_search_config(
            raw_config
        )
        if self.validation_errors:
            log_error(
                f"Search config {self.config_file} has validation errors",
                {"errors": self.validation_errors},
            )

    def _load_config_from_file(self, config_file: Path) -> Any:
        """Load the search configuration from a YAML file."""
        try:
            if config_file.exists():
                with open(config_file, encoding="utf-8") as f:
                    return yaml.safe_load(f) or {}
            log_debug(f"No search config found at {config_file}, using defaults")
        except (OSError, yaml.YAMLError) as e:
            log_error(f"Error loading search config from {config_file}: {e}")

        return {}

    def get(self, path: str, default: Any = None) -> Any:
        """Get a value from the config using dot notation."""
        value: Any = self._config
        for key in path.split("."):
            if isinstance(value, dict) and key in value:
                value = value[key]
            else:
                return default
        return value

    def get_dict(self, path: str) -> dict[str, Any]:
        """Get a dictionary from the config using dot notation."""
        value = self.get(path)
        return dict(value) if isinstance(value, dict) else {}

    def has_validation_errors(self) -> bool:
        """Check if configuration has validation errors."""
        return not self.is_valid


class SearchConfigManager:
    """Holds the process-wide search configuration instance."""

    _default_instance: SearchConfig | None = None

    @classmethod
    def get_default(cls) -> SearchConfig:
        """Get the default search configuration instance."""
        if cls._default_instance is None:
            cls._default_instance = SearchConfig()
        return cls._default_instance

    @classmethod
    def set_default(cls, config: SearchConfig) -> None:
        """Set the default search configuration instance."""
        cls._default_instance = config

    @classmethod
    def reset_default(cls) -> None:
        """Reset the default instance (useful for testing)."""
        cls._default_instance = None
