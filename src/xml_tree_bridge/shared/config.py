"""Configuration classes for tree/XML conversions.

Each component has its own dataclass validated in ``__post_init__``;
:class:`BridgeConfig` aggregates them and round-trips through JSON so a
configuration can be kept in a file next to the data it describes.
"""

import codecs
import json
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

DEFAULT_FLUSH_THRESHOLD = 1000
DEFAULT_RETRY_PAUSE_MS = 250
VALID_LOGGING_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def _check_encoding(encoding: str) -> None:
    try:
        codecs.lookup(encoding)
    except LookupError:
        raise ValueError(f"Unknown encoding: {encoding}") from None


@dataclass(frozen=True)
class BuilderConfig:
    """Configuration for the DOM-based tree serializer."""

    create_empty_tags: bool = False
    collapse_empty_tags: bool = True
    version: str = "1.0"
    encoding: str = "utf-8"
    pretty_print: bool = True

    def __post_init__(self) -> None:
        """Validate builder configuration."""
        _check_encoding(self.encoding)
        if not self.version:
            raise ValueError("version cannot be empty")


@dataclass(frozen=True)
class WriterConfig:
    """Configuration for the streaming XML writer."""

    base_path: str = "./"
    file_name: Optional[str] = None
    flush_threshold: int = DEFAULT_FLUSH_THRESHOLD
    indent: str = "  "
    version: str = "1.0"
    encoding: str = "UTF-8"
    force_character_data: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        """Validate writer configuration."""
        if self.flush_threshold <= 0:
            raise ValueError("flush_threshold must be > 0")
        if self.indent.strip():
            raise ValueError("indent must only contain whitespace")
        _check_encoding(self.encoding)
        if not isinstance(self.force_character_data, frozenset):
            object.__setattr__(
                self, "force_character_data", frozenset(self.force_character_data)
            )


@dataclass(frozen=True)
class ReaderConfig:
    """Configuration for reading XML files into trees."""

    base_path: str = "./"
    file_name: Optional[str] = None
    remove_empty_elements: bool = True
    retries: int = 0
    retry_pause_ms: int = DEFAULT_RETRY_PAUSE_MS

    def __post_init__(self) -> None:
        """Validate reader configuration."""
        if self.retries < 0:
            raise ValueError("retries must be >= 0")
        if self.retry_pause_ms < 0:
            raise ValueError("retry_pause_ms must be >= 0")


@dataclass(frozen=True)
class BridgeConfig:
    """Complete configuration for all conversion components."""

    builder: BuilderConfig = field(default_factory=BuilderConfig)
    writer: WriterConfig = field(default_factory=WriterConfig)
    reader: ReaderConfig = field(default_factory=ReaderConfig)
    correlation_id: Optional[str] = None
    logging_level: str = "INFO"

    def __post_init__(self) -> None:
        """Validate the aggregate configuration."""
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ConfigValidationError(
                f"logging_level must be one of {list(VALID_LOGGING_LEVELS)}",
                field_name="logging_level",
            )

    def override(self, **kwargs: Any) -> "BridgeConfig":
        """Create a new configuration with specific overrides.

        Nested fields use a double underscore, e.g.
        ``config.override(writer__flush_threshold=50, reader__retries=3)``.
        """
        nested: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                nested.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        try:
            for component, values in nested.items():
                top_level[component] = replace(getattr(self, component), **values)
            return replace(self, **top_level)
        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a JSON-compatible dictionary."""
        def _convert(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {f.name: _convert(getattr(obj, f.name)) for f in fields(obj)}
            if isinstance(obj, frozenset):
                return sorted(obj)
            return obj

        result = _convert(self)
        if not isinstance(result, dict):
            raise ConfigValidationError("Configuration serialization failed")
        return result

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files do
        not go unnoticed.
        """
        components = {
            "builder": BuilderConfig,
            "writer": WriterConfig,
            "reader": ReaderConfig,
        }
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {sorted(unknown)}",
                suggestions=[f"Valid keys are {sorted(known)}"],
            )

        values: Dict[str, Any] = {}
        try:
            for key, value in data.items():
                if key in components:
                    if not isinstance(value, dict):
                        raise ConfigValidationError(
                            f"{key} must be an object", field_name=key
                        )
                    if key == "writer" and "force_character_data" in value:
                        value = dict(value)
                        value["force_character_data"] = frozenset(
                            value["force_character_data"]
                        )
                    values[key] = components[key](**value)
                else:
                    values[key] = value
            return cls(**values)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e)) from e

    @classmethod
    def from_json(cls, json_str: str) -> "BridgeConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "BridgeConfig":
        """Load configuration from a JSON file."""
        config_path = Path(path)
        try:
            content = config_path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration file {config_path}: {e}") from e
        return cls.from_json(content)
