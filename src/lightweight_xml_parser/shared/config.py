"""Configuration classes for lightweight XML parsing.

This module provides the immutable configuration object that controls the
document builder, DTD resolution and input limits.
"""

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

DEFAULT_MAX_DEPTH = 256


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Configuration for the tokenizer, document builder and DTD loader.

    Frozen so a single instance can be shared by any number of parses.
    """

    load_external_dtd: bool = True
    max_depth: int = DEFAULT_MAX_DEPTH
    max_input_bytes: Optional[int] = None
    keep_comments: bool = True
    keep_whitespace_text: bool = False
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if not isinstance(self.max_depth, int) or self.max_depth <= 0:
            raise ConfigValidationError(
                "max_depth must be > 0",
                field_name="max_depth",
                suggestions=[f"Use the default of {DEFAULT_MAX_DEPTH}"]
            )
        if self.max_input_bytes is not None and self.max_input_bytes <= 0:
            raise ConfigValidationError(
                "max_input_bytes must be > 0 or None",
                field_name="max_input_bytes"
            )

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> config = ParserConfig().override(keep_comments=False)
            >>> config.keep_comments
            False
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration fields: {', '.join(unknown)}",
                field_name=unknown[0],
                suggestions=sorted(known)
            )
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        A ``preset`` key selects one of the preset factories before the
        remaining keys are applied as overrides.
        """
        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"Configuration data must be a mapping, got {type(data).__name__}"
            )

        values = dict(data)
        preset_name = values.pop("preset", None)
        base = cls.preset(preset_name) if preset_name else cls()
        return base.override(**values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid configuration JSON: {e}") from e
        return cls.from_dict(data)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "ParserConfig":
        """Load configuration from a JSON file."""
        path_obj = Path(path)
        try:
            text = path_obj.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Could not read configuration file {path_obj}: {e}") from e
        return cls.from_json(text)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ParserConfig":
        """Default configuration: external DTDs resolved, comments kept."""
        return cls()

    @classmethod
    def strict(cls) -> "ParserConfig":
        """No external resources and no comment nodes in the tree."""
        return cls(load_external_dtd=False, keep_comments=False)

    @classmethod
    def standalone(cls) -> "ParserConfig":
        """Parse documents without consulting the resource loader."""
        return cls(load_external_dtd=False)

    @classmethod
    def preset(cls, name: str) -> "ParserConfig":
        """Look up a preset factory by name."""
        presets = {
            "default": cls.default,
            "strict": cls.strict,
            "standalone": cls.standalone,
        }
        try:
            factory = presets[name]
        except KeyError:
            raise ConfigValidationError(
                f"Unknown preset: {name}",
                field_name="preset",
                suggestions=sorted(presets)
            ) from None
        return factory()
