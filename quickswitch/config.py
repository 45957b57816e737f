"""Settings and configuration loading.

Settings come from YAML files (user, then project) deep-merged in order,
then from ``QUICKSWITCH_*`` environment variables, and are converted into
msgspec structs.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import msgspec
import yaml

from .exceptions import ConfigFileError, ConfigurationError, UnknownSearchModeError
from .models import SearchBy, SearchMode
from .prefilter import resolve_patterns, validate_patterns
from .ranking import build_comparator_chain

NEW_FILE_LOCATIONS = ("root", "current", "folder")


def default_search_modes() -> tuple[SearchMode, ...]:
    """Built-in search modes."""
    return (
        SearchMode(
            name="Recent search",
            sort_priorities=("name-match", "match-strength", "last-opened", "last-modified"),
        ),
        SearchMode(
            name="File name search",
            command_prefix=":e ",
            sort_priorities=("match-strength", "name-length", "alphabetical"),
        ),
        SearchMode(
            name="Landmark search",
            command_prefix=":l ",
            search_by=SearchBy(tag=True, header=True, link=True),
            sort_priorities=(
                "name-match",
                "tag-match",
                "header-match",
                "link-match",
                "name-length",
                "last-opened",
                "last-modified",
            ),
        ),
        SearchMode(
            name="Star search",
            command_prefix=":s ",
            sort_priorities=("starred", "last-opened", "last-modified"),
        ),
        SearchMode(
            name="Backlink search",
            command_prefix=":b ",
            is_backlink_search=True,
        ),
    )


class Settings(msgspec.Struct, frozen=True, kw_only=True):
    """User-facing configuration consumed by the switcher."""

    max_number_of_suggestions: int = 50
    search_delay_milliseconds: int = 0
    search_leading_edge: bool = False
    normalize_accents_and_diacritics: bool = False
    fuzzy_span_ratio: float = 3.0
    show_existing_files_only: bool = False
    backlink_exclude_prefix_path_patterns: tuple[str, ...] = ()
    new_file_location: str = "root"
    new_file_folder_path: str = ""
    search_commands: tuple[SearchMode, ...] = msgspec.field(
        default_factory=default_search_modes
    )

    def validate(self) -> Settings:
        """Check settings, failing on the first broken value.

        Raises:
            ConfigurationError: If any value is unusable
        """
        if self.max_number_of_suggestions < 0:
            raise ConfigurationError(
                f"max_number_of_suggestions must be >= 0, got {self.max_number_of_suggestions}"
            )
        if self.search_delay_milliseconds < 0:
            raise ConfigurationError(
                f"search_delay_milliseconds must be >= 0, got {self.search_delay_milliseconds}"
            )
        if self.fuzzy_span_ratio < 1:
            raise ConfigurationError(
                f"fuzzy_span_ratio must be >= 1, got {self.fuzzy_span_ratio}"
            )
        if self.new_file_location not in NEW_FILE_LOCATIONS:
            raise ConfigurationError(
                f"new_file_location must be one of {NEW_FILE_LOCATIONS}, "
                f"got {self.new_file_location!r}"
            )
        if not self.search_commands:
            raise ConfigurationError("At least one search command is required")

        validate_patterns(self.backlink_exclude_prefix_path_patterns)
        for mode in self.search_commands:
            build_comparator_chain(mode.sort_priorities)
            # Placeholders are legal here; resolve with a dummy dir to check types
            validate_patterns(resolve_patterns(mode.include_prefix_path_patterns, ""))
            validate_patterns(resolve_patterns(mode.exclude_prefix_path_patterns, ""))
        return self

    def mode(self, name: str) -> SearchMode:
        """Get a configured search mode by name."""
        for mode in self.search_commands:
            if mode.name == name:
                return mode
        raise UnknownSearchModeError(name)


def get_config_paths() -> list[Path]:
    """Configuration file paths in precedence order (later wins)."""
    xdg_config_home = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return [
        xdg_config_home / "quickswitch" / "config.yaml",
        Path(".quickswitch.yaml"),
        Path("quickswitch.yaml"),
    ]


def read_config_file(path: Path) -> dict[str, Any]:
    """Load a configuration mapping from a YAML file."""
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigFileError(str(path), f"invalid YAML: {e}") from e
    except OSError as e:
        raise ConfigFileError(str(path), str(e)) from e

    if not isinstance(data, dict):
        raise ConfigFileError(str(path), "top level must be a mapping")
    return data


def env_overrides() -> dict[str, Any]:
    """Collect overrides from QUICKSWITCH_* environment variables."""
    overrides: dict[str, Any] = {}
    if limit := os.environ.get("QUICKSWITCH_MAX_SUGGESTIONS"):
        overrides["max_number_of_suggestions"] = limit
    if delay := os.environ.get("QUICKSWITCH_SEARCH_DELAY_MS"):
        overrides["search_delay_milliseconds"] = delay
    if accents := os.environ.get("QUICKSWITCH_NORMALIZE_ACCENTS"):
        overrides["normalize_accents_and_diacritics"] = accents
    return overrides


def settings_from_dict(data: dict[str, Any]) -> Settings:
    """Convert a plain mapping into validated settings."""
    try:
        settings = msgspec.convert(data, type=Settings, strict=False)
    except msgspec.ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
    return settings.validate()


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from config files and environment variables.

    Args:
        path: Explicit config file; replaces the default search paths

    Returns:
        Validated settings
    """
    paths = [path] if path else [p for p in get_config_paths() if p.exists()]

    config: dict[str, Any] = {}
    for config_path in paths:
        config = _deep_merge(config, read_config_file(config_path))

    return settings_from_dict(_deep_merge(config, env_overrides()))


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep merge two dictionaries."""
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result
