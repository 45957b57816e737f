"""Exception classes for the quick switcher core."""


class QuickSwitchError(Exception):
    """Base exception for quick switcher errors."""

    pass


class ConfigurationError(QuickSwitchError, ValueError):
    """Raised when a search mode or setting is unusable."""

    pass


class UnknownSortCriterionError(ConfigurationError):
    """Raised when a sort priority name is not recognized."""

    def __init__(self, name: str):
        """Initialize with the unrecognized criterion name."""
        self.name = name
        super().__init__(f"Unknown sort criterion: {name!r}")


class InvalidPatternError(ConfigurationError):
    """Raised when a path-prefix pattern is malformed."""

    def __init__(self, pattern: object, message: str):
        """Initialize with pattern and reason."""
        self.pattern = pattern
        super().__init__(f"Invalid path pattern {pattern!r}: {message}")


class UnknownSearchModeError(ConfigurationError):
    """Raised when a search mode is requested by a name that is not configured."""

    def __init__(self, name: str):
        """Initialize with the requested mode name."""
        self.name = name
        super().__init__(f"Search mode not found: {name}")


class ConfigFileError(ConfigurationError):
    """Raised when a configuration file cannot be read or parsed."""

    def __init__(self, path: str, details: str = ""):
        """Initialize with path and details."""
        self.path = path
        message = f"Error reading config file {path}"
        if details:
            message += f": {details}"
        super().__init__(message)
