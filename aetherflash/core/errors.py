"""Domain-specific errors for aetherflash."""


class AetherflashError(Exception):
    """Base error for aetherflash."""


class ConfigurationError(AetherflashError):
    """Raised when an artifact, role, or configuration reference is missing."""


class ProfileLoadError(ConfigurationError):
    """Raised when reading profile sources fails."""


class ProfileValidationError(ConfigurationError):
    """Raised when a profile file does not conform to schema or semantics."""


class DeviceNotFoundError(AetherflashError):
    """Raised when the expected board is not enumerated on USB."""


class HostEnvironmentError(AetherflashError):
    """Raised when USB enumeration itself is unusable on this host."""


class FlashError(AetherflashError):
    """Raised when the programmer ran but reported failure."""


class BuildError(AetherflashError):
    """Raised when compiling a role fails."""


class CommandError(AetherflashError):
    """Base error for external command execution."""


class CommandNotFoundError(CommandError):
    """Raised when the external executable cannot be found."""


class CommandTimeoutError(CommandError):
    """Raised when an external command exceeds its time budget."""


class CommandCancelledError(CommandError):
    """Raised when an external command is aborted through a cancel token."""
