"""Error taxonomy and classification for opencode-agents."""

from enum import Enum


class ErrorCategory(Enum):
    """Classification of errors for reporting."""

    PREREQUISITE_MISSING = "prerequisite_missing"  # git/npm not on PATH
    NETWORK_ERROR = "network_error"  # Clone or HTTP failures
    INVALID_REPOSITORY = "invalid_repository"  # Source tree missing .opencode
    TARGET_NOT_FOUND = "target_not_found"  # Install target does not exist
    VERIFICATION_FAILED = "verification_failed"  # Post-install check failed
    PERMISSION_DENIED = "permission_denied"  # Filesystem permission issues
    USER_ERROR = "user_error"  # Bad arguments
    SYSTEM_ERROR = "system_error"  # Anything else


class AgentsError(Exception):
    """An expected failure raised by the installer, validators, or log tools.

    Attributes:
        category: The error category
        message: User-facing message
        suggestion: Optional hint on how to fix the problem
        context: Additional context (paths, command names, etc.)
    """

    def __init__(
        self,
        category: ErrorCategory,
        message: str,
        *,
        suggestion: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
