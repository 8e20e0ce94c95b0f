"""Error classification and reporting for opencode-agents."""

import errno
import subprocess
from dataclasses import dataclass

from opencode_agents.errors.taxonomy import AgentsError, ErrorCategory


@dataclass
class ClassifiedError:
    """An exception mapped onto the error taxonomy.

    Attributes:
        category: The error category
        original_error: The original exception that was raised
        context: Additional context about the error (file paths, etc.)
        user_message: User-friendly error message
        suggestion: Human-readable suggestion for fixing the error
    """

    category: ErrorCategory
    original_error: Exception
    context: dict
    user_message: str
    suggestion: str | None = None


@dataclass
class ErrorReport:
    """What the CLI shows and returns for a failed command.

    Attributes:
        message: Message printed with the [ERROR] prefix
        suggestion: Optional follow-up hint
        exit_code: Process exit code
    """

    message: str
    suggestion: str | None = None
    exit_code: int = 1


# Default hints per category, used when the raising site gave none
DEFAULT_SUGGESTIONS: dict[ErrorCategory, str] = {
    ErrorCategory.PREREQUISITE_MISSING: "Install the missing tool and make sure it is on PATH.",
    ErrorCategory.NETWORK_ERROR: "Check your internet connection and the repository URL.",
    ErrorCategory.INVALID_REPOSITORY: "Make sure the source contains a .opencode directory.",
    ErrorCategory.TARGET_NOT_FOUND: "Create the directory first or pass an existing path.",
    ErrorCategory.VERIFICATION_FAILED: "Please check the project directory.",
    ErrorCategory.PERMISSION_DENIED: "Check file permissions with `ls -la`.",
}


class ErrorHandler:
    """Central error handler.

    Maps exceptions raised anywhere in the package onto the taxonomy and
    produces the report the CLI renders.
    """

    def classify_error(self, error: Exception, context: dict | None = None) -> ClassifiedError:
        """Classify an error into a category.

        Args:
            error: The exception to classify
            context: Optional additional context about the error

        Returns:
            ClassifiedError with category and user-facing text
        """
        context = context or {}

        if isinstance(error, AgentsError):
            merged = {**error.context, **context}
            return ClassifiedError(
                category=error.category,
                original_error=error,
                context=merged,
                user_message=error.message,
                suggestion=error.suggestion or DEFAULT_SUGGESTIONS.get(error.category),
            )

        if isinstance(error, PermissionError) or (
            isinstance(error, OSError) and error.errno in (errno.EACCES, errno.EPERM)
        ):
            target = getattr(error, "filename", None) or context.get("path", "unknown")
            return ClassifiedError(
                category=ErrorCategory.PERMISSION_DENIED,
                original_error=error,
                context=context,
                user_message=f"Permission denied: {target}",
                suggestion=DEFAULT_SUGGESTIONS[ErrorCategory.PERMISSION_DENIED],
            )

        if isinstance(error, FileNotFoundError):
            target = error.filename or context.get("path", "unknown")
            return ClassifiedError(
                category=ErrorCategory.TARGET_NOT_FOUND,
                original_error=error,
                context=context,
                user_message=f"File not found: {target}",
                suggestion="Check the path and try again.",
            )

        if isinstance(error, subprocess.CalledProcessError):
            return ClassifiedError(
                category=ErrorCategory.SYSTEM_ERROR,
                original_error=error,
                context=context,
                user_message=f"Command failed with exit code {error.returncode}: {error.cmd}",
            )

        if isinstance(error, UnicodeDecodeError):
            return ClassifiedError(
                category=ErrorCategory.USER_ERROR,
                original_error=error,
                context=context,
                user_message=f"File is not valid UTF-8 text: {context.get('path', 'unknown')}",
                suggestion="Re-save the file as UTF-8 and try again.",
            )

        if isinstance(error, ValueError):
            return ClassifiedError(
                category=ErrorCategory.USER_ERROR,
                original_error=error,
                context=context,
                user_message=f"Invalid input: {error}",
            )

        error_str = str(error).lower()
        if any(x in error_str for x in ["timeout", "connection", "network", "unreachable"]):
            return ClassifiedError(
                category=ErrorCategory.NETWORK_ERROR,
                original_error=error,
                context=context,
                user_message=f"Network error: {error}",
                suggestion=DEFAULT_SUGGESTIONS[ErrorCategory.NETWORK_ERROR],
            )

        return ClassifiedError(
            category=ErrorCategory.SYSTEM_ERROR,
            original_error=error,
            context=context,
            user_message=f"Unexpected error: {error}",
        )

    def handle(self, error: Exception, context: dict | None = None) -> ErrorReport:
        """Turn an exception into the report the CLI prints.

        Args:
            error: The exception to handle
            context: Optional additional context about the error

        Returns:
            ErrorReport with message, suggestion, and exit code
        """
        classified = self.classify_error(error, context)
        return ErrorReport(
            message=classified.user_message,
            suggestion=classified.suggestion,
            exit_code=1,
        )
