"""Error definitions and handling for diffhelper."""

from typing import Any, Dict, Optional


class DiffHelperError(Exception):
    """Base exception for diffhelper errors."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with code, message, and optional details."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class DecodeError(DiffHelperError):
    """Input line does not match the raw change grammar."""

    def __init__(self, line: str, reason: str):
        super().__init__(
            code="DECODE_FAILED",
            message=f"Cannot decode raw change line: {reason}",
            details={"line": line, "reason": reason},
        )
        self.line = line
        self.reason = reason


class ObjectReadError(DiffHelperError):
    """Git could not produce the requested object or diff."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            code="OBJECT_READ_FAILED",
            message=f"git {operation} failed: {reason}",
            details={"operation": operation, "reason": reason},
        )


class GitTimeoutError(DiffHelperError):
    """Git operation timed out."""

    def __init__(self, operation: str, timeout_seconds: int):
        super().__init__(
            code="GIT_TIMEOUT",
            message=f"Timeout during git {operation} after {timeout_seconds}s",
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )


class GitVersionUnsupportedError(DiffHelperError):
    """Git version is not supported."""

    def __init__(self, detected_version: str, required_version: str = "2.30"):
        super().__init__(
            code="GIT_VERSION_UNSUPPORTED",
            message=f"Git version {detected_version} is not supported. "
            f"Minimum required: {required_version}",
            details={
                "detected_version": detected_version,
                "required_version": required_version,
            },
        )
