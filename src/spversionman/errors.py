"""Exception classes for spversionman operations."""

from typing import Any, Dict, List, Optional


class SpVersionError(Exception):
    """Base exception for spversionman operations."""

    def __init__(
        self,
        message: str,
        resource: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        """Initialize the error.

        Args:
            message: Error message
            resource: Site URL related to the error
            context: Additional context information
        """
        super().__init__(message)
        self.message = message
        self.resource = resource
        self.context = context or {}


class ValidationError(SpVersionError):
    """Raised when a settings value fails validation."""


class InvalidBoundError(ValidationError):
    """Raised when a numeric setting is below its allowed minimum."""

    def __init__(self, field_name: str, value: int, minimum: int):
        """Initialize invalid bound error.

        Args:
            field_name: Name of the offending setting
            value: Value that was supplied
            minimum: Smallest accepted value
        """
        super().__init__(
            f"{field_name} must be at least {minimum} (got {value})",
            context={"field": field_name, "value": value, "minimum": minimum},
        )
        self.field_name = field_name
        self.value = value
        self.minimum = minimum


class AmbiguousSourceError(ValidationError):
    """Raised when more than one mutually exclusive setting is present."""

    def __init__(self, fields: List[str], message: Optional[str] = None):
        """Initialize ambiguous source error.

        Args:
            fields: Names of the settings that are set at the same time
            message: Optional override for the default message
        """
        super().__init__(
            message or f"Only one of {', '.join(fields)} may be set",
            context={"fields": fields},
        )
        self.fields = fields


class MissingSourceError(ValidationError):
    """Raised when interactive settings entry is abandoned or yields nothing."""


class AuthError(SpVersionError):
    """Raised when a session cannot be established for a resource."""


class RemoteError(SpVersionError):
    """Base class for failures reported by the remote management API."""


class RateLimitedError(RemoteError):
    """Raised when the remote API throttles a request."""

    def __init__(
        self,
        message: str = "Request was throttled",
        retry_after: Optional[float] = None,
        resource: Optional[str] = None,
    ):
        """Initialize rate limited error.

        Args:
            message: Error message
            retry_after: Seconds the server asked us to wait, if provided
            resource: Site URL related to the error
        """
        super().__init__(message, resource=resource, context={"retry_after": retry_after})
        self.retry_after = retry_after


class RemoteFaultError(RemoteError):
    """Raised for non-throttling failures from the remote API."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        resource: Optional[str] = None,
    ):
        """Initialize remote fault error.

        Args:
            message: Error detail returned by the service
            status_code: HTTP status code, if the failure came from a response
            error_code: Service error code, if one was returned
            resource: Site URL related to the error
        """
        super().__init__(
            message,
            resource=resource,
            context={"status_code": status_code, "error_code": error_code},
        )
        self.status_code = status_code
        self.error_code = error_code


class ExhaustedRetriesError(SpVersionError):
    """Raised when a throttled call is still failing after every attempt."""

    def __init__(self, attempts: int, last_error: RateLimitedError, resource: Optional[str] = None):
        """Initialize exhausted retries error.

        Args:
            attempts: Number of attempts made
            last_error: The final throttling error
            resource: Site URL related to the error
        """
        super().__init__(
            f"Still throttled after {attempts} attempts: {last_error.message}",
            resource=resource,
            context={"attempts": attempts},
        )
        self.attempts = attempts
        self.last_error = last_error


class EmptyBatchError(SpVersionError):
    """Raised when a batch is started with no resources to process."""

    def __init__(self, description: str = ""):
        """Initialize empty batch error.

        Args:
            description: Description of the batch that had nothing to do
        """
        message = "No resources to process"
        if description:
            message += f" for '{description}'"
        super().__init__(message)
        self.description = description


class ConfigurationError(SpVersionError):
    """Raised when required configuration is missing or malformed."""
