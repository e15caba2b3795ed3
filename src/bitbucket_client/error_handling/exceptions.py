"""
Custom exceptions for the Bitbucket client.
"""

from typing import Optional, Dict, Any, Iterable


class BitbucketClientError(Exception):
    """
    Base exception for all Bitbucket client errors.

    Every error raised by the client derives from this class so the
    command layer can report failures uniformly.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """
        Initialize Bitbucket client error.

        Args:
            message: Error message
            error_code: Optional error code for categorization
            context: Additional context information
            cause: Original exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None
        }

    def __str__(self) -> str:
        parts = [self.message]

        if self.error_code:
            parts.append(f"Code: {self.error_code}")

        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"Context: {context_str}")

        if self.cause:
            parts.append(f"Caused by: {self.cause}")

        return " | ".join(parts)


class NotAuthenticatedError(BitbucketClientError):
    """Raised when an operation needs a session and none is open."""

    def __init__(self, message: str = "Not logged in. Run 'bitbucket login' first.", **kwargs):
        kwargs.setdefault('error_code', 'NOT_AUTHENTICATED')
        super().__init__(message, **kwargs)


class AuthenticationError(BitbucketClientError):
    """
    Exception for rejected credentials or token exchanges.

    The remote service's error payload is preserved verbatim so callers
    can report the provider's own explanation.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        payload: Optional[Any] = None,
        **kwargs
    ):
        """
        Initialize authentication error.

        Args:
            message: Error message
            status_code: HTTP status returned by the remote service
            payload: Error payload returned by the remote service
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if status_code is not None:
            context['status_code'] = status_code

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'AUTHENTICATION_FAILED')
        super().__init__(message, **kwargs)

        self.status_code = status_code
        self.payload = payload


class UnsupportedAuthError(BitbucketClientError):
    """Raised when the active session's auth type cannot reach an API."""

    def __init__(self, message: str, auth_type: Optional[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if auth_type:
            context['auth_type'] = auth_type

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'UNSUPPORTED_AUTH')
        super().__init__(message, **kwargs)

        self.auth_type = auth_type


class ApiError(BitbucketClientError):
    """
    Exception for non-2xx responses from the Bitbucket API.

    Carries the HTTP status together with the parsed response payload
    (or the raw body text when it is not JSON).
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        payload: Optional[Any] = None,
        method: Optional[str] = None,
        url: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize API error.

        Args:
            message: Error message
            status_code: HTTP status code of the response
            payload: Parsed error payload
            method: HTTP method of the failed request
            url: URL of the failed request
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        context['status_code'] = status_code
        if method:
            context['method'] = method
        if url:
            context['url'] = url

        kwargs['context'] = context
        kwargs.setdefault('error_code', f'HTTP_{status_code}')
        super().__init__(message, **kwargs)

        self.status_code = status_code
        self.payload = payload
        self.method = method
        self.url = url


class NoChangesSpecifiedError(BitbucketClientError):
    """Raised when an update is requested without any field to change."""

    def __init__(self, message: str = "No changes specified", **kwargs):
        kwargs.setdefault('error_code', 'NO_CHANGES')
        super().__init__(message, **kwargs)


class ValidationError(BitbucketClientError):
    """
    Exception for caller-supplied values outside their allowed set.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        allowed: Optional[Iterable[str]] = None,
        **kwargs
    ):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Name of the offending field
            value: Rejected value
            allowed: Values the field accepts
            **kwargs: Additional arguments for base class
        """
        context = kwargs.get('context', {})
        if field:
            context['field'] = field
        if value is not None:
            context['value'] = value

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'VALIDATION_FAILED')
        super().__init__(message, **kwargs)

        self.field = field
        self.value = value
        self.allowed = list(allowed) if allowed is not None else None


class NoTeamsAvailableError(BitbucketClientError):
    """Raised when a team role filter matches no team."""

    def __init__(self, role: str, **kwargs):
        context = kwargs.get('context', {})
        context['role'] = role

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'NO_TEAMS')
        super().__init__(f"No teams visible for role '{role}'", **kwargs)

        self.role = role


class SessionStorageError(BitbucketClientError):
    """Exception for failures reading or writing the persisted session."""

    def __init__(self, message: str, storage: Optional[str] = None, **kwargs):
        context = kwargs.get('context', {})
        if storage:
            context['storage'] = storage

        kwargs['context'] = context
        kwargs.setdefault('error_code', 'SESSION_STORAGE')
        super().__init__(message, **kwargs)

        self.storage = storage
