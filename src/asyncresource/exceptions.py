"""Exception hierarchy for asyncresource.

All exceptions inherit from :class:`AsyncResourceError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`asyncresource.exit_codes`. The CLI entry point in
:func:`asyncresource.app.main` catches ``AsyncResourceError`` and exits
with the appropriate code.

A fetch that yields no content is *not* an exception: the resource layer
models it as ``None`` and falls back to the cache. The network errors below
only surface when :class:`~asyncresource.client.HttpFetcher` is configured
with ``catch_errors=False``.

Subclass hierarchy::

    AsyncResourceError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    +-- NotFoundError       (exit 4)
    +-- ServerError         (exit 5)
    +-- ConnectionError_    (exit 6)
    +-- StorageError        (exit 8)
    +-- ParseError          (exit 9)
    +-- ConfigError         (exit 1)
"""

from asyncresource.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_PARSE_ERROR,
    EXIT_SERVER_ERROR,
    EXIT_STORAGE_ERROR,
)


class AsyncResourceError(Exception):
    """Base exception for all asyncresource errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`asyncresource.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(AsyncResourceError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(AsyncResourceError):
    """Raised when the remote server answers HTTP 401 or 403."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(AsyncResourceError):
    """Raised on HTTP 404, or when no value can be resolved at all."""

    exit_code = EXIT_NOT_FOUND


class ServerError(AsyncResourceError):
    """Raised when the remote server returns an unexpected status (5xx and other non-2xx)."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(AsyncResourceError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class StorageError(AsyncResourceError):
    """Raised when a storage adapter fails to read, write, or delete the persisted copy."""

    exit_code = EXIT_STORAGE_ERROR


class ParseError(AsyncResourceError):
    """Raised by the bundled parsers when content cannot be decoded."""

    exit_code = EXIT_PARSE_ERROR


class ConfigError(AsyncResourceError):
    """Raised for configuration problems (invalid JSON, bad values in config or environment)."""

    exit_code = EXIT_GENERIC_FAILURE
