"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~asyncresource.exceptions.AsyncResourceError`
subclass. Shell wrappers can inspect the exit code to tell a missing
resource apart from a broken network without parsing stderr.

Example::

    $ asyncresource get https://example.com/posts.json --cache posts.json --no-fallback
    $ echo $?
    4   # EXIT_NOT_FOUND -- nothing fetched and no cache consulted
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The remote server rejected the request (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""No value could be resolved from memory, cache, or network."""

EXIT_SERVER_ERROR = 5
"""The remote server returned an HTTP 5xx error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STORAGE_ERROR = 8
"""The persisted copy could not be read, written, or deleted."""

EXIT_PARSE_ERROR = 9
"""Fetched or cached content could not be parsed."""
