"""Exception hierarchy for monthlycloud.

All exceptions inherit from :class:`MonthlyCloudError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`monthlycloud.exit_codes`.  The builders raise these and never
terminate the process; the CLI entry point in :func:`monthlycloud.app.main`
catches ``MonthlyCloudError`` and exits with the matching code.

Subclass hierarchy::

    MonthlyCloudError (exit 1)
    +-- InvalidUsageError    (exit 2)
    +-- AuthError            (exit 3)
    +-- NotFoundError        (exit 4)
    +-- ServerError          (exit 5)
    +-- ConnectionError_     (exit 6)
    +-- ResponseDecodeError  (exit 7)
    +-- ConfigError          (exit 8)
"""

from monthlycloud.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class MonthlyCloudError(Exception):
    """Base exception for all monthlycloud errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(MonthlyCloudError):
    """Raised for invalid CLI arguments (e.g. a ``--filter`` without ``=``)."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(MonthlyCloudError):
    """Raised when the API rejects the access token (HTTP 401 / 403)."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(MonthlyCloudError):
    """Raised when a resource does not exist.

    Produced for HTTP 404 responses, by
    :meth:`~monthlycloud.builders.api.Builder.first_or_fail` on an empty
    listing, and by :meth:`~monthlycloud.builders.base.BaseBuilder.resource_not_found`.
    """

    exit_code = EXIT_NOT_FOUND


class ServerError(MonthlyCloudError):
    """Raised when the API returns an HTTP 5xx or an unmapped 4xx status."""

    exit_code = EXIT_SERVER_ERROR


class ConnectionError_(MonthlyCloudError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


class ResponseDecodeError(MonthlyCloudError):
    """Raised when a response body is not valid JSON."""

    exit_code = EXIT_DECODE_ERROR


class ConfigError(MonthlyCloudError):
    """Raised for missing or invalid configuration (listing id, config files, credential sources)."""

    exit_code = EXIT_CONFIG_ERROR
