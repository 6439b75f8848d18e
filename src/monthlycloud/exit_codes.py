"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~monthlycloud.exceptions.MonthlyCloudError` subclass.
Only the ``monthlycloud`` console script turns these into a process exit
status; library callers catch the exceptions instead.

Example::

    $ monthlycloud get properties --id 999
    $ echo $?
    4   # EXIT_NOT_FOUND -- the API answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The access token was rejected (HTTP 401/403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404 or an empty lookup)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP error status."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""The response body could not be decoded as JSON."""

EXIT_CONFIG_ERROR = 8
"""Required configuration is missing or invalid."""
