"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~rpcspec.exceptions.RpcSpecError` subclass.

Example::

    $ rpcspec --spec http://localhost:9/spec.json methods
    $ echo $?
    6   # EXIT_CONNECTION_ERROR -- the spec could not be fetched
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unknown name."""

EXIT_CONNECTION_ERROR = 6
"""The spec could not be fetched (non-success status, timeout, DNS failure)."""

EXIT_SPEC_PARSE_ERROR = 7
"""The spec document could not be decoded."""
