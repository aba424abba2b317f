"""Exception hierarchy for rpcspec.

All exceptions inherit from :class:`RpcSpecError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`rpcspec.exit_codes`.
Inside the library these exceptions never cross the
:meth:`~rpcspec.repository.SpecRepository.load_spec` boundary: the
repository converts them into its ``error`` field. The CLI entry point
:func:`rpcspec.app.main` catches ``RpcSpecError`` and exits with the
appropriate code.

Subclass hierarchy::

    RpcSpecError (exit 1)
    +-- SpecFetchError      (exit 6)
    +-- SpecParseError      (exit 7)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

from typing import Optional

from rpcspec.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_SPEC_PARSE_ERROR,
)


class RpcSpecError(Exception):
    """Base exception for all rpcspec errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class SpecFetchError(RpcSpecError):
    """Raised when the spec URL answers with a non-success status or cannot be reached.

    Args:
        message: Human-readable error description.
        status_code: HTTP status of the response, ``None`` for network-level
            failures where no response was received.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SpecParseError(RpcSpecError):
    """Raised when the spec body is not valid JSON or has the wrong shape."""

    exit_code = EXIT_SPEC_PARSE_ERROR


class ConfigError(RpcSpecError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
