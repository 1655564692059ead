"""Error kinds raised below the dispatcher boundary."""
from __future__ import annotations


class ScrappeyError(Exception):
    """Base class for errors the dispatcher turns into failure results."""


class RemoteCommandError(ScrappeyError):
    """Raised when a command sent to the Scrappey backend fails.

    Covers transport errors, timeouts, non-2xx statuses, undecodable bodies
    and failures reported by the backend itself.
    """


class ArgumentError(ScrappeyError, ValueError):
    """Raised when a required field is missing or an enumerated value is unknown.

    Always detected before any network call is made.
    """
