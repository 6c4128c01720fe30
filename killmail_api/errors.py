"""
Errors Module

Exceptions raised by the store and query layers. Endpoints translate them
into HTTP responses.
"""


class KillmailAPIError(Exception):
    """Base class for all service errors."""

    status_code = 500


class ParameterDecodeError(KillmailAPIError):
    """Malformed path or query string input."""

    status_code = 400


class StoreOperationError(KillmailAPIError):
    """Connectivity, cursor, timeout or document decode failure."""


class RecordNotFound(StoreOperationError):
    """Lookup by identifier matched no document."""

    def __init__(self, kill_id: int):
        super().__init__(f"no killmail found with id {kill_id}")
        self.kill_id = kill_id
