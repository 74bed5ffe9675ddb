"""Exceptions shared by the synchronization apps."""

from .error_codes import SyncErrorCode


class SyncError(Exception):
    """Structural failure that aborts the whole synchronization call.

    Raised inside the atomic block of an entry point so every mutation made
    during the call is rolled back.
    """

    def __init__(self, message: str, code: SyncErrorCode = SyncErrorCode.INVALID):
        self.message = message
        self.code = code
        super().__init__(message)
