"""
Error types for the Weekly Pick'em API.

Each error carries the HTTP status it maps to; the app-level error handler
turns any ``PickemError`` raised from a view into ``{"error": message}``.
"""


class PickemError(Exception):
    """Base error with an HTTP status code"""

    status_code = 500

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        data = dict(self.payload)
        data["error"] = self.message
        return data


class ValidationError(PickemError):
    """Missing or malformed request input"""

    status_code = 400


class PicksLockedError(PickemError):
    """Picks for the week can no longer be changed"""

    status_code = 403


class NotFoundError(PickemError):
    status_code = 404


class ConflictError(PickemError):
    status_code = 409


class SyncAlreadyRunning(ConflictError):
    """A results update is already in flight in this process"""

    def __init__(self, message="Game update already in progress", **kwargs):
        super().__init__(message, **kwargs)
