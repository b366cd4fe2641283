"""Error types surfaced to clients.

Every error carries a ``type`` and a client safe ``text``. Internal details
(tracebacks, driver messages) stay in the logs.
"""

from __future__ import annotations


class LanternError(Exception):
    type = "general error"
    status_code = 500
    default_text = "Something went wrong"

    def __init__(self, text: str | None = None):
        self.text = text or self.default_text
        super().__init__(self.text)

    def to_dict(self) -> dict:
        return {"error": {"type": self.type, "text": self.text}}


class InvalidInput(LanternError):
    type = "invalid data"
    status_code = 400
    default_text = "Invalid data"


class NotAuthorized(LanternError):
    type = "not allowed"
    status_code = 401
    default_text = "Not allowed"


class DoesNotExist(LanternError):
    type = "does not exist"
    status_code = 404
    default_text = "Does not exist"


class InsufficientCandidates(DoesNotExist):
    default_text = "No game users exist for the station"


class NoActiveSession(LanternError):
    type = "no active session"
    status_code = 404
    default_text = "No active hack"


class StorageFailure(LanternError):
    type = "database"
    status_code = 500
    default_text = "Storage failure"


class ExternalFailure(LanternError):
    type = "external"
    status_code = 502
    default_text = "External failure"


class AlreadyExists(LanternError):
    type = "already exists"
    status_code = 409
    default_text = "Already exists"
