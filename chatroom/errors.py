"""
Error taxonomy shared by the registry, message store and request handlers
"""

from typing import List, Optional

from .constants import ERROR_MESSAGES


class ChatError(Exception):
    """Base class for errors that map onto a response status"""

    status_code = 500
    default_detail = ERROR_MESSAGES["storage_failure"]

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict:
        return {"detail": self.detail}


class ValidationError(ChatError):
    """Malformed or missing fields; carries every violation found"""

    status_code = 422
    default_detail = "Validation failed"

    def __init__(self, errors: List[str], detail: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(detail)

    def to_dict(self) -> dict:
        return {"detail": self.detail, "errors": self.errors}


class ConflictError(ChatError):
    status_code = 409
    default_detail = ERROR_MESSAGES["duplicate_name"]


class NotFoundError(ChatError):
    status_code = 404
    default_detail = ERROR_MESSAGES["unknown_message"]


class ForbiddenError(ChatError):
    # The public API reports ownership violations as 401
    status_code = 401
    default_detail = ERROR_MESSAGES["not_owner"]


class UpstreamStorageError(ChatError):
    """The document store is unreachable or an operation failed"""

    status_code = 500
    default_detail = ERROR_MESSAGES["storage_failure"]

    def to_dict(self) -> dict:
        # Driver details stay in the logs
        return {"detail": self.default_detail}


class ConfigurationError(Exception):
    """Raised at startup when the environment cannot be turned into Settings"""
