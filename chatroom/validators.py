"""
Structural validation of participant and message payloads
"""

from typing import Any, List, Literal, Optional, Tuple

import pydantic
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, StrictStr

from .constants import ERROR_MESSAGES, IDENTITY_HEADER, MIN_NAME_LENGTH
from .errors import ValidationError
from .logger import log_security_event
from .models import MessageDraft, MessageKind


class ParticipantPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    name: StrictStr = Field(min_length=MIN_NAME_LENGTH)


class MessagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    to: StrictStr = Field(min_length=1)
    text: StrictStr = Field(min_length=1)
    type: Literal["message", "broadcast", "private_message", "private"]

    def to_draft(self) -> MessageDraft:
        return MessageDraft(to=self.to, text=self.text, kind=MessageKind.from_client(self.type))


class LimitQuery(BaseModel):
    limit: PositiveInt


def _describe(exc: pydantic.ValidationError, root: str) -> List[str]:
    described = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or root
        described.append(f"{location}: {error['msg']}")
    return described


def _collect(model, payload: Any, root: str) -> Tuple[Optional[BaseModel], List[str]]:
    try:
        return model.model_validate(payload), []
    except pydantic.ValidationError as exc:
        return None, _describe(exc, root)


def require_participant(payload: Any) -> ParticipantPayload:
    parsed, errors = _collect(ParticipantPayload, payload, "body")
    if errors:
        log_security_event("invalid_participant_payload", {"errors": errors})
        raise ValidationError(errors, ERROR_MESSAGES["invalid_participant"])
    return parsed


def require_message(payload: Any, extra_errors: Optional[List[str]] = None) -> MessagePayload:
    """
    Parse a message payload, reporting every violation at once

    Args:
        payload: Sanitized request body
        extra_errors: Violations already found elsewhere in the request

    Raises:
        ValidationError: with all violations, body and extra combined
    """
    parsed, errors = _collect(MessagePayload, payload, "body")
    errors = list(extra_errors or []) + errors
    if errors:
        log_security_event("invalid_message_payload", {"errors": errors})
        raise ValidationError(errors, ERROR_MESSAGES["invalid_message"])
    return parsed


def identity_errors(identity: Any) -> List[str]:
    """Violations for an asserted identity that has already been sanitized"""
    if not isinstance(identity, str) or not identity:
        return [f"{IDENTITY_HEADER}: {ERROR_MESSAGES['missing_identity']}"]
    return []


def require_limit(raw: Any) -> Optional[int]:
    """
    Parse an optional limit query value

    Absent means no limit. An explicitly supplied value that is not a
    positive integer is an error, never an empty result.
    """
    if raw is None:
        return None
    parsed, errors = _collect(LimitQuery, {"limit": raw}, "limit")
    if errors:
        raise ValidationError(errors, ERROR_MESSAGES["invalid_limit"])
    return parsed.limit
