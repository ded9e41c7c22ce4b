"""Session management models."""

from datetime import datetime
from typing import NewType, Self

from pydantic import BaseModel, Field, model_validator

from bookcatalog.core.modules.token.models import Token
from bookcatalog.utils import now

SessionId = NewType("SessionId", str)


class Session(BaseModel):
    """Binding of a client session to a token.

    The bound username always equals the token subject.
    """

    session_id: SessionId
    username: str
    token: Token
    created_at: datetime = Field(default_factory=now)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_subject(self) -> Self:
        if self.username != self.token.subject:
            raise ValueError("Session username must match token subject")
        return self
