from datetime import datetime

from pydantic import BaseModel, Field

from bookcatalog.utils import now


class Review(BaseModel):
    """A single reviewer's text about one book, keyed by (isbn, username)."""

    isbn: str
    username: str
    text: str
    created_at: datetime = Field(default_factory=now)
    updated_at: datetime = Field(default_factory=now)

    model_config = {"frozen": True}
