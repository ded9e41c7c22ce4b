from datetime import datetime

from pydantic import BaseModel, Field


class Token(BaseModel):
    """Signed, time-bounded proof of identity.

    `value` is the encoded JWT; the other fields mirror its claims for callers
    that should not decode it themselves.
    """

    value: str = Field(..., description="Encoded token")
    subject: str = Field(..., description="Username the token was issued to")
    issued_at: datetime
    expires_at: datetime

    model_config = {"frozen": True}
