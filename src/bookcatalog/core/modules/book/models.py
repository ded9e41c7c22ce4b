from pydantic import BaseModel, Field


class Book(BaseModel):
    """Catalog entry. Read-only once loaded."""

    isbn: str = Field(..., description="Catalog key")
    title: str = Field(..., description="Book title")
    author: str = Field(..., description="Book author")

    model_config = {"frozen": True}
