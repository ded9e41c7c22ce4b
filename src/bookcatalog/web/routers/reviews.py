"""Review endpoints. Mutations always act as the session's user."""

from fastapi import APIRouter
from pydantic import BaseModel, Field

from bookcatalog.core.modules.review.models import Review
from bookcatalog.web.deps import AppDep, SessionIdDep
from bookcatalog.web.openapi import ErrorResponse

router: APIRouter = APIRouter(tags=["reviews"])


class PutReviewRequest(BaseModel):
    """Review text for the current user."""

    review: str = Field(..., min_length=1, max_length=5000, description="The review text")


@router.get(
    "/books/{isbn}/reviews",
    summary="List book reviews",
    description="Get all reviews of a book keyed by reviewer username.",
    operation_id="listReviews",
    responses={
        200: {"description": "Reviews keyed by username"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
async def list_reviews(isbn: str, app: AppDep) -> dict[str, str]:
    return await app.get_reviews(isbn)


@router.put(
    "/books/{isbn}/reviews",
    summary="Write review",
    description="Create the current user's review of a book, or replace its text.",
    operation_id="putReview",
    responses={
        200: {"description": "Stored review"},
        400: {"model": ErrorResponse, "description": "Empty review"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
async def put_review(isbn: str, request: PutReviewRequest, app: AppDep, session_id: SessionIdDep) -> Review:
    return await app.put_review(session_id, isbn, request.review.strip())


@router.delete(
    "/books/{isbn}/reviews",
    summary="Delete own review",
    description="Delete the current user's review of a book.",
    operation_id="deleteOwnReview",
    status_code=204,
    responses={
        204: {"description": "Review deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        404: {"model": ErrorResponse, "description": "Book or review not found"},
    },
)
async def delete_own_review(isbn: str, app: AppDep, session_id: SessionIdDep) -> None:
    await app.delete_review(session_id, isbn)


@router.delete(
    "/books/{isbn}/reviews/{username}",
    summary="Delete review",
    description="Delete a review by username. Only the review's owner may delete it.",
    operation_id="deleteReview",
    status_code=204,
    responses={
        204: {"description": "Review deleted"},
        401: {"model": ErrorResponse, "description": "Not authenticated"},
        403: {"model": ErrorResponse, "description": "Review belongs to another user"},
        404: {"model": ErrorResponse, "description": "Book or review not found"},
    },
)
async def delete_review(isbn: str, username: str, app: AppDep, session_id: SessionIdDep) -> None:
    await app.delete_review(session_id, isbn, username)
