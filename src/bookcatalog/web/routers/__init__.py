from bookcatalog.web.routers.async_books import router as async_books_router
from bookcatalog.web.routers.auth import router as auth_router
from bookcatalog.web.routers.books import router as books_router
from bookcatalog.web.routers.reviews import router as reviews_router

__all__ = [
    "async_books_router",
    "auth_router",
    "books_router",
    "reviews_router",
]
