from wicked.schemas.schemas import (
    RefreshRequest, TokenResponse,
    UserCreate, UserResponse,
    PageResponse, HistoryEntry, HistoryResponse,
)

__all__ = [
    "RefreshRequest", "TokenResponse",
    "UserCreate", "UserResponse",
    "PageResponse", "HistoryEntry", "HistoryResponse",
]
