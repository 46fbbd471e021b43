"""API Routers"""

from .auth_router import router as auth_router
from .comment_router import router as comment_router
from .history_router import router as history_router
from .reply_router import router as reply_router
from .sync_router import router as sync_router
from .user_router import router as user_router

__all__ = [
    "auth_router",
    "comment_router",
    "history_router",
    "reply_router",
    "sync_router",
    "user_router",
]
