"""HTTP routers, one module per resource."""

from src.api.routers.auth import router as auth_router
from src.api.routers.chat import router as chat_router
from src.api.routers.documents import router as documents_router
from src.api.routers.events import router as events_router
from src.api.routers.infographics import router as infographics_router
from src.api.routers.podcasts import router as podcasts_router
from src.api.routers.system import router as system_router
from src.api.routers.voiceovers import router as voiceovers_router

ALL_ROUTERS = (
    system_router,
    auth_router,
    documents_router,
    chat_router,
    podcasts_router,
    voiceovers_router,
    infographics_router,
    events_router,
)

__all__ = [
    "ALL_ROUTERS",
    "auth_router",
    "chat_router",
    "documents_router",
    "events_router",
    "infographics_router",
    "podcasts_router",
    "system_router",
    "voiceovers_router",
]
