from creator_direct.api.routes.escrow import router as escrow_router
from creator_direct.api.routes.subscriptions import router as subscriptions_router
from creator_direct.api.routes.webhooks import router as webhooks_router

__all__ = [
    "escrow_router",
    "subscriptions_router",
    "webhooks_router",
]
