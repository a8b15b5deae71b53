from fastapi import FastAPI

from creator_direct.api.errors import register_error_handlers
from creator_direct.api.middleware import escrow_context_middleware
from creator_direct.api.routes.escrow import router as escrow_router
from creator_direct.api.routes.subscriptions import router as subscriptions_router
from creator_direct.api.routes.webhooks import router as webhooks_router

app = FastAPI(title="CreatorDirect Subscription Escrow")
app.middleware("http")(escrow_context_middleware)
register_error_handlers(app)
app.include_router(escrow_router, prefix="/api/v1")
app.include_router(subscriptions_router, prefix="/api/v1")
app.include_router(webhooks_router, prefix="/api/v1")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    return {"status": "ok"}
