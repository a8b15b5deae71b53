from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from datetime import datetime, timezone

import redis.asyncio as redis
import requests
from fastapi import FastAPI

from creator_direct.agents.health import AgentHealth
from creator_direct.core.config import settings

logger = logging.getLogger(__name__)


class IndexerDispatcher:
    def __init__(self, webhook_url: str | None = None) -> None:
        self.webhook_url = webhook_url if webhook_url is not None else settings.indexer_webhook_url

    async def dispatch(self, payload: dict[str, object]) -> None:
        if not self.webhook_url:
            raise ValueError("Indexer webhook is not configured")

        def _post() -> None:
            response = requests.post(self.webhook_url, json=payload, timeout=10)
            response.raise_for_status()

        await asyncio.to_thread(_post)


class EventRelayAgent:
    """Forwards escrow events from the Redis stream to the indexer webhook."""

    def __init__(self) -> None:
        self.health = AgentHealth(name="event-relay-agent", ready=True)
        self._stop_event = asyncio.Event()
        self._redis = redis.from_url(settings.redis_url, decode_responses=True)
        self._dispatcher = IndexerDispatcher()

    async def stop(self) -> None:
        self._stop_event.set()
        await self._redis.aclose()

    async def run(self) -> None:
        await self._ensure_consumer_group()

        retry_delay = 1
        while not self._stop_event.is_set():
            self.health.mark_run()
            try:
                messages = await self._redis.xreadgroup(
                    groupname=settings.relay_consumer_group,
                    consumername=settings.relay_consumer_name,
                    streams={settings.events_stream_name: ">"},
                    count=100,
                    block=settings.relay_stream_block_ms,
                )

                if not messages:
                    continue

                for _stream_name, entries in messages:
                    for message_id, fields in entries:
                        await self._process_event(message_id, fields)

                self.health.mark_success()
                retry_delay = 1
            except Exception as exc:  # pragma: no cover - operational path
                self.health.mark_error(exc)
                logger.exception("Event relay stream loop failed")
                await asyncio.sleep(retry_delay)
                retry_delay = min(retry_delay * 2, 120)

    async def _ensure_consumer_group(self) -> None:
        try:
            await self._redis.xgroup_create(
                name=settings.events_stream_name,
                groupname=settings.relay_consumer_group,
                id="0",
                mkstream=True,
            )
        except Exception as exc:
            if "BUSYGROUP" not in str(exc):
                raise

    async def _process_event(self, message_id: str, fields: dict[str, str]) -> None:
        try:
            await self._dispatcher.dispatch(self._build_payload(message_id, fields))
            self.health.increment("events_relayed")
            self.health.last_message_id = message_id
        except Exception as exc:
            self.health.increment("events_failed")
            await self._redis.xadd(
                settings.relay_failure_stream_name,
                {
                    "message_id": message_id,
                    "error": str(exc),
                    "payload": json.dumps(fields),
                    "failed_at": datetime.now(timezone.utc).isoformat(),
                },
            )
        # Failed events are kept on the failure stream; acking keeps the group moving.
        await self._redis.xack(settings.events_stream_name, settings.relay_consumer_group, message_id)

    @staticmethod
    def _build_payload(message_id: str, fields: dict[str, str]) -> dict[str, object]:
        escrow_id = fields.get("escrow_id")
        event_type = fields.get("event_type")
        if not escrow_id or not event_type:
            raise ValueError("escrow event missing escrow_id/event_type")

        return {
            "id": message_id,
            "escrow_id": escrow_id,
            "event_type": event_type,
            "data": json.loads(fields.get("payload") or "{}"),
            "emitted_at": fields.get("emitted_at"),
        }


relay_agent = EventRelayAgent()
app = FastAPI(title="CreatorDirect Event Relay")


@app.on_event("startup")
async def startup_event() -> None:
    logging.basicConfig(level=logging.INFO)
    app.state.task = asyncio.create_task(relay_agent.run())


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await relay_agent.stop()
    task: asyncio.Task[None] = app.state.task
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


@app.get("/health", tags=["system"])
async def health() -> dict[str, object]:
    return relay_agent.health.payload()


@app.get("/ready", tags=["system"])
async def ready() -> dict[str, bool]:
    return {"ready": relay_agent.health.ready}
