from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from uuid import UUID

import redis.asyncio as redis
from redis.exceptions import RedisError

from creator_direct.core.config import settings
from creator_direct.core.events import EscrowEvent

logger = logging.getLogger(__name__)


def event_fields(escrow_id: UUID, event: EscrowEvent) -> dict[str, str]:
    return {
        "escrow_id": str(escrow_id),
        "event_type": event.event_type,
        "payload": json.dumps(event.payload()),
        "emitted_at": datetime.now(timezone.utc).isoformat(),
    }


class EventPublisher:
    """Appends committed escrow events to the Redis events stream.

    Publishing happens after the database commit, so a Redis failure is
    logged and dropped rather than reported to the caller.
    """

    def __init__(self, stream_name: str | None = None) -> None:
        self.stream_name = stream_name or settings.events_stream_name

    async def publish(self, escrow_id: UUID, events: Sequence[EscrowEvent]) -> int:
        if not events:
            return 0

        redis_client = redis.from_url(settings.redis_url, decode_responses=True)
        published = 0
        try:
            for event in events:
                await redis_client.xadd(
                    self.stream_name,
                    event_fields(escrow_id, event),
                    maxlen=settings.events_stream_maxlen,
                    approximate=True,
                )
                published += 1
        except RedisError:
            logger.exception(
                "Failed to publish escrow events escrow_id=%s published=%s total=%s",
                escrow_id,
                published,
                len(events),
            )
        finally:
            await redis_client.aclose()
        return published
