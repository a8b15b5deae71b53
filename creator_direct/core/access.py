from __future__ import annotations

from creator_direct.core.errors import Unauthorized
from creator_direct.core.records import CreatorConfig


def require_creator(config: CreatorConfig, caller: str) -> None:
    if caller != config.creator:
        raise Unauthorized("Only the creator may perform this operation")
