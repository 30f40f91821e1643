from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import cast

import redis

from gameshelf.core.intents import Intent

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IntentOutbox:
    key_prefix: str = ""
    # Approximate cap so the stream doesn't grow forever.
    maxlen: int = 1000

    @property
    def key(self) -> str:
        return f"{self.key_prefix}intents"


def publish_intents(*, r: redis.Redis, outbox: IntentOutbox, intents: Sequence[Intent]) -> list[str]:
    """Append intents to the outbox stream, in order.

    The outbox is a replay aid for out-of-process adapters; a failed append is logged and
    never undoes the transition that produced the intents.
    """

    ids: list[str] = []
    try:
        for intent in intents:
            stream_id = r.xadd(outbox.key, intent.as_fields(), maxlen=outbox.maxlen, approximate=True)
            ids.append(cast(str, stream_id))
    except redis.RedisError as e:
        logger.warning("Could not append %d intents to %s: %s", len(intents) - len(ids), outbox.key, e)
    return ids


def read_intents(*, r: redis.Redis, outbox: IntentOutbox, count: int = 20) -> list[tuple[str, dict[str, str]]]:
    """Most recent `count` outbox entries, oldest first."""

    entries = r.xrevrange(outbox.key, count=count)
    return list(reversed(entries))
