"""Post-commit domain events.

Events are emitted only after the transaction that caused them has
committed, and outside any lock. Delivery is fire-and-forget: observers
(UI refresh, notifications) may learn late or not at all, but never see a
change that did not commit.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Protocol

from redis.exceptions import RedisError

from config.settings import settings
from src.cs_common.datetime_utils import utc_now
from src.cs_common.redis_client import get_redis

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DomainEvent:
    occurred_at: datetime = field(default_factory=utc_now, kw_only=True)

    @property
    def event_type(self) -> str:
        raise NotImplementedError

    def payload(self) -> dict[str, Any]:
        data = asdict(self)
        data["occurred_at"] = self.occurred_at.isoformat()
        data["event_type"] = self.event_type
        return data


@dataclass(frozen=True)
class MarketCapChanged(DomainEvent):
    club_id: int
    market_cap_cents: int
    share_price_cents: int

    @property
    def event_type(self) -> str:
        return "market_cap_changed"


@dataclass(frozen=True)
class OrderFilled(DomainEvent):
    order_id: int
    user_id: str
    club_id: int
    side: str
    quantity: int
    total_amount_cents: int

    @property
    def event_type(self) -> str:
        return "order_filled"


@dataclass(frozen=True)
class WalletChanged(DomainEvent):
    user_id: str
    balance_cents: int

    @property
    def event_type(self) -> str:
        return "wallet_changed"


class EventPublisherProtocol(Protocol):
    async def publish(self, events: list[DomainEvent]) -> None: ...


class RedisEventPublisher:
    """Publishes each event as JSON on ``<prefix>:<event_type>``."""

    def __init__(self, channel_prefix: str | None = None) -> None:
        self._prefix = channel_prefix or settings.EVENTS_CHANNEL_PREFIX

    async def publish(self, events: list[DomainEvent]) -> None:
        if not events:
            return
        try:
            redis = await get_redis()
            for event in events:
                await redis.publish(
                    f"{self._prefix}:{event.event_type}",
                    json.dumps(event.payload()),
                )
        except (RedisError, OSError):
            # Post-commit: the state change stands regardless of delivery.
            logger.warning("Dropped %d event(s), publish failed", len(events), exc_info=True)
