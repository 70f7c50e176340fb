"""Trading window: a club cannot be traded between a fixture's buy-close
time and the moment that fixture's result has been applied."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from src.cs_common.enums import FixtureStatus
from src.cs_common.errors import WindowClosedError


@dataclass(frozen=True)
class FixtureWindow:
    buy_close_at: datetime
    status: str


def is_trading_window_open(fixtures: Iterable[FixtureWindow], now: datetime) -> bool:
    """Closed while any unsettled fixture of the club is past its buy-close time."""
    for fixture in fixtures:
        if fixture.status == FixtureStatus.PENDING and fixture.buy_close_at <= now:
            return False
    return True


def check_trading_window(club_id: int, is_open: bool) -> None:
    if not is_open:
        raise WindowClosedError(club_id)
