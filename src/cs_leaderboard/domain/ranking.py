"""Account valuation and ranking over a period.

An account is worth its cash plus its open shares at a share price. The
period return compares the value now with the value when the period opened,
net of the money paid in (deposits and credit loans, less reversals) since.
"""

from collections.abc import Iterable, Mapping
from dataclasses import replace
from datetime import datetime, timedelta

from src.cs_common.datetime_utils import ensure_utc
from src.cs_leaderboard.domain.models import Holding, LeaderboardEntry, RankBy
from src.cs_valuation.domain.pricing import period_return


def start_of_week(now: datetime) -> datetime:
    """Monday 00:00 UTC of the week containing ``now``."""
    now = ensure_utc(now)
    monday = now - timedelta(days=now.weekday())
    return monday.replace(hour=0, minute=0, second=0, microsecond=0)


def portfolio_values(holdings: Iterable[Holding], prices: Mapping[int, int]) -> dict[str, int]:
    """Per-user market value of the holdings, in cents."""
    values: dict[str, int] = {}
    for holding in holdings:
        if holding.quantity <= 0:
            continue
        value = prices[holding.club_id] * holding.quantity
        values[holding.user_id] = values.get(holding.user_id, 0) + value
    return values


def rank_accounts(
    *,
    cash: Mapping[str, int],
    portfolio: Mapping[str, int],
    start_cash: Mapping[str, int],
    start_portfolio: Mapping[str, int],
    funding: Mapping[str, int],
    order_by: RankBy = RankBy.ACCOUNT_VALUE,
) -> list[LeaderboardEntry]:
    """Rank every account with some value or some money paid in.

    Highest first; equal scores are ordered by user id so the ranking is
    stable between calls.
    """
    users = set(cash) | set(portfolio) | set(start_cash) | set(start_portfolio) | set(funding)
    entries: list[LeaderboardEntry] = []
    for user_id in users:
        end_cash = cash.get(user_id, 0)
        end_portfolio = portfolio.get(user_id, 0)
        start_value = start_cash.get(user_id, 0) + start_portfolio.get(user_id, 0)
        paid_in = funding.get(user_id, 0)
        if end_cash + end_portfolio == 0 and start_value == 0 and paid_in == 0:
            continue
        entries.append(
            LeaderboardEntry(
                rank=0,
                user_id=user_id,
                cash=end_cash,
                portfolio_value=end_portfolio,
                start_value=start_value,
                funding=paid_in,
                period_return=period_return(start_value, end_cash + end_portfolio, paid_in),
            )
        )

    if order_by == RankBy.RETURN:
        entries.sort(key=lambda e: (-e.period_return, e.user_id))
    else:
        entries.sort(key=lambda e: (-e.account_value, e.user_id))
    return [replace(entry, rank=rank) for rank, entry in enumerate(entries, start=1)]
