from dataclasses import dataclass

from config.settings import Settings, settings


@dataclass(frozen=True)
class TradingRules:
    """Engine constants, read once from settings so tests can swap them."""

    max_order_quantity: int = 10_000
    price_tolerance_cents: int = 1
    default_share_price_cents: int = 2000
    min_market_cap_cents: int = 1000
    transfer_rate_bps: int = 1000
    trading_window_enabled: bool = True
    lock_timeout_seconds: float = 5.0
    max_retries: int = 3

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "TradingRules":
        return cls(
            max_order_quantity=cfg.MAX_ORDER_QUANTITY,
            price_tolerance_cents=cfg.PRICE_TOLERANCE_CENTS,
            default_share_price_cents=cfg.DEFAULT_SHARE_PRICE_CENTS,
            min_market_cap_cents=cfg.MIN_MARKET_CAP_CENTS,
            transfer_rate_bps=cfg.TRANSFER_RATE_BPS,
            trading_window_enabled=cfg.TRADING_WINDOW_ENABLED,
            lock_timeout_seconds=cfg.LOCK_TIMEOUT_SECONDS,
            max_retries=cfg.MAX_TRADE_RETRIES,
        )
