"""002: create clubs table

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # The market_cap floor is MIN_MARKET_CAP_CENTS, a setting. The trade and
    # settlement engines enforce it and verify_global_invariants reports breaches,
    # so the table only rules out negative caps.
    op.execute("""
        CREATE TABLE clubs (
            id                  SERIAL          PRIMARY KEY,
            name                VARCHAR(100)    NOT NULL,
            market_cap          BIGINT          NOT NULL,
            total_shares        INT             NOT NULL,
            available_shares    INT             NOT NULL,
            launch_price        BIGINT          NOT NULL,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_clubs_name                UNIQUE (name),
            CONSTRAINT ck_clubs_market_cap_gte_0    CHECK (market_cap >= 0),
            CONSTRAINT ck_clubs_total_shares_gt_0   CHECK (total_shares > 0),
            CONSTRAINT ck_clubs_available_range     CHECK (
                available_shares >= 0 AND available_shares <= total_shares
            ),
            CONSTRAINT ck_clubs_launch_price_gte_0  CHECK (launch_price >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_clubs_updated_at
            BEFORE UPDATE ON clubs
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute(
        "COMMENT ON TABLE clubs IS 'Tradable clubs. All amounts in cents; share price is derived';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS clubs CASCADE;")
