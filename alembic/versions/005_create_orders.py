"""005: create orders table

Revision ID: 005
Revises: 004
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                      BIGSERIAL       PRIMARY KEY,
            user_id                 VARCHAR(64)     NOT NULL,
            club_id                 INT             NOT NULL REFERENCES clubs (id),
            side                    VARCHAR(4)      NOT NULL,
            quantity                INT             NOT NULL,
            price_per_share         BIGINT          NOT NULL,
            total_amount            BIGINT          NOT NULL,
            status                  VARCHAR(10)     NOT NULL DEFAULT 'FILLED',
            market_cap_before       BIGINT          NOT NULL,
            market_cap_after        BIGINT          NOT NULL,
            position_quantity_after INT             NOT NULL,
            executed_at             TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_side           CHECK (side IN ('BUY', 'SELL')),
            CONSTRAINT ck_orders_status         CHECK (status IN ('FILLED')),
            CONSTRAINT ck_orders_quantity_gt_0  CHECK (quantity > 0),
            CONSTRAINT ck_orders_price_gt_0     CHECK (price_per_share > 0),
            CONSTRAINT ck_orders_amount         CHECK (total_amount = price_per_share * quantity),
            CONSTRAINT ck_orders_position_gte_0 CHECK (position_quantity_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_orders_user ON orders (user_id, id DESC);")
    op.execute("CREATE INDEX idx_orders_user_club ON orders (user_id, club_id, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_orders_append_only
            BEFORE UPDATE OR DELETE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_history_rewrite();
    """)
    op.execute("COMMENT ON TABLE orders IS 'Filled trades, append-only audit log, cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
