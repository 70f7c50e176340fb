"""004: create positions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # A position sold down to zero is kept (quantity 0) so realized_pnl survives.
    op.execute("""
        CREATE TABLE positions (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            club_id         INT             NOT NULL REFERENCES clubs (id),
            quantity        INT             NOT NULL DEFAULT 0,
            total_invested  BIGINT          NOT NULL DEFAULT 0,
            realized_pnl    BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_user_club       UNIQUE (user_id, club_id),
            CONSTRAINT ck_positions_quantity_gte_0  CHECK (quantity >= 0),
            CONSTRAINT ck_positions_invested_gte_0  CHECK (total_invested >= 0),
            CONSTRAINT ck_positions_closed_no_cost  CHECK (quantity > 0 OR total_invested = 0)
        );
    """)
    op.execute("CREATE INDEX idx_positions_club ON positions (club_id);")
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
