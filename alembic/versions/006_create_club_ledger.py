"""006: create club_ledger table

Revision ID: 006
Revises: 005
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE club_ledger (
            id                  BIGSERIAL       PRIMARY KEY,
            club_id             INT             NOT NULL REFERENCES clubs (id),
            entry_type          VARCHAR(20)     NOT NULL,
            market_cap_before   BIGINT          NOT NULL,
            market_cap_after    BIGINT          NOT NULL,
            share_price_before  BIGINT          NOT NULL,
            share_price_after   BIGINT          NOT NULL,
            amount              BIGINT          NOT NULL DEFAULT 0,
            reference_type      VARCHAR(20),
            reference_id        VARCHAR(64),
            description         VARCHAR(500),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_club_ledger_type CHECK (
                entry_type IN (
                    'INITIAL',
                    'SHARE_PURCHASE', 'SHARE_SALE',
                    'MATCH_WIN', 'MATCH_LOSS', 'MATCH_DRAW'
                )
            ),
            CONSTRAINT ck_club_ledger_amount_gte_0 CHECK (amount >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_club_ledger_club ON club_ledger (club_id, id DESC);")
    op.execute("""
        CREATE INDEX idx_club_ledger_reference
        ON club_ledger (reference_type, reference_id)
        WHERE reference_id IS NOT NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_club_ledger_append_only
            BEFORE UPDATE OR DELETE ON club_ledger
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_history_rewrite();
    """)
    op.execute("COMMENT ON TABLE club_ledger IS 'Market-cap timeline per club, append-only, cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS club_ledger CASCADE;")
