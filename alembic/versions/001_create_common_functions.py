"""001: trigger functions shared by the club-shares tables

fn_touch_updated_at keeps updated_at current on mutable rows (clubs,
wallets, positions, fixtures). fn_forbid_history_rewrite turns the audit
tables (orders, wallet_transactions, club_ledger, settlements) append-only.

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_touch_updated_at() RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_forbid_history_rewrite() RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'rows in % are history and cannot be %d',
                TG_TABLE_NAME, lower(TG_OP)
                USING ERRCODE = 'restrict_violation';
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    for fn in ("fn_forbid_history_rewrite", "fn_touch_updated_at"):
        op.execute(f"DROP FUNCTION IF EXISTS {fn}();")
