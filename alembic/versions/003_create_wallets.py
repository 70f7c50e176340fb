"""003: create wallets and wallet_transactions tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            user_id             VARCHAR(64)     PRIMARY KEY,
            balance             BIGINT          NOT NULL DEFAULT 0,
            version             BIGINT          NOT NULL DEFAULT 0,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallets_balance_gte_0 CHECK (balance >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallets_updated_at
            BEFORE UPDATE ON wallets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)
    op.execute("""
        CREATE TABLE wallet_transactions (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL REFERENCES wallets (user_id),
            tx_type         VARCHAR(20)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference       VARCHAR(128),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_tx_type CHECK (
                tx_type IN ('DEPOSIT', 'CREDIT_LOAN', 'CREDIT_REVERSAL', 'PURCHASE', 'SALE')
            ),
            CONSTRAINT ck_wallet_tx_amount_ne_0 CHECK (amount <> 0),
            CONSTRAINT ck_wallet_tx_balance_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_wallet_tx_user ON wallet_transactions (user_id, id DESC);")
    op.execute("""
        CREATE UNIQUE INDEX uq_wallet_tx_reversal
        ON wallet_transactions (reference)
        WHERE tx_type = 'CREDIT_REVERSAL';
    """)
    op.execute("""
        CREATE TRIGGER trg_wallet_tx_append_only
            BEFORE UPDATE OR DELETE ON wallet_transactions
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_history_rewrite();
    """)
    op.execute("COMMENT ON TABLE wallet_transactions IS 'Wallet history, append-only, cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
