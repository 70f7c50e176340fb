"""007: create fixtures and settlements tables

Revision ID: 007
Revises: 006
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE fixtures (
            id              SERIAL          PRIMARY KEY,
            home_club_id    INT             NOT NULL REFERENCES clubs (id),
            away_club_id    INT             NOT NULL REFERENCES clubs (id),
            kickoff_at      TIMESTAMPTZ     NOT NULL,
            buy_close_at    TIMESTAMPTZ     NOT NULL,
            home_score      INT,
            away_score      INT,
            result          VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            status          VARCHAR(10)     NOT NULL DEFAULT 'PENDING',
            applied_at      TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_fixtures_distinct_clubs   CHECK (home_club_id <> away_club_id),
            CONSTRAINT ck_fixtures_buy_close        CHECK (buy_close_at <= kickoff_at),
            CONSTRAINT ck_fixtures_result CHECK (
                result IN ('PENDING', 'HOME_WIN', 'AWAY_WIN', 'DRAW')
            ),
            CONSTRAINT ck_fixtures_status           CHECK (status IN ('PENDING', 'APPLIED')),
            CONSTRAINT ck_fixtures_scores CHECK (
                (home_score IS NULL OR home_score >= 0)
                AND (away_score IS NULL OR away_score >= 0)
            ),
            CONSTRAINT ck_fixtures_applied_has_result CHECK (
                status = 'PENDING' OR (result <> 'PENDING' AND applied_at IS NOT NULL)
            )
        );
    """)
    op.execute("""
        CREATE INDEX idx_fixtures_home_open ON fixtures (home_club_id, buy_close_at)
        WHERE status = 'PENDING';
    """)
    op.execute("""
        CREATE INDEX idx_fixtures_away_open ON fixtures (away_club_id, buy_close_at)
        WHERE status = 'PENDING';
    """)
    op.execute("CREATE INDEX idx_fixtures_kickoff ON fixtures (kickoff_at);")
    op.execute("""
        CREATE TRIGGER trg_fixtures_updated_at
            BEFORE UPDATE ON fixtures
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)

    # One row per applied fixture: the primary key is the at-most-once guard.
    op.execute("""
        CREATE TABLE settlements (
            fixture_id      INT             PRIMARY KEY REFERENCES fixtures (id),
            outcome         VARCHAR(10)     NOT NULL,
            home_club_id    INT             NOT NULL REFERENCES clubs (id),
            away_club_id    INT             NOT NULL REFERENCES clubs (id),
            home_cap_before BIGINT          NOT NULL,
            home_cap_after  BIGINT          NOT NULL,
            away_cap_before BIGINT          NOT NULL,
            away_cap_after  BIGINT          NOT NULL,
            transfer_amount BIGINT          NOT NULL,
            winner_club_id  INT             REFERENCES clubs (id),
            loser_club_id   INT             REFERENCES clubs (id),
            applied_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_settlements_outcome CHECK (outcome IN ('HOME_WIN', 'AWAY_WIN', 'DRAW')),
            CONSTRAINT ck_settlements_transfer_gte_0 CHECK (transfer_amount >= 0),
            CONSTRAINT ck_settlements_conserved CHECK (
                home_cap_before + away_cap_before = home_cap_after + away_cap_after
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_settlements_append_only
            BEFORE UPDATE OR DELETE ON settlements
            FOR EACH ROW EXECUTE FUNCTION fn_forbid_history_rewrite();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS settlements CASCADE;")
    op.execute("DROP TABLE IF EXISTS fixtures CASCADE;")
