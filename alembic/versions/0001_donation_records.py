from alembic import op

revision = "0001_donation_records"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute(
        """
    CREATE TABLE IF NOT EXISTS donation_records (
      donation_id UUID PRIMARY KEY,
      source_intent_id TEXT NOT NULL,
      beneficiary_id TEXT NULL,
      beneficiary_amount_cents INTEGER NOT NULL CHECK (beneficiary_amount_cents >= 0),
      platform_amount_cents INTEGER NOT NULL CHECK (platform_amount_cents >= 0),
      currency TEXT NOT NULL DEFAULT 'usd',
      recorded_at TIMESTAMPTZ NOT NULL DEFAULT now(),
      CONSTRAINT uq_donation_records_source_intent UNIQUE (source_intent_id),
      CONSTRAINT ck_donation_records_positive
        CHECK (beneficiary_amount_cents + platform_amount_cents > 0)
    );

    CREATE INDEX IF NOT EXISTS idx_donation_records_beneficiary
      ON donation_records(beneficiary_id, recorded_at);
    CREATE INDEX IF NOT EXISTS idx_donation_records_recorded
      ON donation_records(recorded_at);
    """
    )


def downgrade():
    op.execute("DROP TABLE IF EXISTS donation_records;")
