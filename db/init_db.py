"""
db/init_db.py
-------------
Creates the scheduler's database schema if it does not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db

The unique constraints on renewal_events and reminder_log are what keep
overlapping job runs from writing duplicates; do not drop them.
"""

from db.connection import get_connection, release_connection
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Users: only the columns the scheduler reads
CREATE TABLE IF NOT EXISTS users (
    id              VARCHAR(64) PRIMARY KEY,
    email           VARCHAR(255) UNIQUE NOT NULL,
    telegram_id     BIGINT UNIQUE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Per-user notification switches; no row means defaults
CREATE TABLE IF NOT EXISTS user_settings (
    user_id                 VARCHAR(64) PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
    send_renewal_reminders  BOOLEAN NOT NULL DEFAULT TRUE
);

CREATE TABLE IF NOT EXISTS services (
    id              VARCHAR(64) PRIMARY KEY,
    name            VARCHAR(200) NOT NULL
);

-- Subscriptions: owned by the application, read-only for the jobs
CREATE TABLE IF NOT EXISTS subscriptions (
    id                  VARCHAR(64) PRIMARY KEY,
    user_id             VARCHAR(64) NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    service_id          VARCHAR(64) NOT NULL REFERENCES services(id),
    start_date          DATE NOT NULL,
    billing_cycle       VARCHAR(20) NOT NULL,
    price               NUMERIC(12,2) NOT NULL,
    currency            VARCHAR(5) DEFAULT 'EUR',
    is_active           BOOLEAN NOT NULL DEFAULT TRUE,
    remind_days_before  INT NOT NULL DEFAULT 3 CHECK (remind_days_before >= 0),
    created_at          TIMESTAMPTZ DEFAULT NOW()
);

-- Renewal events: one row per (subscription, occurrence date)
CREATE TABLE IF NOT EXISTS renewal_events (
    id              BIGSERIAL PRIMARY KEY,
    subscription_id VARCHAR(64) NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    user_id         VARCHAR(64) NOT NULL,
    occurred_on     DATE NOT NULL,
    amount          NUMERIC(12,2) NOT NULL,
    currency        VARCHAR(5) NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE (subscription_id, occurred_on)
);

-- Reminder log: one row per (subscription, reminder date)
CREATE TABLE IF NOT EXISTS reminder_log (
    id              BIGSERIAL PRIMARY KEY,
    subscription_id VARCHAR(64) NOT NULL REFERENCES subscriptions(id) ON DELETE CASCADE,
    user_id         VARCHAR(64) NOT NULL,
    reminder_date   DATE NOT NULL,
    created_at      TIMESTAMPTZ DEFAULT NOW(),
    UNIQUE (subscription_id, reminder_date)
);

-- Job runs: operator-facing history of scheduler invocations
CREATE TABLE IF NOT EXISTS job_runs (
    id              BIGSERIAL PRIMARY KEY,
    job_name        VARCHAR(50) NOT NULL,
    started_at      TIMESTAMPTZ NOT NULL,
    finished_at     TIMESTAMPTZ NOT NULL,
    processed       INT NOT NULL DEFAULT 0,
    succeeded       INT NOT NULL DEFAULT 0,
    errors          INT NOT NULL DEFAULT 0,
    interrupted     BOOLEAN NOT NULL DEFAULT FALSE
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_subscriptions_active ON subscriptions(user_id) WHERE is_active = TRUE;
CREATE INDEX IF NOT EXISTS idx_renewal_events_latest ON renewal_events(subscription_id, occurred_on DESC);
CREATE INDEX IF NOT EXISTS idx_job_runs_started ON job_runs(started_at);
"""


def create_tables() -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        release_connection(conn)


if __name__ == "__main__":
    from db.connection import init_pool
    init_pool()
    create_tables()
    logger.info("Database schema created successfully.")
