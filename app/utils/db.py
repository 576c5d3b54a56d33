import os
from contextlib import contextmanager
from typing import Iterator

import psycopg2
from dotenv import load_dotenv

load_dotenv()


def database_url_from_env() -> str | None:
    """
    DATABASE_URL if set (e.g. for AWS RDS); otherwise a libpq DSN built from
    DB_HOST, DB_NAME, DB_USER, DB_PASSWORD, DB_PORT.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    return psycopg2.extensions.make_dsn(
        host=os.getenv("DB_HOST", "127.0.0.1"),
        dbname=os.getenv("DB_NAME", "donations_dev"),
        user=os.getenv("DB_USER", "dev"),
        password=os.getenv("DB_PASSWORD", "dev"),
        port=os.getenv("DB_PORT", "65432"),
    )


def get_db_connection(
    dsn: str, *, connect_timeout: int = 5, statement_timeout_ms: int = 5000
):
    """
    Open a PostgreSQL connection whose connect and statements are both bounded,
    so a stuck database surfaces as an error instead of a hung request.
    """
    return psycopg2.connect(
        dsn,
        connect_timeout=connect_timeout,
        options=f"-c statement_timeout={int(statement_timeout_ms)}",
    )


@contextmanager
def db_connection(
    dsn: str, *, connect_timeout: int = 5, statement_timeout_ms: int = 5000
) -> Iterator["psycopg2.extensions.connection"]:
    """
    Scoped connection: always closed on exit. Note that psycopg2's own
    `with conn:` only ends the transaction, it does not close.
    """
    conn = get_db_connection(
        dsn, connect_timeout=connect_timeout, statement_timeout_ms=statement_timeout_ms
    )
    try:
        yield conn
    finally:
        conn.close()
