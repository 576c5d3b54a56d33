from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

import psycopg2

from app.errors import StorageError
from app.utils.db import db_connection

logger = logging.getLogger(__name__)

# Fixed namespace: donation ids are uuid5(namespace, payment_intent_id), so a
# redelivered notification always maps to the same id.
DONATION_NAMESPACE = uuid.UUID("6f1c9a52-3d0e-5b8a-9e47-2c1d7f0b4a63")

COLUMNS = [
    "donation_id",
    "source_intent_id",
    "beneficiary_id",
    "beneficiary_amount_cents",
    "platform_amount_cents",
    "currency",
    "recorded_at",
]


def donation_id_for_intent(intent_id: str) -> str:
    return str(uuid.uuid5(DONATION_NAMESPACE, intent_id))


@dataclass(frozen=True)
class DonationRecord:
    donation_id: str
    source_intent_id: str
    beneficiary_id: Optional[str]
    beneficiary_amount_cents: int
    platform_amount_cents: int
    currency: str
    recorded_at: datetime

    @classmethod
    def from_row(cls, row) -> "DonationRecord":
        data = dict(zip(COLUMNS, row))
        data["donation_id"] = str(data["donation_id"])
        return cls(**data)

    def to_dict(self) -> dict[str, Any]:
        return {
            "donation_id": self.donation_id,
            "source_intent_id": self.source_intent_id,
            "beneficiary_id": self.beneficiary_id,
            "beneficiary_amount_cents": self.beneficiary_amount_cents,
            "platform_amount_cents": self.platform_amount_cents,
            "beneficiary_amount": round(self.beneficiary_amount_cents / 100.0, 2),
            "platform_amount": round(self.platform_amount_cents / 100.0, 2),
            "currency": self.currency,
            "recorded_at": self.recorded_at.isoformat() if self.recorded_at else None,
        }


class DonationStore:
    """
    PostgreSQL-backed ledger. Holds connection settings only; every call opens
    and closes its own connection.
    """

    def __init__(
        self, dsn: str, *, connect_timeout: int = 5, statement_timeout_ms: int = 5000
    ):
        self.dsn = dsn
        self.connect_timeout = connect_timeout
        self.statement_timeout_ms = statement_timeout_ms

    def _connection(self):
        return db_connection(
            self.dsn,
            connect_timeout=self.connect_timeout,
            statement_timeout_ms=self.statement_timeout_ms,
        )

    def insert_if_absent(self, record: DonationRecord) -> bool:
        """
        Insert the record unless one already exists for its donation_id or
        source_intent_id. Returns True if inserted, False if duplicate.

        The unique constraints decide, so two concurrent deliveries of the same
        event cannot both insert.
        """
        sql = """
        INSERT INTO donation_records
            (donation_id, source_intent_id, beneficiary_id,
             beneficiary_amount_cents, platform_amount_cents, currency, recorded_at)
        VALUES (%s, %s, %s, %s, %s, %s, %s)
        ON CONFLICT DO NOTHING
        RETURNING donation_id
        """
        try:
            with self._connection() as conn, conn, conn.cursor() as cur:
                cur.execute(
                    sql,
                    (
                        record.donation_id,
                        record.source_intent_id,
                        record.beneficiary_id,
                        record.beneficiary_amount_cents,
                        record.platform_amount_cents,
                        record.currency,
                        record.recorded_at,
                    ),
                )
                row = cur.fetchone()
        except psycopg2.Error as e:
            logger.error(
                "donation insert failed intent=%s: %s", record.source_intent_id, e
            )
            raise StorageError("donation insert failed") from e
        return row is not None

    def get(self, donation_id: str) -> Optional[DonationRecord]:
        sql = f"SELECT {', '.join(COLUMNS)} FROM donation_records WHERE donation_id = %s"
        try:
            with self._connection() as conn, conn, conn.cursor() as cur:
                cur.execute(sql, (donation_id,))
                row = cur.fetchone()
        except psycopg2.Error as e:
            raise StorageError("donation lookup failed") from e
        return DonationRecord.from_row(row) if row else None

    def list(
        self,
        *,
        beneficiary_id: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[DonationRecord]:
        where = ""
        params: list[Any] = []
        if beneficiary_id is not None:
            where = "WHERE beneficiary_id = %s"
            params.append(beneficiary_id)
        sql = f"""
        SELECT {', '.join(COLUMNS)}
        FROM donation_records
        {where}
        ORDER BY recorded_at DESC, donation_id
        LIMIT %s OFFSET %s
        """
        params.extend([limit, offset])
        try:
            with self._connection() as conn, conn, conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall()
        except psycopg2.Error as e:
            raise StorageError("donation listing failed") from e
        return [DonationRecord.from_row(r) for r in rows]

    def totals(self, *, beneficiary_id: Optional[str] = None) -> dict[str, int]:
        where = ""
        params: tuple = ()
        if beneficiary_id is not None:
            where = "WHERE beneficiary_id = %s"
            params = (beneficiary_id,)
        sql = f"""
        SELECT COUNT(*)::int,
               COALESCE(SUM(beneficiary_amount_cents), 0)::bigint,
               COALESCE(SUM(platform_amount_cents), 0)::bigint
        FROM donation_records
        {where}
        """
        try:
            with self._connection() as conn, conn, conn.cursor() as cur:
                cur.execute(sql, params)
                count, beneficiary_cents, platform_cents = cur.fetchone()
        except psycopg2.Error as e:
            raise StorageError("donation totals failed") from e
        return {
            "count": int(count),
            "beneficiary_amount_cents": int(beneficiary_cents),
            "platform_amount_cents": int(platform_cents),
        }
