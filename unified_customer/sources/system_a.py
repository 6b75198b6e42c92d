"""
System A Repository
-------------------
Access to the legacy customer store (System A), kept in a local SQLite database.
System A holds strong contract data but no phone numbers.

The sqlite3 driver is blocking, so every query runs in a worker thread with its
own connection. The seeder loads initial data with pandas, either from a CSV
export of the legacy system or from the built-in seed records.
"""

import asyncio
import logging
import os
import sqlite3
from typing import List, Dict, Optional, Any

import pandas as pd
from pydantic import ValidationError

from unified_customer.models.data_models import CustomerRecord, SourceSystem
from unified_customer.sources.base import CustomerSource

logger = logging.getLogger(__name__)

TABLE_NAME = "customers_a"

SCHEMA = f"""
CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    name TEXT NOT NULL,
    address TEXT NOT NULL,
    contract_start_date TEXT,
    contract_type TEXT,
    last_updated TEXT NOT NULL
)
"""

COLUMNS = ["id", "email", "name", "address", "contract_start_date", "contract_type", "last_updated"]

SEED_DATA: List[Dict[str, Any]] = [
    {
        "id": "legacy_001",
        "email": "max.mustermann@example.de",
        "name": "Max Mustermann",
        "address": "Sonnenallee 1, 12345 Berlin",
        "contract_start_date": "2021-03-15",
        "contract_type": "RENTAL",
        "last_updated": "2024-11-01T10:00:00Z",
    },
    {
        "id": "legacy_002",
        "email": "erika.muster@example.de",
        "name": "Erika Musterfrau",
        "address": "Hauptstr. 42, 10115 Berlin",
        "contract_start_date": "2022-07-01",
        "contract_type": "PURCHASE",
        "last_updated": "2024-08-15T14:30:00Z",
    },
    {
        "id": "legacy_003",
        "email": "jan.schmidt@example.de",
        "name": "Jan Schmidt",
        "address": "Berliner Str. 10, 80331 Munich",
        "contract_start_date": "2023-01-10",
        "contract_type": "RENTAL",
        "last_updated": "2024-06-20T09:00:00Z",
    },
    {
        "id": "legacy_004",
        "email": "sophie.mueller@example.de",
        "name": "Sophie Muller",
        "address": "Kastanienallee 7, 10435 Berlin",
        "contract_start_date": "2023-09-01",
        "contract_type": "RENTAL",
        "last_updated": "2024-10-05T16:00:00Z",
    },
]


def _connect(db_path: str) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def seed_system_a(db_path: str, csv_path: Optional[str] = None) -> int:
    """
    Create the System A table and fill it with initial data if it is empty.

    Args:
        db_path: Path of the SQLite database file
        csv_path: Optional CSV export of the legacy system to load instead of the built-in data

    Returns:
        int: Number of records inserted (0 if the table already had data)

    Raises:
        ValueError: If the CSV export is missing required columns
    """
    directory = os.path.dirname(os.path.abspath(db_path))
    os.makedirs(directory, exist_ok=True)

    conn = _connect(db_path)
    try:
        conn.execute(SCHEMA)
        count = conn.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()[0]
        if count > 0:
            logger.info(f"System A already seeded with {count} records, skipping")
            return 0

        if csv_path:
            logger.info(f"Seeding System A from CSV export {csv_path}")
            df = pd.read_csv(csv_path, dtype=str)
            missing = [col for col in COLUMNS if col not in df.columns]
            if missing:
                raise ValueError(f"Seed file is missing columns {missing}. Available columns: {df.columns.tolist()}")
            df = df[COLUMNS]
        else:
            logger.info("Seeding System A with initial data...")
            df = pd.DataFrame(SEED_DATA, columns=COLUMNS)

        # Optional columns come back from CSV as NaN; store them as NULL
        df = df.astype(object).where(pd.notna(df), None)
        df["email"] = df["email"].str.strip().str.lower()

        df.to_sql(TABLE_NAME, conn, if_exists="append", index=False)
        conn.commit()
        logger.info(f"System A seeded with {len(df)} records")
        return len(df)
    finally:
        conn.close()


class SystemARepository(CustomerSource):
    """CustomerSource backed by the System A SQLite database."""

    name = "system-a"

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _query(self, sql: str, params: tuple = ()) -> List[Dict[str, Any]]:
        conn = _connect(self.db_path)
        try:
            return [dict(row) for row in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def _to_record(self, row: Dict[str, Any]) -> Optional[CustomerRecord]:
        try:
            return CustomerRecord(source=SourceSystem.SYSTEM_A, **row)
        except ValidationError as e:
            logger.warning(f"System A: Skipping invalid record {row.get('id')}: {e.error_count()} validation error(s)")
            return None

    async def find_by_email(self, email: str) -> Optional[CustomerRecord]:
        try:
            rows = await asyncio.to_thread(
                self._query,
                f"SELECT {', '.join(COLUMNS)} FROM {TABLE_NAME} WHERE email = ?",
                (email.strip().lower(),)
            )
        except sqlite3.Error as e:
            logger.warning(f"System A findByEmail failed for {email}: {str(e)}")
            return None

        if not rows:
            logger.debug(f"System A: No customer found for email {email}")
            return None

        logger.debug(f"System A: Found customer {rows[0]['id']} for email {email}")
        return self._to_record(rows[0])

    async def search_by_name(self, query: str) -> List[CustomerRecord]:
        try:
            rows = await asyncio.to_thread(
                self._query,
                f"SELECT {', '.join(COLUMNS)} FROM {TABLE_NAME} WHERE LOWER(name) LIKE LOWER(?)",
                (f"%{query}%",)
            )
        except sqlite3.Error as e:
            logger.warning(f"System A search failed for \"{query}\": {str(e)}")
            return []

        logger.debug(f"System A: Found {len(rows)} customers matching \"{query}\"")
        records = [self._to_record(row) for row in rows]
        return [record for record in records if record is not None]

    async def is_healthy(self) -> bool:
        try:
            await asyncio.to_thread(self._query, "SELECT 1")
            return True
        except sqlite3.Error as e:
            logger.error(f"System A health check failed: {str(e)}")
            return False
