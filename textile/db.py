from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Iterable

import streamlit as st

from textile.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)


def connect(db_path: Path | str) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path), check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


@st.cache_resource
def get_conn(db_path: Path) -> sqlite3.Connection:
    logger.info("Opening database %s", db_path)
    return connect(db_path)


def _column_exists(conn: sqlite3.Connection, table: str, column: str) -> bool:
    rows = conn.execute(f"PRAGMA table_info({table});").fetchall()
    cols = [r["name"] for r in rows]
    return column in cols


# (table, column, DDL fragment) for installs created before the column existed
_COLUMN_MIGRATIONS = [
    ("weaver_challans", "vendor_amount", "vendor_amount REAL"),
    ("weaver_challans", "sgst", "sgst TEXT"),
    ("weaver_challans", "cgst", "cgst TEXT"),
    ("weaver_challans", "igst", "igst TEXT"),
    ("isteaching_challans", "inventory_classification", "inventory_classification TEXT NOT NULL DEFAULT 'unclassified'"),
    ("expenses", "manual_ledger_id", "manual_ledger_id TEXT"),
]


def ensure_schema(conn: sqlite3.Connection) -> None:
    # Create base schema (for new installs)
    conn.executescript(SCHEMA_SQL)

    # ---- migrations for existing installs ----
    for table, column, ddl in _COLUMN_MIGRATIONS:
        if not _column_exists(conn, table, column):
            logger.info("Migrating: adding %s.%s", table, column)
            conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")

    conn.commit()


def q(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> list[sqlite3.Row]:
    cur = conn.execute(sql, tuple(params))
    rows = cur.fetchall()
    cur.close()
    return rows


def x(conn: sqlite3.Connection, sql: str, params: Iterable[Any] = ()) -> int:
    cur = conn.execute(sql, tuple(params))
    conn.commit()
    last = cur.lastrowid
    cur.close()
    return int(last or 0)
