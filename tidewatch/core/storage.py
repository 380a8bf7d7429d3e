from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional, Tuple

import orjson


# ──────────────────────────────────────────────────────────────
# Connections
# ──────────────────────────────────────────────────────────────

def connect_sqlite(path: str) -> sqlite3.Connection:
    """
    Open a RW SQLite connection with sane pragmas.

    IMPORTANT:
    - SQLite will NOT create parent directories.
    - WAL mode requires the directory to be writable (creates -wal/-shm).
    """
    if path != ":memory:":
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, check_same_thread=False)
    conn.execute("PRAGMA journal_mode=WAL;")
    conn.execute("PRAGMA synchronous=NORMAL;")
    return conn


# ──────────────────────────────────────────────────────────────
# Schema
# ──────────────────────────────────────────────────────────────

def ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS hazard_reports (
            report_id TEXT PRIMARY KEY,
            submitter_id TEXT,
            submitted_at TEXT NOT NULL,
            validation_outcome TEXT NOT NULL,
            report_json BLOB NOT NULL
        );
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS report_images (
            image_ref TEXT PRIMARY KEY,
            content_type TEXT NOT NULL,
            size_bytes INTEGER NOT NULL,
            image_blob BLOB NOT NULL
        );
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_hazard_reports_submitted ON hazard_reports(submitted_at);"
    )
    conn.commit()


# ──────────────────────────────────────────────────────────────
# Reports
#
# Writers don't commit: callers group a report and its image in one
# transaction (``with conn:``).
# ──────────────────────────────────────────────────────────────

def put_report(
    conn: sqlite3.Connection,
    *,
    report_id: str,
    submitter_id: Optional[str],
    submitted_at: str,
    validation_outcome: str,
    report: dict,
) -> None:
    blob = orjson.dumps(report)
    conn.execute(
        """
        INSERT OR REPLACE INTO hazard_reports (report_id, submitter_id, submitted_at, validation_outcome, report_json)
        VALUES (?, ?, ?, ?, ?);
        """,
        (report_id, submitter_id, submitted_at, validation_outcome, blob),
    )


def get_report(conn: sqlite3.Connection, report_id: str) -> Optional[dict]:
    cur = conn.execute("SELECT report_json FROM hazard_reports WHERE report_id=?;", (report_id,))
    row = cur.fetchone()
    if not row:
        return None
    return orjson.loads(row[0])


def put_report_image(
    conn: sqlite3.Connection,
    *,
    image_ref: str,
    content_type: str,
    data: bytes,
) -> None:
    conn.execute(
        """
        INSERT OR REPLACE INTO report_images (image_ref, content_type, size_bytes, image_blob)
        VALUES (?, ?, ?, ?);
        """,
        (image_ref, content_type, len(data), sqlite3.Binary(data)),
    )


def get_report_image(conn: sqlite3.Connection, image_ref: str) -> Optional[Tuple[str, bytes]]:
    """(content_type, bytes) for a stored upload, or None."""
    cur = conn.execute(
        "SELECT content_type, image_blob FROM report_images WHERE image_ref=?;",
        (image_ref,),
    )
    row = cur.fetchone()
    if not row:
        return None
    return str(row[0]), bytes(row[1])
