"""Database initialization module.

Runs the idempotent ``init.sql`` script on app startup using DATABASE_URL.
"""

import logging
from pathlib import Path

from sqlalchemy import create_engine

from .config import BASE_DIR
from .db import engine_options

logger = logging.getLogger(__name__)

INIT_SQL_PATH = BASE_DIR / "init.sql"


def split_sql_statements(sql: str) -> list[str]:
    """Split a script on semicolons that sit outside quotes and comments."""

    statements: list[str] = []
    buf: list[str] = []
    quote: str | None = None
    in_line_comment = False

    i = 0
    while i < len(sql):
        ch = sql[i]
        nxt = sql[i + 1] if i + 1 < len(sql) else ""

        if in_line_comment:
            if ch == "\n":
                in_line_comment = False
                buf.append(ch)
            i += 1
            continue

        if quote is not None:
            buf.append(ch)
            if ch == quote:
                if nxt == quote:
                    # doubled quote is an escape
                    buf.append(nxt)
                    i += 2
                    continue
                quote = None
            i += 1
            continue

        if ch == "-" and nxt == "-":
            in_line_comment = True
            i += 2
            continue
        if ch in ("'", '"'):
            quote = ch
        if ch == ";":
            chunk = "".join(buf).strip()
            if chunk:
                statements.append(chunk)
            buf = []
        else:
            buf.append(ch)
        i += 1

    tail = "".join(buf).strip()
    if tail:
        statements.append(tail)
    return statements


def init_database_schema(database_url: str, init_sql_path: Path = INIT_SQL_PATH) -> None:
    """Create the schema from init.sql when its tables don't exist yet.

    Raises:
        Exception: If SQL execution fails
    """
    if not init_sql_path.exists():
        logger.warning("init.sql not found at %s, skipping schema initialization", init_sql_path)
        return

    engine = create_engine(database_url, **engine_options(database_url))
    try:
        with engine.connect() as connection:
            statements = split_sql_statements(init_sql_path.read_text(encoding="utf-8"))
            for statement in statements:
                connection.exec_driver_sql(statement)
            connection.commit()
        logger.info("Database schema initialized (%d statements)", len(statements))
    except Exception:
        logger.exception("Failed to initialize database schema")
        raise
    finally:
        engine.dispose()
