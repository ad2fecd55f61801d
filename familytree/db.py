from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

import psycopg
from psycopg import sql


def get_database_url() -> str:
    url = os.environ.get("DATABASE_URL")
    if not url:
        raise RuntimeError("DATABASE_URL is not set")
    return url


@contextmanager
def db_conn() -> Iterator[psycopg.Connection]:
    """Yield a database connection with the configured ``search_path``.

    - If ``DATABASE_SCHEMA`` is set, the members table is looked up in that
      schema first, then ``public``.
    - Otherwise the server default ``search_path`` is used.

    The connection commits on a clean exit and rolls back on error.
    """
    with psycopg.connect(get_database_url()) as conn:
        schema = os.environ.get("DATABASE_SCHEMA", "").strip()
        if schema:
            conn.execute(sql.SQL("SET search_path TO {}, public").format(sql.Identifier(schema)))
        yield conn
