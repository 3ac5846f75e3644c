"""Rule store backed by a SQL table (any database SQLAlchemy can reach).

The table needs the columns ``key``, ``language``, ``expression``,
``priority``, ``translation`` and ``context``::

    CREATE TABLE translations (
        key         TEXT NOT NULL,
        language    TEXT NOT NULL,
        context     TEXT,
        expression  TEXT,
        priority    INTEGER,
        translation TEXT NOT NULL
    );

A row with a NULL or empty ``context`` belongs to no context.
"""
from __future__ import annotations

import logging
import re
from typing import Optional, Sequence

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from makephrase.errors import ConfigError, InvalidRuleError, RepositoryError
from makephrase.rules import TranslationRule
from makephrase.stores.base import BackingStore

logger = logging.getLogger("makephrase.stores.sql")

COLUMNS = ("key", "language", "expression", "priority", "translation", "context")

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


def _make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


class SQLStore(BackingStore):
    """Translation rules read from a database table on every lookup.

    Args:
        database: A SQLAlchemy URL or an existing ``Engine``.
        table: Table name (optionally ``schema.table``).
        where: Extra SQL condition appended to every query, for subclasses
            or callers that partition one table between applications.
    """

    name = "sql"

    def __init__(self, database: str | Engine, table: str, where: str = ""):
        if not table:
            raise ConfigError("Missing 'table' for the SQL store")
        if not _IDENTIFIER_RE.match(table):
            raise ConfigError(f"Invalid table name: {table!r}", context={"table": table})
        if not database:
            raise ConfigError("Missing database URL for the SQL store")
        self.table = table
        self.where = where
        self.owned = not isinstance(database, Engine)
        try:
            self.engine = _make_engine(database) if self.owned else database
        except (SQLAlchemyError, ValueError, ImportError) as e:
            raise ConfigError(f"Invalid database URL: {e}") from e
        self._check_table()

    def _check_table(self) -> None:
        columns = ", ".join(f'"{c}"' for c in COLUMNS)
        try:
            with self.engine.connect() as conn:
                conn.execute(text(f"SELECT 1 FROM {self.table} LIMIT 1"))
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Table '{self.table}' doesn't exist or cannot be read", store=self.name
            ) from e
        try:
            with self.engine.connect() as conn:
                conn.execute(text(f"SELECT {columns} FROM {self.table} LIMIT 1"))
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Table '{self.table}' doesn't have the columns: {', '.join(COLUMNS)}",
                store=self.name,
            ) from e

    def get_where(self) -> str:
        """Extra SQL condition for every query; override in subclasses."""
        return self.where

    def get_query(self, context: Optional[str]):
        query = (
            'SELECT "key", "language", "expression", "priority", "translation" '
            f'FROM {self.table} WHERE "key" = :key AND lower("language") IN :languages'
        )
        if context:
            query += ' AND "context" = :context'
        else:
            query += " AND (\"context\" IS NULL OR \"context\" = '')"
        custom = self.get_where()
        if custom:
            query += f" AND ({custom})"
        return text(query).bindparams(bindparam("languages", expanding=True))

    def get_rules(
        self, context: Optional[str], key: str, languages: Sequence[str]
    ) -> list[TranslationRule]:
        if not languages:
            return []
        params = {"key": key, "languages": [lang.lower() for lang in languages]}
        if context:
            params["context"] = context
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(self.get_query(context), params).fetchall()
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Query on table '{self.table}' failed: {e}", store=self.name
            ) from e

        rules = []
        for k, language, expression, priority, translation in rows:
            try:
                rules.append(
                    self.make_rule(
                        key=k,
                        language=language,
                        expression=expression or "",
                        priority=priority or 0,
                        translation=translation,
                        context=context or "",
                    )
                )
            except InvalidRuleError as e:
                logger.warning("Skipping invalid row in %s: %s", self.table, e)
        logger.debug("Found %d rules for %r in %s", len(rules), key, self.table)
        return rules

    def close(self) -> None:
        """Dispose of the connection pool if this store created it."""
        if self.owned:
            self.engine.dispose()

    def __repr__(self) -> str:
        return f"SQLStore(table={self.table!r}, url={self.engine.url!r})"
