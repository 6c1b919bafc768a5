"""Full-text search over provisions and definitions.

SQLite uses FTS5 external-content tables kept in sync with their base tables
by triggers. PostgreSQL uses tsvector columns with GIN indexes, also kept in
sync by triggers.
"""

from __future__ import annotations

import re
from typing import Any

from sqlalchemy import Connection, text
from sqlalchemy.orm import Session


_SQLITE_INSTALL = [
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS provisions_fts USING fts5(
        content, title,
        content='legal_provisions', content_rowid='id',
        tokenize='unicode61'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS provisions_ai AFTER INSERT ON legal_provisions BEGIN
        INSERT INTO provisions_fts(rowid, content, title)
        VALUES (new.id, new.content, new.title);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS provisions_ad AFTER DELETE ON legal_provisions BEGIN
        INSERT INTO provisions_fts(provisions_fts, rowid, content, title)
        VALUES ('delete', old.id, old.content, old.title);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS provisions_au AFTER UPDATE ON legal_provisions BEGIN
        INSERT INTO provisions_fts(provisions_fts, rowid, content, title)
        VALUES ('delete', old.id, old.content, old.title);
        INSERT INTO provisions_fts(rowid, content, title)
        VALUES (new.id, new.content, new.title);
    END
    """,
    """
    CREATE VIRTUAL TABLE IF NOT EXISTS definitions_fts USING fts5(
        term, definition,
        content='definitions', content_rowid='id',
        tokenize='unicode61'
    )
    """,
    """
    CREATE TRIGGER IF NOT EXISTS definitions_ai AFTER INSERT ON definitions BEGIN
        INSERT INTO definitions_fts(rowid, term, definition)
        VALUES (new.id, new.term, new.definition);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS definitions_ad AFTER DELETE ON definitions BEGIN
        INSERT INTO definitions_fts(definitions_fts, rowid, term, definition)
        VALUES ('delete', old.id, old.term, old.definition);
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS definitions_au AFTER UPDATE ON definitions BEGIN
        INSERT INTO definitions_fts(definitions_fts, rowid, term, definition)
        VALUES ('delete', old.id, old.term, old.definition);
        INSERT INTO definitions_fts(rowid, term, definition)
        VALUES (new.id, new.term, new.definition);
    END
    """,
    # Rows loaded before the index existed
    "INSERT INTO provisions_fts(provisions_fts) VALUES ('rebuild')",
    "INSERT INTO definitions_fts(definitions_fts) VALUES ('rebuild')",
]

_SQLITE_DROP = [
    "DROP TABLE IF EXISTS provisions_fts",
    "DROP TABLE IF EXISTS definitions_fts",
]

_POSTGRES_INSTALL = [
    """
    ALTER TABLE legal_provisions ADD COLUMN IF NOT EXISTS tsv tsvector;

    UPDATE legal_provisions
    SET tsv = to_tsvector('french', COALESCE(title, '') || ' ' || COALESCE(content, ''))
    WHERE tsv IS NULL;

    CREATE INDEX IF NOT EXISTS idx_legal_provisions_tsv ON legal_provisions USING GIN(tsv);

    CREATE OR REPLACE FUNCTION legal_provisions_tsv_trigger() RETURNS trigger AS $$
    BEGIN
        NEW.tsv := to_tsvector('french', COALESCE(NEW.title, '') || ' ' || COALESCE(NEW.content, ''));
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql;

    DROP TRIGGER IF EXISTS legal_provisions_tsv_update_trigger ON legal_provisions;
    CREATE TRIGGER legal_provisions_tsv_update_trigger
    BEFORE INSERT OR UPDATE ON legal_provisions
    FOR EACH ROW
    EXECUTE FUNCTION legal_provisions_tsv_trigger();
    """,
    """
    ALTER TABLE definitions ADD COLUMN IF NOT EXISTS tsv tsvector;

    UPDATE definitions
    SET tsv = to_tsvector('french', COALESCE(term, '') || ' ' || COALESCE(definition, ''))
    WHERE tsv IS NULL;

    CREATE INDEX IF NOT EXISTS idx_definitions_tsv ON definitions USING GIN(tsv);

    CREATE OR REPLACE FUNCTION definitions_tsv_trigger() RETURNS trigger AS $$
    BEGIN
        NEW.tsv := to_tsvector('french', COALESCE(NEW.term, '') || ' ' || COALESCE(NEW.definition, ''));
        RETURN NEW;
    END;
    $$ LANGUAGE plpgsql;

    DROP TRIGGER IF EXISTS definitions_tsv_update_trigger ON definitions;
    CREATE TRIGGER definitions_tsv_update_trigger
    BEFORE INSERT OR UPDATE ON definitions
    FOR EACH ROW
    EXECUTE FUNCTION definitions_tsv_trigger();
    """,
]

_POSTGRES_DROP = [
    "DROP FUNCTION IF EXISTS legal_provisions_tsv_trigger() CASCADE",
    "DROP FUNCTION IF EXISTS definitions_tsv_trigger() CASCADE",
]

_BOOLEAN_SYNTAX = re.compile(r'\b(AND|OR|NOT|NEAR)\b|["*()^:]')
_TOKEN = re.compile(r"[\w']+", re.UNICODE)


def _tokens(query: str) -> list[str]:
    # "l'article" -> "article"
    return [t.split("'")[-1] for t in _TOKEN.findall(query) if t.split("'")[-1]]


def install_fts(conn: Connection) -> None:
    """Create full-text indexes and the triggers that keep them in sync."""
    statements = _POSTGRES_INSTALL if conn.dialect.name == "postgresql" else _SQLITE_INSTALL
    for sql in statements:
        conn.exec_driver_sql(sql)


def drop_fts(conn: Connection) -> None:
    statements = _POSTGRES_DROP if conn.dialect.name == "postgresql" else _SQLITE_DROP
    for sql in statements:
        conn.exec_driver_sql(sql)


def is_boolean_query(query: str) -> bool:
    return bool(_BOOLEAN_SYNTAX.search(query))


def build_fts_query(query: str) -> str:
    """Turn user input into an FTS5 MATCH expression.

    Boolean syntax (AND/OR/NOT, quotes, prefix stars) passes through unchanged;
    plain words become prefix queries ("donnée personnel" -> "donnée* personnel*").
    """
    query = query.strip()
    if not query:
        return ""
    if is_boolean_query(query):
        return query

    tokens = _tokens(query)
    return " ".join(f"{token}*" for token in tokens)


def build_tsquery(query: str) -> str:
    """PostgreSQL counterpart of `build_fts_query` for plain-word input."""
    tokens = _tokens(query)
    return " & ".join(f"{token}:*" for token in tokens)


def search_provisions(
    db: Session,
    *,
    query: str,
    document_id: str | None = None,
    status: str | None = None,
    limit: int = 10,
) -> list[dict[str, Any]]:
    """Ranked provision search.

    Args:
        db: DB session
        query: user query (plain words or boolean syntax)
        document_id: restrict to one document
        status: restrict to documents with this status
        limit: max rows

    Returns:
        rows with document_id, document_title, provision_ref, section, title,
        snippet and relevance (higher is better)
    """
    if db.get_bind().dialect.name == "postgresql":
        return _search_provisions_postgres(
            db, query=query, document_id=document_id, status=status, limit=limit
        )

    match = build_fts_query(query)
    if not match:
        return []

    where_clauses = ["provisions_fts MATCH :match"]
    params: dict[str, Any] = {"match": match, "limit": limit}

    if document_id:
        where_clauses.append("lp.document_id = :document_id")
        params["document_id"] = document_id
    if status:
        where_clauses.append("ld.status = :status")
        params["status"] = status

    where_clause = " AND ".join(where_clauses)

    sql = text(f"""
        SELECT
            lp.document_id,
            ld.title AS document_title,
            lp.provision_ref,
            lp.chapter,
            lp.section,
            lp.title,
            snippet(provisions_fts, 0, '>>>', '<<<', '...', 32) AS snippet,
            bm25(provisions_fts) AS rank
        FROM provisions_fts
        JOIN legal_provisions lp ON lp.id = provisions_fts.rowid
        JOIN legal_documents ld ON ld.id = lp.document_id
        WHERE {where_clause}
        ORDER BY rank
        LIMIT :limit
    """)

    rows = db.execute(sql, params).mappings().all()

    results = []
    for row in rows:
        item = dict(row)
        # bm25 is lower-is-better
        item["relevance"] = round(-float(item.pop("rank")), 4)
        results.append(item)
    return results


def _search_provisions_postgres(
    db: Session,
    *,
    query: str,
    document_id: str | None,
    status: str | None,
    limit: int,
) -> list[dict[str, Any]]:
    if is_boolean_query(query):
        ts_function, ts_query = "websearch_to_tsquery", query
    else:
        ts_function, ts_query = "to_tsquery", build_tsquery(query)
    if not ts_query:
        return []

    where_clauses = [f"lp.tsv @@ {ts_function}('french', :query)"]
    params: dict[str, Any] = {"query": ts_query, "limit": limit}

    if document_id:
        where_clauses.append("lp.document_id = :document_id")
        params["document_id"] = document_id
    if status:
        where_clauses.append("ld.status = :status")
        params["status"] = status

    where_clause = " AND ".join(where_clauses)

    sql = text(f"""
        SELECT
            lp.document_id,
            ld.title AS document_title,
            lp.provision_ref,
            lp.chapter,
            lp.section,
            lp.title,
            ts_headline('french', lp.content, {ts_function}('french', :query),
                        'StartSel=>>>, StopSel=<<<, MaxWords=32') AS snippet,
            ts_rank(lp.tsv, {ts_function}('french', :query)) AS relevance
        FROM legal_provisions lp
        JOIN legal_documents ld ON ld.id = lp.document_id
        WHERE {where_clause}
        ORDER BY relevance DESC, lp.id
        LIMIT :limit
    """)

    rows = db.execute(sql, params).mappings().all()
    return [dict(row) for row in rows]
