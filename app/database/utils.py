from typing import Any, Dict, Iterable, Optional

from sqlalchemy import Table, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session

from app.core.exceptions import PersistenceError

_DIALECT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _dialect_insert(db: Session, table: Table):
    dialect = db.get_bind().dialect.name
    insert = _DIALECT_INSERTS.get(dialect)
    if insert is None:
        raise PersistenceError(f"Upserts are not supported on '{dialect}'")
    return insert(table)


def insert_ignore(db: Session, table: Table, values: Dict[str, Any], index_elements: Iterable[str]) -> bool:
    """
    INSERT ... ON CONFLICT DO NOTHING.
    Returns True if a row was written, False if the key already existed.
    Does not commit.
    """
    stmt = _dialect_insert(db, table).values(**values).on_conflict_do_nothing(
        index_elements=list(index_elements)
    )
    return db.execute(stmt).rowcount > 0


def upsert(
        db: Session,
        table: Table,
        values: Dict[str, Any],
        index_elements: Iterable[str],
        update: Dict[str, Any],
        where: Optional[Any] = None,
) -> None:
    """
    INSERT ... ON CONFLICT DO UPDATE SET <update> [WHERE <where>].
    Rows failing `where` are left untouched. Does not commit.
    """
    stmt = _dialect_insert(db, table).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=list(index_elements),
        set_=update,
        where=where,
    )
    db.execute(stmt)


def lock_pair(db: Session, user_a: int, user_b: int) -> None:
    """
    Serialize writers working on the same unordered pair of users until the
    transaction ends. PostgreSQL only; SQLite already has a single writer.
    """
    if db.get_bind().dialect.name != "postgresql":
        return
    low, high = (user_a, user_b) if user_a < user_b else (user_b, user_a)
    db.execute(select(func.pg_advisory_xact_lock(low, high)))
