"""SQLAlchemy-backed catalog store used by the reconciliation phases.

Every write goes through the session held by the store; callers group writes
with :meth:`CatalogStore.transaction`, which commits once at the end or rolls
back and raises :class:`StoreError`.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator

from sqlalchemy import delete, exists, select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from vodcatalog.db.base import Base
from vodcatalog.models.category import VodCategory
from vodcatalog.services.vod.errors import StoreError
from vodcatalog.services.vod.kinds import (
    EntityKind, KIND_SPECS, provider_unique_id_prefix
)

logger = logging.getLogger(__name__)

# Columns added after the first release; older databases are patched in place.
LEGACY_COLUMN_MIGRATIONS = [
    "ALTER TABLE movies ADD COLUMN provider_unique_id TEXT",
    "ALTER TABLE series ADD COLUMN provider_unique_id TEXT",
]

ENTITY_FIELDS = ("name", "year", "description", "logo", "category_name")


def _is_existing_column_error(error: Exception) -> bool:
    err_msg = str(error).lower()
    return "duplicate column name" in err_msg or "already exists" in err_msg


class CatalogStore:
    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator["CatalogStore"]:
        try:
            yield self
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Catalog transaction failed: {e}") from e
        except Exception:
            self.db.rollback()
            raise

    def ensure_schema(self) -> None:
        engine = self.db.get_bind()
        try:
            Base.metadata.create_all(bind=engine)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not create catalog tables: {e}") from e

        for statement in LEGACY_COLUMN_MIGRATIONS:
            try:
                with engine.begin() as conn:
                    conn.execute(text(statement))
                logger.info(f"Applied schema migration: {statement}")
            except SQLAlchemyError as e:
                if _is_existing_column_error(e):
                    logger.debug(f"Schema migration skipped, column already exists: {statement}")
                else:
                    logger.error(f"Schema migration failed: {statement}: {e}")

    def release(self) -> None:
        """End a transaction the session autobegan for reads.

        Lazy loads and queries leave the session inside a transaction; it is
        closed here so no feed fetch runs while a connection is held open.
        """
        if self.db.in_transaction():
            try:
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StoreError(f"Could not release catalog session: {e}") from e

    def _insert(self, table):
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(table)
        if dialect == "sqlite":
            return sqlite.insert(table)
        raise StoreError(f"Unsupported database dialect for upserts: {dialect}")

    # Categories

    def upsert_category_if_absent(self, category_id: str, category_name: str) -> bool:
        stmt = self._insert(VodCategory.__table__).values(
            category_id=category_id, category_name=category_name
        ).on_conflict_do_nothing(index_elements=["category_id"])
        result = self.db.execute(stmt)
        return result.rowcount == 1

    # Entities

    def load_entity_id_map(self, kind: EntityKind, provider_id: int) -> Dict[str, int]:
        model = KIND_SPECS[kind].model
        prefix = provider_unique_id_prefix(kind, provider_id)
        rows = self.db.execute(
            select(model.provider_unique_id, model.id)
            .where(model.provider_unique_id.startswith(prefix, autoescape=True))
        ).all()
        return {provider_unique_id: entity_id for provider_unique_id, entity_id in rows}

    def insert_entity(self, kind: EntityKind, fields: Dict[str, Any]) -> int:
        entity = KIND_SPECS[kind].model(**fields)
        self.db.add(entity)
        self.db.flush()
        return entity.id

    def update_entity(self, kind: EntityKind, entity_id: int, fields: Dict[str, Any]) -> None:
        model = KIND_SPECS[kind].model
        values = {key: value for key, value in fields.items() if key in ENTITY_FIELDS}
        self.db.execute(
            update(model)
            .where(model.id == entity_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    # Relations

    def upsert_relation(self, kind: EntityKind, values: Dict[str, Any]) -> None:
        spec = KIND_SPECS[kind]
        table = spec.relation_model.__table__
        key_columns = ["provider_id", spec.native_column]
        stmt = self._insert(table).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=key_columns,
            set_={
                column: stmt.excluded[column]
                for column in values
                if column not in key_columns
            },
        )
        self.db.execute(stmt)

    def delete_stale_relations(self, kind: EntityKind, provider_id: int, before: datetime) -> int:
        table = KIND_SPECS[kind].relation_model.__table__
        result = self.db.execute(
            delete(table).where(
                table.c.provider_id == provider_id,
                table.c.last_seen < before,
            )
        )
        return result.rowcount

    def delete_orphan_entities(self, kind: EntityKind) -> int:
        spec = KIND_SPECS[kind]
        entities = spec.model.__table__
        relations = spec.relation_model.__table__
        referenced = exists().where(relations.c[spec.entity_column] == entities.c.id)
        result = self.db.execute(delete(entities).where(~referenced))
        return result.rowcount
