import logging
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import Session

from vodcatalog.models.catalog import Movie
from vodcatalog.models.category import VodCategory
from vodcatalog.services.vod.errors import StoreError
from vodcatalog.services.vod.kinds import EntityKind
from vodcatalog.services.vod.store import CatalogStore


def _legacy_engine(path):
    engine = create_engine(f"sqlite:///{path}")
    with engine.begin() as connection:
        for table in ("movies", "series"):
            connection.execute(text(
                f"""
                CREATE TABLE {table} (
                    id INTEGER PRIMARY KEY,
                    name VARCHAR,
                    year INTEGER,
                    description TEXT,
                    logo VARCHAR,
                    category_name VARCHAR NOT NULL
                )
                """
            ))
    return engine


def test_ensure_schema_adds_legacy_column_once(tmp_path, caplog):
    engine = _legacy_engine(tmp_path / "legacy.db")
    try:
        with Session(engine) as session:
            store = CatalogStore(session)
            store.ensure_schema()

            columns = {c["name"] for c in inspect(engine).get_columns("movies")}
            assert "provider_unique_id" in columns
            assert "provider_movie_relations" in inspect(engine).get_table_names()

            caplog.clear()
            with caplog.at_level(logging.DEBUG, logger="vodcatalog.services.vod.store"):
                store.ensure_schema()
            assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
            assert any("already exists" in r.getMessage() for r in caplog.records)
    finally:
        engine.dispose()


def test_transaction_rolls_back_and_wraps_errors(db, store):
    with pytest.raises(StoreError):
        with store.transaction():
            store.insert_entity(EntityKind.MOVIE, {"name": "Tmp", "category_name": "VOD",
                                                   "provider_unique_id": "movie_1_1"})
            # Duplicate unique key
            store.insert_entity(EntityKind.MOVIE, {"name": "Tmp", "category_name": "VOD",
                                                   "provider_unique_id": "movie_1_1"})

    assert db.query(Movie).count() == 0


def test_transaction_rolls_back_on_other_exceptions(db, store):
    with pytest.raises(KeyError):
        with store.transaction():
            store.upsert_category_if_absent("1", "Action")
            raise KeyError("boom")

    assert db.query(VodCategory).count() == 0


def test_upsert_category_if_absent(db, store):
    with store.transaction():
        assert store.upsert_category_if_absent("1", "Action") is True
        assert store.upsert_category_if_absent("1", "Drama") is False

    assert [(c.category_id, c.category_name) for c in db.query(VodCategory)] == [("1", "Action")]


def test_load_entity_id_map_escapes_like_wildcards(db, store):
    with store.transaction():
        store.insert_entity(EntityKind.MOVIE, {"name": "A", "category_name": "VOD",
                                               "provider_unique_id": "movie_1_10"})
        store.insert_entity(EntityKind.MOVIE, {"name": "B", "category_name": "VOD",
                                               "provider_unique_id": "movieX1X10"})

    assert list(store.load_entity_id_map(EntityKind.MOVIE, 1)) == ["movie_1_10"]


def test_release_ends_a_read_transaction(db, store):
    db.query(Movie).count()
    assert db.in_transaction()

    store.release()

    assert not db.in_transaction()


def test_release_is_a_no_op_on_an_idle_session(db, store):
    store.release()
    assert not db.in_transaction()


def test_upserts_reject_unsupported_dialects():
    bind = SimpleNamespace(dialect=SimpleNamespace(name="mysql"))
    store = CatalogStore(SimpleNamespace(get_bind=lambda: bind))

    with pytest.raises(StoreError, match="mysql"):
        store.upsert_category_if_absent("1", "Action")
