"""Entity and relation upserts shared by the Xtream and M3U ingestion paths."""
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError

from vodcatalog.core.config import settings as default_settings
from vodcatalog.schemas import MovieFeedRow, SeriesFeedRow
from vodcatalog.services.vod.kinds import (
    EntityKind, KIND_SPECS, build_provider_unique_id, normalize_native_id
)

logger = logging.getLogger(__name__)

YEAR_IN_NAME_RE = re.compile(r"\((\d{4})\)")
RELEASE_YEAR_RE = re.compile(r"^\s*(\d{4})")


def derive_year(name: Optional[str], release_date: Any = None) -> Optional[int]:
    """Release date year first, then a "(YYYY)" token in the name."""
    if release_date:
        if isinstance(release_date, (date, datetime)):
            return release_date.year
        match = RELEASE_YEAR_RE.match(str(release_date))
        if match:
            return int(match.group(1))
    if name:
        match = YEAR_IN_NAME_RE.search(name)
        if match:
            return int(match.group(1))
    return None


def fallback_category(kind: EntityKind, settings=default_settings) -> str:
    if kind == EntityKind.SERIES:
        return settings.DEFAULT_SERIES_CATEGORY
    return settings.DEFAULT_MOVIE_CATEGORY


@dataclass
class FeedItem:
    native_id: Any
    name: Optional[str]
    category_name: str
    year: Optional[int] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    container_extension: Optional[str] = None

    def entity_fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "year": self.year,
            "description": self.description,
            "logo": self.logo,
            "category_name": self.category_name,
        }


def movie_item(row, category_map: Dict[str, str], settings=default_settings) -> Optional[FeedItem]:
    try:
        movie = MovieFeedRow.model_validate(row)
    except ValidationError:
        return None
    return FeedItem(
        native_id=movie.stream_id,
        name=movie.name,
        year=derive_year(movie.name, movie.release_date),
        description=movie.plot,
        logo=movie.stream_icon,
        category_name=category_map.get(movie.category_id) or fallback_category(EntityKind.MOVIE, settings),
        container_extension=movie.container_extension,
    )


def series_item(row, category_map: Dict[str, str], settings=default_settings) -> Optional[FeedItem]:
    try:
        series = SeriesFeedRow.model_validate(row)
    except ValidationError:
        return None
    return FeedItem(
        native_id=series.series_id,
        name=series.name,
        year=derive_year(series.name, series.release_date),
        description=series.plot,
        logo=series.cover,
        category_name=category_map.get(series.category_id) or fallback_category(EntityKind.SERIES, settings),
    )


@dataclass
class UpsertStats:
    inserted: int = 0
    updated: int = 0
    skipped: int = 0

    @property
    def processed(self) -> int:
        return self.inserted + self.updated


class RelationTracker:
    """Writes provider -> entity links stamped with the run's scan start."""

    def __init__(self, store, kind: EntityKind, provider_id: int, scan_started_at: datetime,
                 default_extension: str = None):
        self.store = store
        self.kind = kind
        self.spec = KIND_SPECS[kind]
        self.provider_id = provider_id
        self.scan_started_at = scan_started_at
        self.default_extension = default_extension or default_settings.DEFAULT_CONTAINER_EXTENSION

    def track(self, entity_id: int, native_id: str, container_extension: Optional[str] = None) -> None:
        values = {
            "provider_id": self.provider_id,
            self.spec.native_column: native_id,
            self.spec.entity_column: entity_id,
            "last_seen": self.scan_started_at,
        }
        if self.spec.has_container:
            values["container_extension"] = container_extension or self.default_extension
        self.store.upsert_relation(self.kind, values)


class EntityUpserter:
    def __init__(self, store, kind: EntityKind, provider_id: int, scan_started_at: datetime,
                 default_extension: str = None):
        self.store = store
        self.kind = kind
        self.provider_id = provider_id
        self.relations = RelationTracker(store, kind, provider_id, scan_started_at, default_extension)

    def upsert_all(self, items: Iterable[Optional[FeedItem]]) -> UpsertStats:
        # One bulk read per phase; new ids are added as they are created so
        # repeated rows in the same feed reuse the entity.
        id_map = self.store.load_entity_id_map(self.kind, self.provider_id)
        stats = UpsertStats()

        for item in items:
            native_id = normalize_native_id(item.native_id) if item is not None else None
            if native_id is None:
                stats.skipped += 1
                continue

            provider_unique_id = build_provider_unique_id(self.kind, self.provider_id, native_id)
            fields = item.entity_fields()
            entity_id = id_map.get(provider_unique_id)

            if entity_id is not None:
                self.store.update_entity(self.kind, entity_id, fields)
                stats.updated += 1
            else:
                entity_id = self.store.insert_entity(
                    self.kind, {**fields, "provider_unique_id": provider_unique_id}
                )
                id_map[provider_unique_id] = entity_id
                stats.inserted += 1

            self.relations.track(entity_id, native_id, item.container_extension)

        if stats.skipped:
            logger.info(f"Skipped {stats.skipped} {self.kind.value} rows without a usable id")
        return stats
