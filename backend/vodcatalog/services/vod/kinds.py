import enum
from dataclasses import dataclass
from typing import Any, Union

from vodcatalog.models.catalog import Movie, Series, Episode
from vodcatalog.models.relations import (
    ProviderMovieRelation, ProviderSeriesRelation, ProviderEpisodeRelation
)


class EntityKind(str, enum.Enum):
    MOVIE = "movie"
    SERIES = "series"
    EPISODE = "episode"


@dataclass(frozen=True)
class KindSpec:
    model: Any
    relation_model: Any
    entity_column: str  # relation column holding the internal entity id
    native_column: str  # relation column holding the provider-native id
    has_container: bool


KIND_SPECS = {
    EntityKind.MOVIE: KindSpec(Movie, ProviderMovieRelation, "movie_id", "stream_id", True),
    EntityKind.SERIES: KindSpec(Series, ProviderSeriesRelation, "series_id", "external_series_id", False),
    EntityKind.EPISODE: KindSpec(Episode, ProviderEpisodeRelation, "episode_id", "external_episode_id", True),
}

# Relation tables are reaped before any entity table.
REAP_ORDER = (EntityKind.MOVIE, EntityKind.SERIES, EntityKind.EPISODE)


def normalize_native_id(native_id: Any) -> Union[str, None]:
    """Return the native id as a stripped string, or None when it is not usable."""
    if native_id is None or isinstance(native_id, bool):
        return None
    value = str(native_id).strip()
    return value or None


def provider_unique_id_prefix(kind: EntityKind, provider_id: int) -> str:
    return f"{EntityKind(kind).value}_{provider_id}_"


def build_provider_unique_id(kind: EntityKind, provider_id: int, native_id: Any) -> str:
    native = normalize_native_id(native_id)
    if native is None:
        raise ValueError(f"Unusable native id for {kind}: {native_id!r}")
    return f"{provider_unique_id_prefix(kind, provider_id)}{native}"
