from pydantic import BaseModel, ConfigDict, Field, AliasChoices, field_validator
from typing import Optional, Any
from datetime import datetime
from vodcatalog.models.refresh_execution import RefreshStatus


def _scalar_to_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    return str(value)


# Xtream feed rows. Providers are loose about types (ids arrive as int or str),
# so every field is coerced to an optional string.

class FeedRow(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, value):
        return _scalar_to_str(value)

class XtreamCategory(FeedRow):
    category_id: Optional[str] = None
    category_name: Optional[str] = None

class MovieFeedRow(FeedRow):
    stream_id: Optional[str] = None
    name: Optional[str] = None
    plot: Optional[str] = None
    stream_icon: Optional[str] = None
    container_extension: Optional[str] = None
    category_id: Optional[str] = None
    release_date: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("releaseDate", "release_date")
    )

class SeriesFeedRow(FeedRow):
    series_id: Optional[str] = None
    name: Optional[str] = None
    plot: Optional[str] = None
    cover: Optional[str] = None
    category_id: Optional[str] = None
    release_date: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("releaseDate", "release_date")
    )


# API

class RefreshTriggerResponse(BaseModel):
    message: str
    task_id: str

class RefreshExecutionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    provider_id: int
    source: str
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: RefreshStatus
    movies_processed: int = 0
    series_processed: int = 0
    relations_removed: int = 0
    orphans_removed: int = 0
    error_message: Optional[str] = None

class CatalogStatsResponse(BaseModel):
    categories: int
    movies: int
    series: int
    episodes: int
    movie_relations: int
    series_relations: int
    episode_relations: int
