from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from typing import List, Optional
from vodcatalog.db.session import get_db
from vodcatalog.models.provider import Provider
from vodcatalog.models.category import VodCategory
from vodcatalog.models.catalog import Movie, Series, Episode
from vodcatalog.models.relations import (
    ProviderMovieRelation, ProviderSeriesRelation, ProviderEpisodeRelation
)
from vodcatalog.models.refresh_execution import RefreshExecution
from vodcatalog.schemas import (
    CatalogStatsResponse, RefreshExecutionResponse, RefreshTriggerResponse
)
from vodcatalog.tasks.vod_refresh import refresh_provider_task

router = APIRouter()


@router.post("/refresh/{provider_id}", response_model=RefreshTriggerResponse)
def trigger_refresh(provider_id: int, db: Session = Depends(get_db)):
    provider = db.query(Provider).filter(Provider.id == provider_id).first()
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")

    task = refresh_provider_task.delay(provider_id)
    return RefreshTriggerResponse(message=f"VOD refresh started for {provider.name}", task_id=task.id)


@router.get("/executions", response_model=List[RefreshExecutionResponse])
def get_executions(provider_id: Optional[int] = None, limit: int = 50, db: Session = Depends(get_db)):
    query = db.query(RefreshExecution)
    if provider_id is not None:
        query = query.filter(RefreshExecution.provider_id == provider_id)
    executions = query.order_by(RefreshExecution.id.desc()).limit(limit).all()
    return [RefreshExecutionResponse.model_validate(e) for e in executions]


@router.get("/stats", response_model=CatalogStatsResponse)
def get_catalog_stats(db: Session = Depends(get_db)):
    def count(model) -> int:
        return db.execute(select(func.count()).select_from(model)).scalar_one()

    return CatalogStatsResponse(
        categories=count(VodCategory),
        movies=count(Movie),
        series=count(Series),
        episodes=count(Episode),
        movie_relations=count(ProviderMovieRelation),
        series_relations=count(ProviderSeriesRelation),
        episode_relations=count(ProviderEpisodeRelation),
    )
