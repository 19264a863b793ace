# Import Base class
from vodcatalog.db.base_class import Base

# Import all models here so that Base has them registered
# This is needed for Base.metadata.create_all()
from vodcatalog.models.provider import Provider
from vodcatalog.models.category import VodCategory
from vodcatalog.models.catalog import Movie, Series, Episode
from vodcatalog.models.relations import (
    ProviderMovieRelation, ProviderSeriesRelation, ProviderEpisodeRelation
)
from vodcatalog.models.refresh_execution import RefreshExecution
