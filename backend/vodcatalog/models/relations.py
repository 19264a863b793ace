from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from vodcatalog.db.base_class import Base

class ProviderMovieRelation(Base):
    __tablename__ = "provider_movie_relations"

    provider_id = Column(Integer, primary_key=True)
    stream_id = Column(String, primary_key=True)
    movie_id = Column(Integer, ForeignKey("movies.id"), nullable=False, index=True)
    container_extension = Column(String, nullable=False, default="mp4")
    last_seen = Column(DateTime, nullable=False, index=True)

class ProviderSeriesRelation(Base):
    __tablename__ = "provider_series_relations"

    provider_id = Column(Integer, primary_key=True)
    external_series_id = Column(String, primary_key=True)
    series_id = Column(Integer, ForeignKey("series.id"), nullable=False, index=True)
    last_seen = Column(DateTime, nullable=False, index=True)

class ProviderEpisodeRelation(Base):
    __tablename__ = "provider_episode_relations"

    provider_id = Column(Integer, primary_key=True)
    external_episode_id = Column(String, primary_key=True)
    episode_id = Column(Integer, ForeignKey("episodes.id"), nullable=False, index=True)
    container_extension = Column(String, nullable=False, default="mp4")
    last_seen = Column(DateTime, nullable=False, index=True)
