from sqlalchemy import Column, Integer, String, Text
from vodcatalog.db.base_class import Base

class Movie(Base):
    __tablename__ = "movies"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String)
    year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    logo = Column(String, nullable=True)
    category_name = Column(String, nullable=False)
    provider_unique_id = Column(String, unique=True, index=True)

class Series(Base):
    __tablename__ = "series"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String)
    year = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    logo = Column(String, nullable=True)
    category_name = Column(String, nullable=False)
    provider_unique_id = Column(String, unique=True, index=True)

class Episode(Base):
    __tablename__ = "episodes"

    id = Column(Integer, primary_key=True, index=True)
    series_id = Column(Integer, index=True, nullable=True)  # internal series id
    season_num = Column(Integer, nullable=True)
    episode_num = Column(Integer, nullable=True)
    name = Column(String)
    provider_unique_id = Column(String, unique=True, index=True)
