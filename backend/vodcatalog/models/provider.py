from sqlalchemy import Column, Integer, String, Boolean, Text, Enum as SQLEnum
from vodcatalog.db.base_class import Base
import enum

class ProviderType(str, enum.Enum):
    XTREAM = "xtream"
    M3U = "m3u"

class Provider(Base):
    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    provider_type = Column(SQLEnum(ProviderType), nullable=False, default=ProviderType.XTREAM)

    # JSON document: {"server": ..., "username": ..., "password": ...}
    xc_data = Column(Text, nullable=True)
    m3u_url = Column(String, nullable=True)

    is_active = Column(Boolean, default=True)
