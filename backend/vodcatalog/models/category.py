from sqlalchemy import Column, String
from vodcatalog.db.base_class import Base

class VodCategory(Base):
    __tablename__ = "vod_categories"

    category_id = Column(String, primary_key=True)
    category_name = Column(String, nullable=False)
