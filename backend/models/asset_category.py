from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint
from database import Base
from models.audit_mixin import TimestampMixin

class AssetCategory(Base, TimestampMixin):
    __tablename__ = "asset_categories"
    __table_args__ = (UniqueConstraint('institute_id', 'name', name='_asset_category_name_institute_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
