from sqlalchemy import Column, Integer, String, Boolean, JSON, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class AssetMaster(Base, TimestampMixin):
    __tablename__ = "asset_masters"

    id = Column(Integer, primary_key=True, index=True)
    institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=False)
    asset_type = Column(String, nullable=False)
    unit = Column(String, nullable=True) # e.g., "pcs", "sets", "boxes"
    service_required = Column(Boolean, default=False, nullable=False)
    asset_category_ids = Column(JSON, default=list, nullable=False)

    inventory_items = relationship("InventoryItem", back_populates="asset_master")
