from sqlalchemy import Column, Integer, Text, Numeric, Date, JSON, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import AuditMixin

class InventoryStatus(enum.Enum):
    ACTIVE_STOCK = "ActiveStock"
    DISCARDED = "Discarded"
    SCRAPED = "Scraped"

class InventoryItem(Base, AuditMixin):
    __tablename__ = "inventory_items"
    __table_args__ = (CheckConstraint("quantity >= 0", name="_inventory_quantity_non_negative"),)

    id = Column(Integer, primary_key=True, index=True)
    institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=False)
    room_id = Column(Integer, ForeignKey("rooms.id"), index=True, nullable=True)
    asset_master_id = Column(Integer, ForeignKey("asset_masters.id"), nullable=False)
    asset_category_ids = Column(JSON, default=list, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    status = Column(Enum(InventoryStatus), default=InventoryStatus.ACTIVE_STOCK, nullable=False)
    scraped_amount = Column(Numeric(12, 2), nullable=True)
    scraped_quantity = Column(Integer, nullable=True)
    purchase_date = Column(Date, nullable=True)
    purchase_price = Column(Numeric(12, 2), nullable=True)
    remarks = Column(Text, nullable=True)

    # Relationships
    asset_master = relationship("AssetMaster", back_populates="inventory_items")
    room = relationship("Room")
    institute = relationship("Institute")
    audits = relationship("InventoryItemAudit", back_populates="inventory_item")

    @property
    def asset_type(self):
        return self.asset_master.asset_type if self.asset_master else None

    @property
    def room_name(self):
        return self.room.name if self.room else None
