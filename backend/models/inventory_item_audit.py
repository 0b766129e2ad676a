from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import local_now

class InventoryItemAudit(Base):
    __tablename__ = "inventory_item_audit"

    id = Column(Integer, primary_key=True, index=True)
    inventory_item_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=False)
    institute_id = Column(Integer, index=True, nullable=False)
    change_type = Column(String, nullable=False)  # "create", "scrap_split", "transfer_out" etc.
    change_amount = Column(Integer, nullable=False) # Positive or negative
    old_quantity = Column(Integer, nullable=False)
    new_quantity = Column(Integer, nullable=False)
    changed_by = Column(String, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=local_now)
    note = Column(String, nullable=True)

    inventory_item = relationship("InventoryItem", back_populates="audits")
