from sqlalchemy import Column, Integer, DateTime, ForeignKey, Enum, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class TransferStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Transfer(Base, TimestampMixin):
    __tablename__ = "transfers"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="_transfer_quantity_positive"),
        CheckConstraint(
            "(to_room_id IS NULL) <> (to_institute_id IS NULL)",
            name="_transfer_single_destination",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    inventory_id = Column(Integer, ForeignKey("inventory_items.id"), index=True, nullable=False)
    # Source location as it was when the request was raised
    from_room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    from_institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=True)
    to_room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    to_institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=True)
    quantity = Column(Integer, nullable=False)
    status = Column(Enum(TransferStatus), default=TransferStatus.PENDING, nullable=False)
    requested_by = Column(Integer, nullable=False)
    approved_by = Column(Integer, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    # Row split off at the destination when a partial transfer is approved
    created_inventory_id = Column(Integer, ForeignKey("inventory_items.id"), nullable=True)

    inventory = relationship("InventoryItem", foreign_keys=[inventory_id])
