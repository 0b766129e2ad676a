from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from database import Base
import enum
from models.audit_mixin import TimestampMixin

class RequisitionStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Requisition(Base, TimestampMixin):
    __tablename__ = "requisitions"

    id = Column(Integer, primary_key=True, index=True)
    institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=False)
    asset_master_id = Column(Integer, ForeignKey("asset_masters.id"), nullable=False)
    description = Column(Text, nullable=True)
    requested_by = Column(Integer, index=True, nullable=False)
    requester_role = Column(String, nullable=True)
    status = Column(Enum(RequisitionStatus), default=RequisitionStatus.PENDING, nullable=False)
    approved_by = Column(Integer, nullable=True)
    approval_date = Column(DateTime(timezone=True), nullable=True)
    comments = Column(Text, nullable=True) # Rejection reason or approval notes

    asset_master = relationship("AssetMaster")

    @property
    def asset_name(self):
        return self.asset_master.asset_type if self.asset_master else None
