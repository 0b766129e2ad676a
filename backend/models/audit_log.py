from sqlalchemy import Column, Integer, String, DateTime, JSON
from database import Base
from models.audit_mixin import local_now

class AuditLog(Base):
    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, index=True)
    table_name = Column(String, nullable=False)
    record_id = Column(Integer, nullable=False)
    institute_id = Column(Integer, index=True, nullable=True)
    changed_at = Column(DateTime(timezone=True), default=local_now)
    changed_by = Column(String, nullable=False)
    action = Column(String, nullable=False)  # e.g., 'INSERT', 'UPDATE', 'DELETE', 'APPROVE', 'REJECT'
    old_values = Column(JSON)
    new_values = Column(JSON)
