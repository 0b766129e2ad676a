from sqlalchemy import Column, Integer, String, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from database import Base
from models.audit_mixin import TimestampMixin

class Room(Base, TimestampMixin):
    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint('institute_id', 'name', name='_room_name_institute_uc'),)

    id = Column(Integer, primary_key=True, index=True)
    institute_id = Column(Integer, ForeignKey("institutes.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    floor = Column(String, nullable=True)
    description = Column(Text, nullable=True)

    institute = relationship("Institute", back_populates="rooms")
