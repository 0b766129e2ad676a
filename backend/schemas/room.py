from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from schemas.common import Pagination

class RoomBase(BaseModel):
    name: str = Field(..., min_length=1)
    floor: Optional[str] = None
    description: Optional[str] = None

class RoomCreate(RoomBase):
    pass

class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    floor: Optional[str] = None
    description: Optional[str] = None

class Room(RoomBase):
    id: int
    institute_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RoomPage(BaseModel):
    rooms: List[Room] = Field(..., alias="Room")
    pagination: Pagination = Field(..., alias="Pagination")

    class Config:
        populate_by_name = True
