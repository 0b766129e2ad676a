from pydantic import BaseModel, Field, model_validator
from typing import List, Literal, Optional
from datetime import datetime
from models.transfer import TransferStatus
from schemas.common import Pagination

class TransferCreate(BaseModel):
    inventory_id: int
    target_type: Literal["room", "institute"]
    destination_room_id: Optional[int] = None
    destination_institute_id: Optional[int] = None
    quantity: int = Field(..., ge=1)

    @model_validator(mode="after")
    def check_destination(self):
        if self.target_type == "room" and self.destination_room_id is None:
            raise ValueError("destination_room_id is required when target_type is room")
        if self.target_type == "institute" and self.destination_institute_id is None:
            raise ValueError("destination_institute_id is required when target_type is institute")
        return self

class Transfer(BaseModel):
    id: int
    inventory_id: int
    from_room_id: Optional[int] = None
    from_institute_id: Optional[int] = None
    to_room_id: Optional[int] = None
    to_institute_id: Optional[int] = None
    quantity: int
    status: TransferStatus
    requested_by: int
    approved_by: Optional[int] = None
    approved_at: Optional[datetime] = None
    created_inventory_id: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True

class TransferPage(BaseModel):
    transfers: List[Transfer] = Field(..., alias="Transfers")
    pagination: Pagination = Field(..., alias="Pagination")

    class Config:
        populate_by_name = True
