from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import datetime
from models.requisition import RequisitionStatus
from schemas.common import Pagination

class RequisitionBase(BaseModel):
    asset_master_id: int
    description: Optional[str] = None

class RequisitionCreate(RequisitionBase):
    pass

class RequisitionUpdate(BaseModel):
    asset_master_id: Optional[int] = None
    description: Optional[str] = None

class RequisitionApprove(BaseModel):
    comments: Optional[str] = None

class RequisitionReject(BaseModel):
    comments: str

    @field_validator("comments")
    def validate_comments(cls, v):
        if not v or not v.strip():
            raise ValueError("A comment is required when rejecting a requisition")
        return v.strip()

class Requisition(RequisitionBase):
    id: int
    institute_id: int
    asset_name: Optional[str] = None
    requested_by: int
    requester_role: Optional[str] = None
    status: RequisitionStatus
    approved_by: Optional[int] = None
    approval_date: Optional[datetime] = None
    comments: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class RequisitionList(BaseModel):
    requisitions: List[Requisition] = Field(..., alias="Requisition")

    class Config:
        populate_by_name = True

class RequisitionPage(RequisitionList):
    pagination: Pagination = Field(..., alias="Pagination")
