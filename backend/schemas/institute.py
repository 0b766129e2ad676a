from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from schemas.common import Pagination

class InstituteBase(BaseModel):
    name: str = Field(..., min_length=1)
    code: Optional[str] = None
    address: Optional[str] = None

class InstituteCreate(InstituteBase):
    pass

class InstituteUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = None
    address: Optional[str] = None

class Institute(InstituteBase):
    id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InstitutePage(BaseModel):
    institutes: List[Institute] = Field(..., alias="Institute")
    pagination: Pagination = Field(..., alias="Pagination")

    class Config:
        populate_by_name = True
