from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from schemas.common import Pagination

class AssetMasterBase(BaseModel):
    asset_type: str = Field(..., min_length=1)
    unit: Optional[str] = None
    service_required: bool = False
    asset_category_ids: List[int] = []

class AssetMasterCreate(AssetMasterBase):
    pass

class AssetMasterUpdate(BaseModel):
    asset_type: Optional[str] = Field(None, min_length=1)
    unit: Optional[str] = None
    service_required: Optional[bool] = None
    asset_category_ids: Optional[List[int]] = None

class AssetMaster(AssetMasterBase):
    id: int
    institute_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AssetMasterPage(BaseModel):
    asset_masters: List[AssetMaster] = Field(..., alias="AssetMaster")
    pagination: Pagination = Field(..., alias="Pagination")

    class Config:
        populate_by_name = True
