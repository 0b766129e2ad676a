from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from schemas.common import Pagination

class AssetCategoryBase(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None

class AssetCategoryCreate(AssetCategoryBase):
    pass

class AssetCategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None

class AssetCategory(AssetCategoryBase):
    id: int
    institute_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class AssetCategoryPage(BaseModel):
    asset_categories: List[AssetCategory] = Field(..., alias="AssetCategory")
    pagination: Pagination = Field(..., alias="Pagination")

    class Config:
        populate_by_name = True
