import re
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from decimal import Decimal
from datetime import date, datetime
from models.inventory_items import InventoryStatus # Import the enum
from schemas.common import Pagination

# Free-text spellings seen in the wild, keyed by their squashed lowercase form
_STATUS_SYNONYMS = {
    "activestock": InventoryStatus.ACTIVE_STOCK,
    "active": InventoryStatus.ACTIVE_STOCK,
    "scraped": InventoryStatus.SCRAPED,
    "scrapped": InventoryStatus.SCRAPED,
    "scrap": InventoryStatus.SCRAPED,
    "discarded": InventoryStatus.DISCARDED,
    "discard": InventoryStatus.DISCARDED,
}

def normalize_inventory_status(value):
    """Map any accepted spelling of an inventory status onto InventoryStatus."""
    if value is None or isinstance(value, InventoryStatus):
        return value
    key = re.sub(r"[\s_\-]+", "", str(value)).lower()
    if key not in _STATUS_SYNONYMS:
        raise ValueError(f"Unknown inventory status '{value}'")
    return _STATUS_SYNONYMS[key]


class InventoryItemBase(BaseModel):
    asset_master_id: int
    room_id: Optional[int] = None
    quantity: int = Field(..., ge=0)
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    remarks: Optional[str] = None

class InventoryItemCreate(InventoryItemBase):
    # Defaults to the asset master's categories when omitted
    asset_category_ids: Optional[List[int]] = None
    status: InventoryStatus = InventoryStatus.ACTIVE_STOCK

    @field_validator("status", mode="before")
    def normalize_status(cls, v):
        return normalize_inventory_status(v)

class InventoryItemUpdate(BaseModel):
    asset_master_id: Optional[int] = None
    room_id: Optional[int] = None
    asset_category_ids: Optional[List[int]] = None
    quantity: Optional[int] = Field(None, ge=0)
    purchase_date: Optional[date] = None
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    status: Optional[InventoryStatus] = None
    # Only meaningful together with status=Scraped
    scraped_quantity: Optional[int] = Field(None, ge=1)
    scraped_amount: Optional[Decimal] = Field(None, ge=0)
    remarks: Optional[str] = None

    @field_validator("status", mode="before")
    def normalize_status(cls, v):
        return normalize_inventory_status(v)

class InventoryItem(InventoryItemBase):
    id: int
    institute_id: int
    asset_type: Optional[str] = None
    room_name: Optional[str] = None
    asset_category_ids: List[int] = []
    status: InventoryStatus
    scraped_amount: Optional[Decimal] = None
    scraped_quantity: Optional[int] = None
    created_by: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class InventoryPage(BaseModel):
    inventory: List[InventoryItem] = Field(..., alias="Inventory")
    pagination: Pagination = Field(..., alias="Pagination")

    class Config:
        populate_by_name = True

class InventoryUpdateResult(BaseModel):
    inventory: InventoryItem = Field(..., alias="Inventory")
    # Present only when a partial scrap split a new row off the original
    scraped_inventory: Optional[InventoryItem] = Field(None, alias="ScrapedInventory")

    class Config:
        populate_by_name = True
