from pydantic import BaseModel
from datetime import datetime
from typing import Optional

class InventoryItemAuditBase(BaseModel):
    inventory_item_id: int
    change_type: str
    change_amount: int
    old_quantity: int
    new_quantity: int
    changed_by: Optional[str] = None
    note: Optional[str] = None

class InventoryItemAudit(InventoryItemAuditBase):
    id: int
    timestamp: datetime

    class Config:
        from_attributes = True
