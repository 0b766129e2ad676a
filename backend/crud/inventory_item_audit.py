from sqlalchemy.orm import Session
from models.inventory_item_audit import InventoryItemAudit
from models.inventory_items import InventoryItem
from typing import Optional
from datetime import date, datetime, time

def get_inventory_item_audits(
    db: Session,
    inventory_item_id: int,
    institute_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None
):
    query = db.query(InventoryItemAudit).filter(
        InventoryItemAudit.inventory_item_id == inventory_item_id,
        InventoryItemAudit.institute_id == institute_id
    )

    if start_date:
        query = query.filter(InventoryItemAudit.timestamp >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(InventoryItemAudit.timestamp <= datetime.combine(end_date, time.max))

    return query.order_by(InventoryItemAudit.id).all()


def record_quantity_change(
    db: Session,
    item: InventoryItem,
    change_type: str,
    old_quantity: int,
    new_quantity: int,
    changed_by: Optional[str] = None,
    note: Optional[str] = None
):
    """Stage a quantity history row for ``item``; the caller commits."""
    audit = InventoryItemAudit(
        inventory_item_id=item.id,
        institute_id=item.institute_id,
        change_type=change_type,
        change_amount=new_quantity - old_quantity,
        old_quantity=old_quantity,
        new_quantity=new_quantity,
        changed_by=changed_by,
        note=note,
    )
    db.add(audit)
    return audit
