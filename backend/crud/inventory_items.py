import logging
from typing import Optional, Tuple
from sqlalchemy.orm import Session, joinedload
from models.inventory_items import InventoryItem, InventoryStatus
from models.asset_master import AssetMaster
from models.transfer import Transfer, TransferStatus
from models.audit_mixin import local_now
from schemas.inventory_items import InventoryItemCreate, InventoryItemUpdate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import add_audit_log
from crud.inventory_item_audit import record_quantity_change
from crud.asset_master import get_asset_master_or_404
from crud.asset_category import validate_category_ids
from crud.room import get_room_or_404
from exceptions import NotFoundError, BusinessRuleError, StateConflictError
from utils import sqlalchemy_to_dict
from utils.tenancy import RequestContext

logger = logging.getLogger("inventory_items")

# Fields that may be explicitly cleared with null on update
NULLABLE_FIELDS = {"room_id", "purchase_date", "purchase_price", "remarks", "scraped_amount"}
# Fields copied onto a row that is split off an existing one
CLONED_FIELDS = ("institute_id", "room_id", "asset_master_id", "purchase_date", "purchase_price")


def _append_remark(existing: Optional[str], note: str) -> str:
    return f"{existing} | {note}" if existing else note


def _audit(db: Session, item: InventoryItem, action: str, ctx: RequestContext, old_values=None):
    add_audit_log(db, AuditLogCreate(
        table_name="inventory_items",
        record_id=item.id,
        institute_id=item.institute_id,
        changed_by=ctx.identifier,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(item) if action != "DELETE" else None,
    ))


def _base_query(db: Session, institute_id: int):
    return db.query(InventoryItem).filter(
        InventoryItem.institute_id == institute_id,
        InventoryItem.deleted_at.is_(None),
    )


def get_inventory_item(db: Session, item_id: int, institute_id: int, lock: bool = False):
    query = _base_query(db, institute_id).filter(InventoryItem.id == item_id)
    if lock:
        query = query.with_for_update()
    return query.first()


def get_inventory_item_or_404(db: Session, item_id: int, institute_id: int, lock: bool = False):
    db_item = get_inventory_item(db, item_id, institute_id, lock=lock)
    if db_item is None:
        raise NotFoundError("Inventory", item_id)
    return db_item


def query_inventory_items(
    db: Session,
    institute_id: int,
    search: Optional[str] = None,
    room_id: Optional[int] = None,
    status: Optional[InventoryStatus] = None,
):
    query = _base_query(db, institute_id).options(
        joinedload(InventoryItem.asset_master),
        joinedload(InventoryItem.room),
    )
    if search:
        query = query.filter(
            InventoryItem.asset_master_id.in_(
                db.query(AssetMaster.id).filter(
                    AssetMaster.institute_id == institute_id,
                    AssetMaster.asset_type.ilike(f"%{search}%"),
                )
            )
        )
    if room_id is not None:
        query = query.filter(InventoryItem.room_id == room_id)
    if status is not None:
        query = query.filter(InventoryItem.status == status)
    return query.order_by(InventoryItem.id.desc())


def create_inventory_item(db: Session, item: InventoryItemCreate, ctx: RequestContext):
    asset_master = get_asset_master_or_404(db, item.asset_master_id, ctx.institute_id)
    if item.room_id is not None:
        get_room_or_404(db, item.room_id, ctx.institute_id)
    if item.asset_category_ids is None:
        category_ids = list(asset_master.asset_category_ids or [])
    else:
        category_ids = validate_category_ids(db, item.asset_category_ids, ctx.institute_id)

    db_item = InventoryItem(
        **item.model_dump(exclude={"asset_category_ids"}),
        asset_category_ids=category_ids,
        institute_id=ctx.institute_id,
        created_by=ctx.identifier,
        updated_by=ctx.identifier,
    )
    if db_item.status == InventoryStatus.SCRAPED:
        db_item.scraped_quantity = db_item.quantity
    try:
        db.add(db_item)
        db.flush()
        record_quantity_change(db, db_item, "create", 0, db_item.quantity, ctx.identifier, note="Purchase entry")
        _audit(db, db_item, "INSERT", ctx)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_item)
    logger.info(f"Inventory ID {db_item.id} ({db_item.quantity} x asset master {db_item.asset_master_id}) created by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_item


def _clean_update_data(db: Session, update: InventoryItemUpdate, institute_id: int) -> dict:
    update_data = {
        key: value
        for key, value in update.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    if "asset_master_id" in update_data:
        get_asset_master_or_404(db, update_data["asset_master_id"], institute_id)
    if update_data.get("room_id") is not None:
        get_room_or_404(db, update_data["room_id"], institute_id)
    if "asset_category_ids" in update_data:
        update_data["asset_category_ids"] = validate_category_ids(db, update_data["asset_category_ids"], institute_id)
    return update_data


def _split_scraped(db: Session, db_item: InventoryItem, scraped_quantity: int, update_data: dict, ctx: RequestContext) -> InventoryItem:
    """Move ``scraped_quantity`` units of ``db_item`` into a new Scraped row."""
    before = db_item.quantity
    remaining = before - scraped_quantity

    # Compare-and-swap on the quantity we read; a concurrent writer makes this a no-op
    swapped = (
        db.query(InventoryItem)
        .filter(InventoryItem.id == db_item.id, InventoryItem.quantity == before)
        .update({InventoryItem.quantity: remaining}, synchronize_session=False)
    )
    if swapped != 1:
        raise StateConflictError("Inventory quantity changed while the request was processed, please retry.")

    scraped_remark = f"Scraped {scraped_quantity} unit(s) from inventory #{db_item.id}"
    if update_data.get("remarks"):
        scraped_remark = f"{scraped_remark}: {update_data['remarks']}"

    scraped_item = InventoryItem(
        **{field: getattr(db_item, field) for field in CLONED_FIELDS},
        asset_category_ids=list(db_item.asset_category_ids or []),
        quantity=scraped_quantity,
        status=InventoryStatus.SCRAPED,
        scraped_amount=update_data.get("scraped_amount"),
        scraped_quantity=scraped_quantity,
        remarks=scraped_remark,
        created_by=ctx.identifier,
        updated_by=ctx.identifier,
    )
    db.add(scraped_item)
    db.flush()

    db_item.quantity = remaining
    db_item.status = InventoryStatus.ACTIVE_STOCK
    db_item.scraped_amount = None
    db_item.scraped_quantity = None
    db_item.remarks = _append_remark(db_item.remarks, f"{scraped_quantity} unit(s) scraped into inventory #{scraped_item.id}")
    db_item.updated_by = ctx.identifier

    record_quantity_change(db, db_item, "scrap_split", before, remaining, ctx.identifier,
                           note=f"Split into scraped inventory #{scraped_item.id}")
    record_quantity_change(db, scraped_item, "scrap_split", 0, scraped_quantity, ctx.identifier,
                           note=f"Split from inventory #{db_item.id}")
    return scraped_item


def update_inventory_item(db: Session, item_id: int, update: InventoryItemUpdate, ctx: RequestContext) -> Tuple[InventoryItem, Optional[InventoryItem]]:
    """
    Edit an inventory row, splitting off a Scraped row for a partial scrap.

    A request with status=Scraped and 0 < scraped_quantity < quantity leaves the
    remainder on the original row as ActiveStock and creates a sibling row holding
    the scraped units. Anything else is an in-place edit of the single row.
    Both rows are written in one transaction.

    Returns:
        (updated row, new scraped row or None)
    """
    scraped_item = None
    try:
        db_item = get_inventory_item_or_404(db, item_id, ctx.institute_id, lock=True)
        old_values = sqlalchemy_to_dict(db_item)
        old_quantity = db_item.quantity
        update_data = _clean_update_data(db, update, ctx.institute_id)

        new_status = update_data.get("status")
        scraped_quantity = update_data.pop("scraped_quantity", None)
        is_split = (
            new_status == InventoryStatus.SCRAPED
            and scraped_quantity is not None
            and scraped_quantity < db_item.quantity
        )

        if is_split:
            if db_item.status != InventoryStatus.ACTIVE_STOCK:
                raise BusinessRuleError("Only active stock can be partially scraped")
            if "quantity" in update_data and update_data["quantity"] != db_item.quantity:
                raise BusinessRuleError("quantity cannot be changed in the same request as a partial scrap")
            # Catalog and location edits land on the original before it is cloned
            for key in ("asset_master_id", "room_id", "asset_category_ids", "purchase_date", "purchase_price"):
                if key in update_data:
                    setattr(db_item, key, update_data[key])
            scraped_item = _split_scraped(db, db_item, scraped_quantity, update_data, ctx)
            _audit(db, db_item, "UPDATE", ctx, old_values=old_values)
            _audit(db, scraped_item, "INSERT", ctx)
        else:
            for key, value in update_data.items():
                setattr(db_item, key, value)
            if db_item.status == InventoryStatus.SCRAPED:
                db_item.scraped_quantity = db_item.quantity
            else:
                db_item.scraped_amount = None
                db_item.scraped_quantity = None
            db_item.updated_by = ctx.identifier

            if db_item.quantity != old_quantity:
                record_quantity_change(db, db_item, "manual", old_quantity, db_item.quantity, ctx.identifier)
            if new_status == InventoryStatus.SCRAPED and old_values["status"] != InventoryStatus.SCRAPED.value:
                record_quantity_change(db, db_item, "scrap", db_item.quantity, db_item.quantity, ctx.identifier,
                                       note="Whole row scraped")
            db.flush()
            _audit(db, db_item, "UPDATE", ctx, old_values=old_values)

        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_item)
    if scraped_item is not None:
        db.refresh(scraped_item)
        logger.info(f"Inventory ID {item_id}: {scraped_item.quantity} unit(s) scraped into inventory ID {scraped_item.id} by user {ctx.user_id} for institute {ctx.institute_id}")
    else:
        logger.info(f"Inventory ID {item_id} updated by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_item, scraped_item


def delete_inventory_item(db: Session, item_id: int, ctx: RequestContext):
    try:
        db_item = get_inventory_item_or_404(db, item_id, ctx.institute_id, lock=True)
        pending = db.query(Transfer).filter(
            Transfer.inventory_id == item_id,
            Transfer.status == TransferStatus.PENDING,
        ).first()
        if pending:
            raise StateConflictError("Inventory has a pending transfer and cannot be deleted.")

        old_values = sqlalchemy_to_dict(db_item)
        db_item.deleted_at = local_now()
        db_item.deleted_by = ctx.identifier
        _audit(db, db_item, "DELETE", ctx, old_values=old_values)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Inventory ID {item_id} deleted by user {ctx.user_id} for institute {ctx.institute_id}")
