import logging
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from models.transfer import Transfer, TransferStatus
from models.inventory_items import InventoryItem, InventoryStatus
from models.audit_mixin import local_now
from schemas.transfer import TransferCreate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import add_audit_log
from crud.inventory_item_audit import record_quantity_change
from crud.inventory_items import get_inventory_item_or_404, CLONED_FIELDS
from crud.institute import get_institute_or_404
from crud.room import get_room_or_404
from exceptions import (
    AuthorizationError,
    BusinessRuleError,
    NotFoundError,
    QuantityConflictError,
    StateConflictError,
)
from utils import sqlalchemy_to_dict
from utils.tenancy import RequestContext, TRANSFER_APPROVER_ROLES

logger = logging.getLogger("transfers")


def query_transfers(db: Session, ctx: RequestContext, status: Optional[TransferStatus] = None):
    query = db.query(Transfer)
    if ctx.institute_id is not None:
        query = query.filter(or_(
            Transfer.from_institute_id == ctx.institute_id,
            Transfer.to_institute_id == ctx.institute_id,
        ))
    elif not ctx.is_superadmin:
        # Only a superadmin without an institute in scope sees every transfer
        query = query.filter(Transfer.id.is_(None))
    if status is not None:
        query = query.filter(Transfer.status == status)
    return query.order_by(Transfer.id.desc())


def get_transfer_or_404(db: Session, transfer_id: int, ctx: RequestContext):
    db_transfer = query_transfers(db, ctx).filter(Transfer.id == transfer_id).first()
    if db_transfer is None:
        raise NotFoundError("Transfer", transfer_id)
    return db_transfer


def create_transfer(db: Session, transfer: TransferCreate, ctx: RequestContext):
    """Record a pending request to move part or all of an inventory row.

    Nothing is deducted here; the source row is only touched on approval.
    """
    inventory = get_inventory_item_or_404(db, transfer.inventory_id, ctx.institute_id)
    if inventory.status != InventoryStatus.ACTIVE_STOCK:
        raise BusinessRuleError("Only active stock can be transferred")
    if transfer.quantity > inventory.quantity:
        logger.warning(f"Transfer of {transfer.quantity} unit(s) from inventory ID {inventory.id} refused, only {inventory.quantity} available")
        raise QuantityConflictError("Requested quantity exceeds available inventory", transfer.quantity, inventory.quantity)

    to_room_id = None
    to_institute_id = None
    if transfer.target_type == "room":
        room = get_room_or_404(db, transfer.destination_room_id, inventory.institute_id)
        if room.id == inventory.room_id:
            raise BusinessRuleError("Inventory is already in this room")
        to_room_id = room.id
    else:
        institute = get_institute_or_404(db, transfer.destination_institute_id)
        if institute.id == inventory.institute_id:
            raise BusinessRuleError("Inventory already belongs to this institute")
        to_institute_id = institute.id

    db_transfer = Transfer(
        inventory_id=inventory.id,
        from_room_id=inventory.room_id,
        from_institute_id=inventory.institute_id,
        to_room_id=to_room_id,
        to_institute_id=to_institute_id,
        quantity=transfer.quantity,
        requested_by=ctx.user_id,
        status=TransferStatus.PENDING,
        created_by=ctx.identifier,
        updated_by=ctx.identifier,
    )
    db.add(db_transfer)
    db.commit()
    db.refresh(db_transfer)
    logger.info(f"Transfer ID {db_transfer.id} of {db_transfer.quantity} unit(s) from inventory ID {inventory.id} requested by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_transfer


def _move_to_destination(item: InventoryItem, db_transfer: Transfer):
    if db_transfer.to_room_id:
        item.room_id = db_transfer.to_room_id
    if db_transfer.to_institute_id:
        item.institute_id = db_transfer.to_institute_id
        # Rooms belong to one institute, the destination assigns its own
        item.room_id = None


def _close_transfer(db: Session, db_transfer: Transfer, new_status: TransferStatus, ctx: RequestContext, extra: Optional[dict] = None):
    """Flip a transfer out of pending exactly once."""
    swapped = (
        db.query(Transfer)
        .filter(Transfer.id == db_transfer.id, Transfer.status == TransferStatus.PENDING)
        .update({
            Transfer.status: new_status,
            Transfer.approved_by: ctx.user_id,
            Transfer.approved_at: local_now(),
            Transfer.updated_by: ctx.identifier,
            **(extra or {}),
        }, synchronize_session=False)
    )
    if swapped != 1:
        raise StateConflictError("Transfer already processed")


def _check_can_decide(ctx: RequestContext):
    if not ctx.has_role(*TRANSFER_APPROVER_ROLES):
        raise AuthorizationError()


def approve_transfer(db: Session, transfer_id: int, ctx: RequestContext):
    """
    Approve a pending transfer and move the stock.

    A transfer covering the whole row relocates that row in place; a partial one
    decrements the source and clones a new row at the destination. The inventory
    row is locked and its quantity re-checked, and the status flip is a
    compare-and-swap on ``pending`` so a second approval can never move stock twice.
    """
    _check_can_decide(ctx)
    try:
        db_transfer = get_transfer_or_404(db, transfer_id, ctx)
        if db_transfer.status != TransferStatus.PENDING:
            raise StateConflictError("Transfer already processed")
        old_values = sqlalchemy_to_dict(db_transfer)

        inventory = (
            db.query(InventoryItem)
            .filter(InventoryItem.id == db_transfer.inventory_id, InventoryItem.deleted_at.is_(None))
            .with_for_update()
            .first()
        )
        if inventory is None:
            raise NotFoundError("Inventory", db_transfer.inventory_id)
        if inventory.status != InventoryStatus.ACTIVE_STOCK:
            raise BusinessRuleError("Inventory is no longer active stock")
        qty_to_move = db_transfer.quantity
        if qty_to_move > inventory.quantity:
            raise QuantityConflictError("Requested quantity exceeds available inventory", qty_to_move, inventory.quantity)

        created_inventory_id = None
        if qty_to_move >= inventory.quantity:
            # Full quantity move, just change location
            _move_to_destination(inventory, db_transfer)
            inventory.updated_by = ctx.identifier
            record_quantity_change(db, inventory, "relocate", inventory.quantity, inventory.quantity, ctx.identifier,
                                   note=f"Relocated by transfer #{db_transfer.id}")
        else:
            before = inventory.quantity
            inventory.quantity = before - qty_to_move
            inventory.updated_by = ctx.identifier

            new_inventory = InventoryItem(
                **{field: getattr(inventory, field) for field in CLONED_FIELDS},
                asset_category_ids=list(inventory.asset_category_ids or []),
                quantity=qty_to_move,
                status=inventory.status,
                remarks=f"Transferred from inventory #{inventory.id} by transfer #{db_transfer.id}",
                created_by=ctx.identifier,
                updated_by=ctx.identifier,
            )
            _move_to_destination(new_inventory, db_transfer)
            db.add(new_inventory)
            db.flush()
            created_inventory_id = new_inventory.id

            record_quantity_change(db, inventory, "transfer_out", before, inventory.quantity, ctx.identifier,
                                   note=f"Transfer #{db_transfer.id} to inventory #{new_inventory.id}")
            record_quantity_change(db, new_inventory, "transfer_in", 0, qty_to_move, ctx.identifier,
                                   note=f"Transfer #{db_transfer.id} from inventory #{inventory.id}")

        _close_transfer(db, db_transfer, TransferStatus.APPROVED, ctx,
                        extra={Transfer.created_inventory_id: created_inventory_id})
        db.flush()
        db.refresh(db_transfer)
        add_audit_log(db, AuditLogCreate(
            table_name="transfers",
            record_id=db_transfer.id,
            institute_id=db_transfer.from_institute_id,
            changed_by=ctx.identifier,
            action="APPROVE",
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_transfer),
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_transfer)
    logger.info(f"Transfer ID {transfer_id} approved by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_transfer


def reject_transfer(db: Session, transfer_id: int, ctx: RequestContext):
    _check_can_decide(ctx)
    try:
        db_transfer = get_transfer_or_404(db, transfer_id, ctx)
        if db_transfer.status != TransferStatus.PENDING:
            raise StateConflictError("Transfer already processed")
        old_values = sqlalchemy_to_dict(db_transfer)

        _close_transfer(db, db_transfer, TransferStatus.REJECTED, ctx)
        db.refresh(db_transfer)
        add_audit_log(db, AuditLogCreate(
            table_name="transfers",
            record_id=db_transfer.id,
            institute_id=db_transfer.from_institute_id,
            changed_by=ctx.identifier,
            action="REJECT",
            old_values=old_values,
            new_values=sqlalchemy_to_dict(db_transfer),
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(db_transfer)
    logger.info(f"Transfer ID {transfer_id} rejected by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_transfer
