import logging
from datetime import date, datetime, time, timedelta
from typing import Optional
from sqlalchemy.orm import Session
from models.asset_master import AssetMaster
from models.inventory_items import InventoryItem
from models.requisition import Requisition
from schemas.asset_master import AssetMasterCreate, AssetMasterUpdate
from crud.asset_category import validate_category_ids
from exceptions import NotFoundError, StateConflictError
from utils.tenancy import RequestContext

logger = logging.getLogger("asset_masters")

def get_asset_master(db: Session, asset_master_id: int, institute_id: int):
    return db.query(AssetMaster).filter(AssetMaster.id == asset_master_id, AssetMaster.institute_id == institute_id).first()

def get_asset_master_or_404(db: Session, asset_master_id: int, institute_id: int):
    db_master = get_asset_master(db, asset_master_id, institute_id)
    if db_master is None:
        raise NotFoundError("Asset master", asset_master_id)
    return db_master

def query_asset_masters(db: Session, institute_id: int, search: Optional[str] = None, created_on: Optional[date] = None):
    query = db.query(AssetMaster).filter(AssetMaster.institute_id == institute_id)
    if search:
        query = query.filter(AssetMaster.asset_type.ilike(f"%{search}%"))
    if created_on:
        start = datetime.combine(created_on, time.min)
        query = query.filter(AssetMaster.created_at >= start, AssetMaster.created_at < start + timedelta(days=1))
    return query.order_by(AssetMaster.id.desc())

def create_asset_master(db: Session, asset_master: AssetMasterCreate, ctx: RequestContext):
    data = asset_master.model_dump()
    data["asset_category_ids"] = validate_category_ids(db, data["asset_category_ids"], ctx.institute_id)
    db_master = AssetMaster(**data, institute_id=ctx.institute_id, created_by=ctx.identifier, updated_by=ctx.identifier)
    db.add(db_master)
    db.commit()
    db.refresh(db_master)
    logger.info(f"Asset master '{db_master.asset_type}' created by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_master

def update_asset_master(db: Session, asset_master_id: int, asset_master: AssetMasterUpdate, ctx: RequestContext):
    db_master = get_asset_master_or_404(db, asset_master_id, ctx.institute_id)
    update_data = asset_master.model_dump(exclude_unset=True)
    if update_data.get("asset_category_ids") is not None:
        update_data["asset_category_ids"] = validate_category_ids(db, update_data["asset_category_ids"], ctx.institute_id)
    for key, value in update_data.items():
        if value is None and key in ("asset_type", "service_required", "asset_category_ids"):
            continue
        setattr(db_master, key, value)
    db_master.updated_by = ctx.identifier
    db.commit()
    db.refresh(db_master)
    return db_master

def delete_asset_master(db: Session, asset_master_id: int, ctx: RequestContext):
    db_master = get_asset_master_or_404(db, asset_master_id, ctx.institute_id)
    referenced = (
        db.query(InventoryItem).filter(InventoryItem.asset_master_id == asset_master_id, InventoryItem.deleted_at.is_(None)).first()
        or db.query(Requisition).filter(Requisition.asset_master_id == asset_master_id).first()
    )
    if referenced:
        raise StateConflictError("Asset master has inventory or requisitions and cannot be deleted.")
    db.delete(db_master)
    db.commit()
    logger.info(f"Asset master ID {asset_master_id} deleted by user {ctx.user_id} for institute {ctx.institute_id}")
