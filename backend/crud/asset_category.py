import logging
from typing import Optional
from sqlalchemy.orm import Session
from models.asset_category import AssetCategory
from models.asset_master import AssetMaster
from schemas.asset_category import AssetCategoryCreate, AssetCategoryUpdate
from exceptions import NotFoundError, BusinessRuleError, StateConflictError
from utils.tenancy import RequestContext

logger = logging.getLogger("asset_categories")

def get_asset_category(db: Session, category_id: int, institute_id: int):
    return db.query(AssetCategory).filter(AssetCategory.id == category_id, AssetCategory.institute_id == institute_id).first()

def get_asset_category_or_404(db: Session, category_id: int, institute_id: int):
    db_category = get_asset_category(db, category_id, institute_id)
    if db_category is None:
        raise NotFoundError("Asset category", category_id)
    return db_category

def get_asset_category_by_name(db: Session, name: str, institute_id: int):
    return db.query(AssetCategory).filter(AssetCategory.name == name, AssetCategory.institute_id == institute_id).first()

def query_asset_categories(db: Session, institute_id: int, search: Optional[str] = None):
    query = db.query(AssetCategory).filter(AssetCategory.institute_id == institute_id)
    if search:
        query = query.filter(AssetCategory.name.ilike(f"%{search}%"))
    return query.order_by(AssetCategory.name)

def validate_category_ids(db: Session, category_ids, institute_id: int):
    """Every id must name a category of the same institute."""
    wanted = set(category_ids or [])
    if not wanted:
        return []
    found = {
        row.id for row in db.query(AssetCategory.id).filter(
            AssetCategory.id.in_(wanted), AssetCategory.institute_id == institute_id
        )
    }
    missing = sorted(wanted - found)
    if missing:
        raise NotFoundError("Asset category", missing)
    return sorted(wanted)

def create_asset_category(db: Session, category: AssetCategoryCreate, ctx: RequestContext):
    if get_asset_category_by_name(db, category.name, ctx.institute_id):
        raise BusinessRuleError("Asset category with this name already exists")
    db_category = AssetCategory(**category.model_dump(), institute_id=ctx.institute_id, created_by=ctx.identifier, updated_by=ctx.identifier)
    db.add(db_category)
    db.commit()
    db.refresh(db_category)
    logger.info(f"Asset category '{db_category.name}' created by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_category

def update_asset_category(db: Session, category_id: int, category: AssetCategoryUpdate, ctx: RequestContext):
    db_category = get_asset_category_or_404(db, category_id, ctx.institute_id)
    update_data = category.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != db_category.name:
        if get_asset_category_by_name(db, update_data["name"], ctx.institute_id):
            raise BusinessRuleError("Asset category with this name already exists")
    for key, value in update_data.items():
        setattr(db_category, key, value)
    db_category.updated_by = ctx.identifier
    db.commit()
    db.refresh(db_category)
    return db_category

def delete_asset_category(db: Session, category_id: int, ctx: RequestContext):
    db_category = get_asset_category_or_404(db, category_id, ctx.institute_id)
    # Category ids live in a JSON list, so the reference check runs in Python
    masters = db.query(AssetMaster).filter(AssetMaster.institute_id == ctx.institute_id).all()
    if any(category_id in (m.asset_category_ids or []) for m in masters):
        raise StateConflictError("Asset category is used by an asset master and cannot be deleted.")
    db.delete(db_category)
    db.commit()
    logger.info(f"Asset category ID {category_id} deleted by user {ctx.user_id} for institute {ctx.institute_id}")
