import logging
from typing import Optional
from sqlalchemy.orm import Session
from models.institute import Institute
from models.room import Room
from models.inventory_items import InventoryItem
from schemas.institute import InstituteCreate, InstituteUpdate
from exceptions import NotFoundError, BusinessRuleError, StateConflictError
from utils.tenancy import RequestContext

logger = logging.getLogger("institutes")

def get_institute(db: Session, institute_id: int):
    return db.query(Institute).filter(Institute.id == institute_id).first()

def get_institute_or_404(db: Session, institute_id: int):
    db_institute = get_institute(db, institute_id)
    if db_institute is None:
        raise NotFoundError("Institute", institute_id)
    return db_institute

def get_institute_by_name(db: Session, name: str):
    return db.query(Institute).filter(Institute.name == name).first()

def query_institutes(db: Session, search: Optional[str] = None):
    query = db.query(Institute)
    if search:
        query = query.filter(Institute.name.ilike(f"%{search}%"))
    return query.order_by(Institute.name)

def create_institute(db: Session, institute: InstituteCreate, ctx: RequestContext):
    if get_institute_by_name(db, institute.name):
        raise BusinessRuleError("Institute with this name already exists")
    db_institute = Institute(**institute.model_dump(), created_by=ctx.identifier, updated_by=ctx.identifier)
    db.add(db_institute)
    db.commit()
    db.refresh(db_institute)
    logger.info(f"Institute '{db_institute.name}' (ID: {db_institute.id}) created by user {ctx.user_id}")
    return db_institute

def update_institute(db: Session, institute_id: int, institute: InstituteUpdate, ctx: RequestContext):
    db_institute = get_institute_or_404(db, institute_id)
    update_data = institute.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != db_institute.name:
        if get_institute_by_name(db, update_data["name"]):
            raise BusinessRuleError("Institute with this name already exists")
    for key, value in update_data.items():
        setattr(db_institute, key, value)
    db_institute.updated_by = ctx.identifier
    db.commit()
    db.refresh(db_institute)
    logger.info(f"Institute ID {institute_id} updated by user {ctx.user_id}")
    return db_institute

def delete_institute(db: Session, institute_id: int, ctx: RequestContext):
    db_institute = get_institute_or_404(db, institute_id)
    in_use = (
        db.query(Room).filter(Room.institute_id == institute_id).first()
        or db.query(InventoryItem).filter(InventoryItem.institute_id == institute_id).first()
    )
    if in_use:
        raise StateConflictError("Institute still has rooms or inventory and cannot be deleted.")
    db.delete(db_institute)
    db.commit()
    logger.info(f"Institute ID {institute_id} deleted by user {ctx.user_id}")
