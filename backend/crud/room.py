import logging
from typing import Optional
from sqlalchemy.orm import Session
from models.room import Room
from models.inventory_items import InventoryItem
from schemas.room import RoomCreate, RoomUpdate
from exceptions import NotFoundError, BusinessRuleError, StateConflictError
from utils.tenancy import RequestContext

logger = logging.getLogger("rooms")

def get_room(db: Session, room_id: int, institute_id: int):
    return db.query(Room).filter(Room.id == room_id, Room.institute_id == institute_id).first()

def get_room_or_404(db: Session, room_id: int, institute_id: int):
    db_room = get_room(db, room_id, institute_id)
    if db_room is None:
        raise NotFoundError("Room", room_id)
    return db_room

def get_room_by_name(db: Session, name: str, institute_id: int):
    return db.query(Room).filter(Room.name == name, Room.institute_id == institute_id).first()

def query_rooms(db: Session, institute_id: int, search: Optional[str] = None):
    query = db.query(Room).filter(Room.institute_id == institute_id)
    if search:
        query = query.filter(Room.name.ilike(f"%{search}%"))
    return query.order_by(Room.id.desc())

def get_room_inventory(db: Session, room_id: int, institute_id: int):
    get_room_or_404(db, room_id, institute_id)
    return (
        db.query(InventoryItem)
        .filter(
            InventoryItem.room_id == room_id,
            InventoryItem.institute_id == institute_id,
            InventoryItem.deleted_at.is_(None),
        )
        .order_by(InventoryItem.id.desc())
        .all()
    )

def create_room(db: Session, room: RoomCreate, ctx: RequestContext):
    if get_room_by_name(db, room.name, ctx.institute_id):
        raise BusinessRuleError("Room with this name already exists")
    db_room = Room(**room.model_dump(), institute_id=ctx.institute_id, created_by=ctx.identifier, updated_by=ctx.identifier)
    db.add(db_room)
    db.commit()
    db.refresh(db_room)
    logger.info(f"Room '{db_room.name}' created by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_room

def update_room(db: Session, room_id: int, room: RoomUpdate, ctx: RequestContext):
    db_room = get_room_or_404(db, room_id, ctx.institute_id)
    update_data = room.model_dump(exclude_unset=True)
    if update_data.get("name") and update_data["name"] != db_room.name:
        if get_room_by_name(db, update_data["name"], ctx.institute_id):
            raise BusinessRuleError("Room with this name already exists")
    for key, value in update_data.items():
        setattr(db_room, key, value)
    db_room.updated_by = ctx.identifier
    db.commit()
    db.refresh(db_room)
    logger.info(f"Room ID {room_id} updated by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_room

def delete_room(db: Session, room_id: int, ctx: RequestContext):
    db_room = get_room_or_404(db, room_id, ctx.institute_id)
    has_inventory = db.query(InventoryItem).filter(
        InventoryItem.room_id == room_id,
        InventoryItem.deleted_at.is_(None),
    ).first()
    if has_inventory:
        raise StateConflictError("Room still holds inventory and cannot be deleted.")
    db.delete(db_room)
    db.commit()
    logger.info(f"Room ID {room_id} deleted by user {ctx.user_id} for institute {ctx.institute_id}")
