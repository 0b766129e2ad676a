from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.common import ApiResponse
from schemas.room import Room, RoomCreate, RoomUpdate, RoomPage
from schemas.inventory_items import InventoryItem
from crud import room as crud_room
from utils import paginate
from utils.tenancy import RequestContext, get_institute_context

router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("/", response_model=ApiResponse[RoomPage])
def read_rooms(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Retrieve a paginated list of the institute's rooms."""
    items, pagination = paginate(crud_room.query_rooms(db, ctx.institute_id, search=search), page, per_page)
    return {"status": True, "data": {"Room": items, "Pagination": pagination}, "message": ""}


@router.get("/all", response_model=ApiResponse[List[Room]])
def read_all_rooms(db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    return {"status": True, "data": crud_room.query_rooms(db, ctx.institute_id).all(), "message": ""}


@router.get("/{room_id}", response_model=ApiResponse[Room])
def read_room(room_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    return {"status": True, "data": crud_room.get_room_or_404(db, room_id, ctx.institute_id), "message": ""}


@router.get("/{room_id}/inventory", response_model=ApiResponse[List[InventoryItem]])
def read_room_inventory(room_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    """Inventory currently located in a room."""
    return {"status": True, "data": crud_room.get_room_inventory(db, room_id, ctx.institute_id), "message": ""}


@router.post("/", response_model=ApiResponse[Room], status_code=status.HTTP_201_CREATED)
def create_room(room: RoomCreate, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    """Create a new room."""
    db_room = crud_room.create_room(db, room, ctx)
    return {"status": True, "data": db_room, "message": "Room created successfully"}


@router.put("/{room_id}", response_model=ApiResponse[Room])
@router.patch("/{room_id}", response_model=ApiResponse[Room])
def update_room(
    room_id: int,
    room: RoomUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    db_room = crud_room.update_room(db, room_id, room, ctx)
    return {"status": True, "data": db_room, "message": "Room updated successfully"}


@router.delete("/{room_id}", response_model=ApiResponse[dict])
def delete_room(room_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    """Delete an empty room."""
    crud_room.delete_room(db, room_id, ctx)
    return {"status": True, "data": {}, "message": "Room deleted successfully"}
