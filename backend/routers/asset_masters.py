from datetime import date
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.common import ApiResponse
from schemas.asset_master import AssetMaster, AssetMasterCreate, AssetMasterUpdate, AssetMasterPage
from crud import asset_master as crud_asset_master
from utils import paginate
from utils.tenancy import RequestContext, get_institute_context

router = APIRouter(prefix="/asset-masters", tags=["Asset Masters"])


@router.get("/", response_model=ApiResponse[AssetMasterPage])
def read_asset_masters(
    search: Optional[str] = None,
    created_on: Optional[date] = Query(None, alias="date"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Retrieve asset masters, optionally filtered by asset type and creation date."""
    query = crud_asset_master.query_asset_masters(db, ctx.institute_id, search=search, created_on=created_on)
    items, pagination = paginate(query, page, per_page)
    return {"status": True, "data": {"AssetMaster": items, "Pagination": pagination}, "message": ""}


@router.get("/all", response_model=ApiResponse[List[AssetMaster]])
def read_all_asset_masters(db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    return {"status": True, "data": crud_asset_master.query_asset_masters(db, ctx.institute_id).all(), "message": ""}


@router.get("/{asset_master_id}", response_model=ApiResponse[AssetMaster])
def read_asset_master(asset_master_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    db_master = crud_asset_master.get_asset_master_or_404(db, asset_master_id, ctx.institute_id)
    return {"status": True, "data": db_master, "message": ""}


@router.post("/", response_model=ApiResponse[AssetMaster], status_code=status.HTTP_201_CREATED)
def create_asset_master(
    asset_master: AssetMasterCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Create a new asset master."""
    db_master = crud_asset_master.create_asset_master(db, asset_master, ctx)
    return {"status": True, "data": db_master, "message": "Asset master created successfully"}


@router.put("/{asset_master_id}", response_model=ApiResponse[AssetMaster])
@router.patch("/{asset_master_id}", response_model=ApiResponse[AssetMaster])
def update_asset_master(
    asset_master_id: int,
    asset_master: AssetMasterUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    db_master = crud_asset_master.update_asset_master(db, asset_master_id, asset_master, ctx)
    return {"status": True, "data": db_master, "message": "Asset master updated successfully"}


@router.delete("/{asset_master_id}", response_model=ApiResponse[dict])
def delete_asset_master(asset_master_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    """Delete an asset master nothing refers to."""
    crud_asset_master.delete_asset_master(db, asset_master_id, ctx)
    return {"status": True, "data": {}, "message": "Asset master deleted successfully"}
