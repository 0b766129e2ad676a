from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.common import ApiResponse
from schemas.asset_category import AssetCategory, AssetCategoryCreate, AssetCategoryUpdate, AssetCategoryPage
from crud import asset_category as crud_asset_category
from utils import paginate
from utils.tenancy import RequestContext, get_institute_context

router = APIRouter(prefix="/asset-categories", tags=["Asset Categories"])


@router.get("/", response_model=ApiResponse[AssetCategoryPage])
def read_asset_categories(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    query = crud_asset_category.query_asset_categories(db, ctx.institute_id, search=search)
    items, pagination = paginate(query, page, per_page)
    return {"status": True, "data": {"AssetCategory": items, "Pagination": pagination}, "message": ""}


@router.get("/all", response_model=ApiResponse[List[AssetCategory]])
def read_all_asset_categories(db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    return {"status": True, "data": crud_asset_category.query_asset_categories(db, ctx.institute_id).all(), "message": ""}


@router.get("/{category_id}", response_model=ApiResponse[AssetCategory])
def read_asset_category(category_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    db_category = crud_asset_category.get_asset_category_or_404(db, category_id, ctx.institute_id)
    return {"status": True, "data": db_category, "message": ""}


@router.post("/", response_model=ApiResponse[AssetCategory], status_code=status.HTTP_201_CREATED)
def create_asset_category(
    category: AssetCategoryCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Create a new asset category."""
    db_category = crud_asset_category.create_asset_category(db, category, ctx)
    return {"status": True, "data": db_category, "message": "Asset category created successfully"}


@router.put("/{category_id}", response_model=ApiResponse[AssetCategory])
@router.patch("/{category_id}", response_model=ApiResponse[AssetCategory])
def update_asset_category(
    category_id: int,
    category: AssetCategoryUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    db_category = crud_asset_category.update_asset_category(db, category_id, category, ctx)
    return {"status": True, "data": db_category, "message": "Asset category updated successfully"}


@router.delete("/{category_id}", response_model=ApiResponse[dict])
def delete_asset_category(category_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    crud_asset_category.delete_asset_category(db, category_id, ctx)
    return {"status": True, "data": {}, "message": "Asset category deleted successfully"}
