from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from schemas.common import ApiResponse
from schemas.institute import Institute, InstituteCreate, InstituteUpdate, InstitutePage
from crud import institute as crud_institute
from utils import paginate
from utils.tenancy import RequestContext, get_request_context, require_roles, SUPERADMIN

router = APIRouter(prefix="/institutes", tags=["Institutes"])


@router.get("/", response_model=ApiResponse[InstitutePage])
def read_institutes(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Retrieve a paginated list of institutes."""
    items, pagination = paginate(crud_institute.query_institutes(db, search=search), page, per_page)
    return {"status": True, "data": {"Institute": items, "Pagination": pagination}, "message": ""}


@router.get("/all", response_model=ApiResponse[List[Institute]])
def read_all_institutes(db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    """Retrieve every institute, for dropdowns."""
    return {"status": True, "data": crud_institute.query_institutes(db).all(), "message": ""}


@router.get("/{institute_id}", response_model=ApiResponse[Institute])
def read_institute(institute_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    return {"status": True, "data": crud_institute.get_institute_or_404(db, institute_id), "message": ""}


@router.post("/", response_model=ApiResponse[Institute], status_code=status.HTTP_201_CREATED)
def create_institute(
    institute: InstituteCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(SUPERADMIN)),
):
    """Create a new institute."""
    db_institute = crud_institute.create_institute(db, institute, ctx)
    return {"status": True, "data": db_institute, "message": "Institute created successfully"}


@router.put("/{institute_id}", response_model=ApiResponse[Institute])
@router.patch("/{institute_id}", response_model=ApiResponse[Institute])
def update_institute(
    institute_id: int,
    institute: InstituteUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(SUPERADMIN)),
):
    db_institute = crud_institute.update_institute(db, institute_id, institute, ctx)
    return {"status": True, "data": db_institute, "message": "Institute updated successfully"}


@router.delete("/{institute_id}", response_model=ApiResponse[dict])
def delete_institute(
    institute_id: int,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(SUPERADMIN)),
):
    """Delete an institute that no longer owns rooms or inventory."""
    crud_institute.delete_institute(db, institute_id, ctx)
    return {"status": True, "data": {}, "message": "Institute deleted successfully"}
