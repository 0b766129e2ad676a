from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from database import get_db
from models.requisition import RequisitionStatus
from schemas.common import ApiResponse
from schemas.requisition import (
    Requisition,
    RequisitionApprove,
    RequisitionCreate,
    RequisitionList,
    RequisitionPage,
    RequisitionReject,
    RequisitionUpdate,
)
from crud import requisition as crud_requisition
from utils import paginate
from utils.tenancy import (
    RequestContext,
    get_institute_context,
    get_request_context,
    require_roles,
    ADMIN,
    SUPERADMIN,
)

router = APIRouter(prefix="/requisitions", tags=["Requisitions"])


def _page(query, page: int, per_page: int):
    items, pagination = paginate(query, page, per_page)
    return {"status": True, "data": {"Requisition": items, "Pagination": pagination}, "message": ""}


@router.get("/", response_model=ApiResponse[RequisitionPage])
def read_requisitions(
    status_filter: Optional[RequisitionStatus] = Query(None, alias="status"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Retrieve the institute's requisitions."""
    return _page(crud_requisition.query_requisitions(db, ctx, status=status_filter, search=search), page, per_page)


@router.get("/all", response_model=ApiResponse[RequisitionList])
def read_all_requisitions(db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    items = crud_requisition.query_requisitions(db, ctx).all()
    return {"status": True, "data": {"Requisition": items}, "message": ""}


@router.get("/history", response_model=ApiResponse[RequisitionPage])
def read_requisition_history(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Requisitions the caller raised or decided that are no longer pending."""
    return _page(crud_requisition.query_history(db, ctx), page, per_page)


@router.get("/pending-approvals", response_model=ApiResponse[RequisitionPage])
def read_pending_approvals(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(ADMIN, SUPERADMIN)),
):
    """Pending requisitions waiting on the caller. Their own requisitions never show up here."""
    ctx = get_institute_context(ctx)
    return _page(crud_requisition.query_pending_approvals(db, ctx), page, per_page)


@router.get("/admin-own", response_model=ApiResponse[RequisitionPage])
def read_own_requisitions(
    status_filter: Optional[RequisitionStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    return _page(crud_requisition.query_own(db, ctx, status=status_filter), page, per_page)


@router.get("/admin", response_model=ApiResponse[RequisitionPage])
def read_admin_requisitions(
    status_filter: Optional[RequisitionStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(SUPERADMIN)),
):
    """Requisitions raised by institute admins, across all institutes."""
    return _page(crud_requisition.query_admin_requisitions(db, status=status_filter), page, per_page)


@router.get("/admin/pending", response_model=ApiResponse[RequisitionPage])
def read_admin_pending_requisitions(
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_roles(SUPERADMIN)),
):
    query = crud_requisition.query_admin_requisitions(db, status=RequisitionStatus.PENDING)
    return _page(query, page, per_page)


@router.post("/", response_model=ApiResponse[Requisition], status_code=status.HTTP_201_CREATED)
def create_requisition(
    requisition: RequisitionCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Raise a new requisition for an asset."""
    db_requisition = crud_requisition.create_requisition(db, requisition, ctx)
    return {"status": True, "data": db_requisition, "message": "Requisition created successfully"}


@router.get("/{requisition_id}", response_model=ApiResponse[Requisition])
def read_requisition(requisition_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    return {"status": True, "data": crud_requisition.get_requisition_or_404(db, requisition_id, ctx), "message": ""}


@router.put("/{requisition_id}", response_model=ApiResponse[Requisition])
@router.patch("/{requisition_id}", response_model=ApiResponse[Requisition])
def update_requisition(
    requisition_id: int,
    requisition: RequisitionUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Edit a pending requisition. Only the requester may do this."""
    db_requisition = crud_requisition.update_requisition(db, requisition_id, requisition, ctx)
    return {"status": True, "data": db_requisition, "message": "Requisition updated successfully"}


@router.delete("/{requisition_id}", response_model=ApiResponse[dict])
def delete_requisition(requisition_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    crud_requisition.delete_requisition(db, requisition_id, ctx)
    return {"status": True, "data": {}, "message": "Requisition deleted successfully"}


@router.post("/{requisition_id}/approve", response_model=ApiResponse[Requisition])
def approve_requisition(
    requisition_id: int,
    decision: Optional[RequisitionApprove] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    comments = decision.comments if decision else None
    db_requisition = crud_requisition.approve_requisition(db, requisition_id, comments, ctx)
    return {"status": True, "data": db_requisition, "message": "Requisition approved successfully"}


@router.post("/{requisition_id}/reject", response_model=ApiResponse[Requisition])
def reject_requisition(
    requisition_id: int,
    decision: RequisitionReject,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Reject a pending requisition. A comment explaining why is required."""
    db_requisition = crud_requisition.reject_requisition(db, requisition_id, decision.comments, ctx)
    return {"status": True, "data": db_requisition, "message": "Requisition rejected successfully"}
