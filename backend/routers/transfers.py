from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from database import get_db
from models.transfer import TransferStatus
from schemas.common import ApiResponse
from schemas.transfer import Transfer, TransferCreate, TransferPage
from schemas.audit_log import AuditLog
from crud import transfer as crud_transfer
from crud.audit_log import get_audit_logs
from utils import paginate
from utils.tenancy import RequestContext, get_request_context, get_institute_context

router = APIRouter(prefix="/transfers", tags=["Transfers"])


@router.get("/", response_model=ApiResponse[TransferPage])
def read_transfers(
    status_filter: Optional[TransferStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Transfers leaving or entering the caller's institute."""
    items, pagination = paginate(crud_transfer.query_transfers(db, ctx, status=status_filter), page, per_page)
    return {"status": True, "data": {"Transfers": items, "Pagination": pagination}, "message": ""}


@router.get("/{transfer_id}", response_model=ApiResponse[Transfer])
def read_transfer(transfer_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    return {"status": True, "data": crud_transfer.get_transfer_or_404(db, transfer_id, ctx), "message": ""}


@router.get("/{transfer_id}/audit", response_model=ApiResponse[List[AuditLog]])
def read_transfer_audit(transfer_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    """Approval and rejection history of a transfer."""
    db_transfer = crud_transfer.get_transfer_or_404(db, transfer_id, ctx)
    return {"status": True, "data": get_audit_logs(db, "transfers", db_transfer.id), "message": ""}


@router.post("/", response_model=ApiResponse[Transfer], status_code=status.HTTP_201_CREATED)
def create_transfer(
    transfer: TransferCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Request a transfer of inventory to another room or institute."""
    db_transfer = crud_transfer.create_transfer(db, transfer, ctx)
    return {"status": True, "data": db_transfer, "message": "Transfer request submitted successfully"}


@router.post("/{transfer_id}/approve", response_model=ApiResponse[Transfer])
def approve_transfer(transfer_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    """Approve a pending transfer and move the stock."""
    db_transfer = crud_transfer.approve_transfer(db, transfer_id, ctx)
    return {"status": True, "data": db_transfer, "message": "Transfer approved successfully"}


@router.post("/{transfer_id}/reject", response_model=ApiResponse[Transfer])
def reject_transfer(transfer_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_request_context)):
    db_transfer = crud_transfer.reject_transfer(db, transfer_id, ctx)
    return {"status": True, "data": db_transfer, "message": "Transfer rejected successfully"}
