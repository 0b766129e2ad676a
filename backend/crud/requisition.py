import logging
import os
from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from models.requisition import Requisition, RequisitionStatus
from models.audit_mixin import local_now
from schemas.requisition import RequisitionCreate, RequisitionUpdate
from schemas.audit_log import AuditLogCreate
from crud.audit_log import add_audit_log
from crud.asset_master import get_asset_master_or_404
from exceptions import AuthorizationError, NotFoundError, StateConflictError
from utils import sqlalchemy_to_dict
from utils.tenancy import RequestContext, ADMIN, SUPERADMIN

logger = logging.getLogger("requisitions")

# Whether an approver may decide a requisition they raised themselves when calling
# approve/reject by id. The pending-approval queue hides own requisitions either way.
ALLOW_SELF_APPROVAL = os.getenv("ALLOW_REQUISITION_SELF_APPROVAL", "true").lower() in ("1", "true", "yes")


def _audit(db: Session, requisition: Requisition, action: str, ctx: RequestContext, old_values=None):
    add_audit_log(db, AuditLogCreate(
        table_name="requisitions",
        record_id=requisition.id,
        institute_id=requisition.institute_id,
        changed_by=ctx.identifier,
        action=action,
        old_values=old_values,
        new_values=sqlalchemy_to_dict(requisition) if action != "DELETE" else None,
    ))


def _scoped_query(db: Session, ctx: RequestContext):
    query = db.query(Requisition)
    if ctx.institute_id is not None:
        query = query.filter(Requisition.institute_id == ctx.institute_id)
    elif not ctx.is_superadmin:
        # Only a superadmin can look across institutes
        query = query.filter(Requisition.id.is_(None))
    return query


def query_requisitions(db: Session, ctx: RequestContext, status: Optional[RequisitionStatus] = None, search: Optional[str] = None):
    query = _scoped_query(db, ctx)
    if status is not None:
        query = query.filter(Requisition.status == status)
    if search:
        query = query.filter(Requisition.description.ilike(f"%{search}%"))
    return query.order_by(Requisition.id.desc())


def query_history(db: Session, ctx: RequestContext):
    """Decided requisitions the caller raised or decided."""
    return (
        _scoped_query(db, ctx)
        .filter(
            Requisition.status != RequisitionStatus.PENDING,
            or_(Requisition.requested_by == ctx.user_id, Requisition.approved_by == ctx.user_id),
        )
        .order_by(Requisition.id.desc())
    )


def query_pending_approvals(db: Session, ctx: RequestContext):
    """Pending requisitions of the institute waiting on the caller, never their own."""
    return (
        _scoped_query(db, ctx)
        .filter(
            Requisition.status == RequisitionStatus.PENDING,
            Requisition.requested_by != ctx.user_id,
        )
        .order_by(Requisition.id.desc())
    )


def query_own(db: Session, ctx: RequestContext, status: Optional[RequisitionStatus] = None):
    query = _scoped_query(db, ctx).filter(Requisition.requested_by == ctx.user_id)
    if status is not None:
        query = query.filter(Requisition.status == status)
    return query.order_by(Requisition.id.desc())


def query_admin_requisitions(db: Session, status: Optional[RequisitionStatus] = None):
    """Requisitions raised by institute admins, across every institute."""
    query = db.query(Requisition).filter(Requisition.requester_role == ADMIN)
    if status is not None:
        query = query.filter(Requisition.status == status)
    return query.order_by(Requisition.id.desc())


def get_requisition_or_404(db: Session, requisition_id: int, ctx: RequestContext):
    db_requisition = _scoped_query(db, ctx).filter(Requisition.id == requisition_id).first()
    if db_requisition is None:
        raise NotFoundError("Requisition", requisition_id)
    return db_requisition


def create_requisition(db: Session, requisition: RequisitionCreate, ctx: RequestContext):
    get_asset_master_or_404(db, requisition.asset_master_id, ctx.institute_id)
    db_requisition = Requisition(
        **requisition.model_dump(),
        institute_id=ctx.institute_id,
        requested_by=ctx.user_id,
        requester_role=ctx.primary_role,
        status=RequisitionStatus.PENDING,
        created_by=ctx.identifier,
        updated_by=ctx.identifier,
    )
    try:
        db.add(db_requisition)
        db.flush()
        _audit(db, db_requisition, "INSERT", ctx)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_requisition)
    logger.info(f"Requisition ID {db_requisition.id} raised by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_requisition


def update_requisition(db: Session, requisition_id: int, requisition: RequisitionUpdate, ctx: RequestContext):
    db_requisition = get_requisition_or_404(db, requisition_id, ctx)
    if db_requisition.requested_by != ctx.user_id:
        raise AuthorizationError("Only the requester can edit a requisition")
    if db_requisition.status != RequisitionStatus.PENDING:
        raise StateConflictError("Requisition already processed")

    update_data = {k: v for k, v in requisition.model_dump(exclude_unset=True).items() if v is not None or k == "description"}
    if "asset_master_id" in update_data:
        get_asset_master_or_404(db, update_data["asset_master_id"], db_requisition.institute_id)

    old_values = sqlalchemy_to_dict(db_requisition)
    try:
        for key, value in update_data.items():
            setattr(db_requisition, key, value)
        db_requisition.updated_by = ctx.identifier
        db.flush()
        _audit(db, db_requisition, "UPDATE", ctx, old_values=old_values)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_requisition)
    logger.info(f"Requisition ID {requisition_id} updated by user {ctx.user_id} for institute {ctx.institute_id}")
    return db_requisition


def delete_requisition(db: Session, requisition_id: int, ctx: RequestContext):
    db_requisition = get_requisition_or_404(db, requisition_id, ctx)
    if db_requisition.requested_by != ctx.user_id and not ctx.has_role(ADMIN, SUPERADMIN):
        raise AuthorizationError()
    if db_requisition.status != RequisitionStatus.PENDING:
        raise StateConflictError("Requisition already processed")

    old_values = sqlalchemy_to_dict(db_requisition)
    try:
        _audit(db, db_requisition, "DELETE", ctx, old_values=old_values)
        db.delete(db_requisition)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(f"Requisition ID {requisition_id} deleted by user {ctx.user_id} for institute {ctx.institute_id}")


def _decide(db: Session, requisition_id: int, new_status: RequisitionStatus, comments: Optional[str], ctx: RequestContext):
    if not ctx.has_role(ADMIN, SUPERADMIN):
        raise AuthorizationError()
    try:
        db_requisition = get_requisition_or_404(db, requisition_id, ctx)
        if db_requisition.status != RequisitionStatus.PENDING:
            raise StateConflictError("Requisition already processed")
        if db_requisition.requested_by == ctx.user_id and not ALLOW_SELF_APPROVAL:
            raise AuthorizationError("You cannot approve or reject your own requisition")
        old_values = sqlalchemy_to_dict(db_requisition)

        swapped = (
            db.query(Requisition)
            .filter(Requisition.id == requisition_id, Requisition.status == RequisitionStatus.PENDING)
            .update({
                Requisition.status: new_status,
                Requisition.approved_by: ctx.user_id,
                Requisition.approval_date: local_now(),
                Requisition.comments: comments,
                Requisition.updated_by: ctx.identifier,
            }, synchronize_session=False)
        )
        if swapped != 1:
            raise StateConflictError("Requisition already processed")

        db.refresh(db_requisition)
        _audit(db, db_requisition, "APPROVE" if new_status == RequisitionStatus.APPROVED else "REJECT", ctx, old_values=old_values)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_requisition)
    logger.info(f"Requisition ID {requisition_id} {new_status.value} by user {ctx.user_id} for institute {db_requisition.institute_id}")
    return db_requisition


def approve_requisition(db: Session, requisition_id: int, comments: Optional[str], ctx: RequestContext):
    return _decide(db, requisition_id, RequisitionStatus.APPROVED, comments, ctx)


def reject_requisition(db: Session, requisition_id: int, comments: str, ctx: RequestContext):
    return _decide(db, requisition_id, RequisitionStatus.REJECTED, comments, ctx)
