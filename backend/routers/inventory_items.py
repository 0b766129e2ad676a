from datetime import date
from io import BytesIO
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill, Alignment
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from database import get_db
from models.inventory_items import InventoryStatus
from schemas.common import ApiResponse
from schemas.inventory_items import (
    InventoryItem,
    InventoryItemCreate,
    InventoryItemUpdate,
    InventoryPage,
    InventoryUpdateResult,
    normalize_inventory_status,
)
from schemas.inventory_item_audit import InventoryItemAudit
from crud import inventory_items as crud_inventory_items
from crud import inventory_item_audit as crud_inventory_item_audit
from utils import paginate
from utils.tenancy import RequestContext, get_request_context, get_institute_context

router = APIRouter(prefix="/inventory", tags=["Inventory"])
logger = logging.getLogger("inventory_items")

EXPORT_HEADERS = [
    "ID", "Asset Type", "Room", "Quantity", "Status", "Purchase Date",
    "Purchase Price", "Scraped Quantity", "Scraped Amount", "Remarks",
]


def _listing_institute(ctx: RequestContext, institute_id: Optional[int]) -> int:
    """Institute whose inventory is listed; only a superadmin may pick another one."""
    if ctx.is_superadmin and institute_id is not None:
        return institute_id
    if ctx.institute_id is None:
        raise HTTPException(status_code=400, detail="X-Institute-ID header is missing")
    return ctx.institute_id


def _status_filter(value: Optional[str]) -> Optional[InventoryStatus]:
    if not value:
        return None
    try:
        return normalize_inventory_status(value)
    except ValueError as e:
        raise RequestValidationError([{"loc": ("query", "status"), "msg": str(e), "type": "value_error"}])


@router.get("/", response_model=ApiResponse[InventoryPage])
def read_inventory_items(
    search: Optional[str] = None,
    room: Optional[int] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    institute_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Retrieve the institute's inventory, newest first."""
    query = crud_inventory_items.query_inventory_items(
        db,
        _listing_institute(ctx, institute_id),
        search=search,
        room_id=room,
        status=_status_filter(status_filter),
    )
    items, pagination = paginate(query, page, per_page)
    return {"status": True, "data": {"Inventory": items, "Pagination": pagination}, "message": ""}


@router.get("/export")
def export_inventory_items(
    search: Optional[str] = None,
    room: Optional[int] = None,
    status_filter: Optional[str] = Query(None, alias="status"),
    institute_id: Optional[int] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_request_context),
):
    """Download the filtered inventory as an Excel workbook."""
    target_institute = _listing_institute(ctx, institute_id)
    items = crud_inventory_items.query_inventory_items(
        db, target_institute, search=search, room_id=room, status=_status_filter(status_filter)
    ).all()

    wb = Workbook()
    ws = wb.active
    ws.title = "Inventory"
    ws.append(EXPORT_HEADERS)
    header_fill = PatternFill(start_color="DDEBF7", end_color="DDEBF7", fill_type="solid")
    for cell in ws[1]:
        cell.font = Font(bold=True)
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    for item in items:
        ws.append([
            item.id,
            item.asset_type,
            item.room_name,
            item.quantity,
            item.status.value,
            item.purchase_date,
            float(item.purchase_price) if item.purchase_price is not None else None,
            item.scraped_quantity,
            float(item.scraped_amount) if item.scraped_amount is not None else None,
            item.remarks,
        ])

    for col_idx in range(1, len(EXPORT_HEADERS) + 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = 18

    excel_file = BytesIO()
    wb.save(excel_file)
    excel_file.seek(0)

    filename = f"inventory_{target_institute}_{date.today().isoformat()}.xlsx"
    headers = {
        'Content-Disposition': f'attachment; filename="{filename}"'
    }
    logger.info(f"Inventory export of {len(items)} row(s) by user {ctx.user_id} for institute {target_institute}")
    return StreamingResponse(excel_file, media_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet', headers=headers)


@router.get("/{item_id}", response_model=ApiResponse[InventoryItem])
def read_inventory_item(item_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    """Retrieve a single inventory row by ID."""
    db_item = crud_inventory_items.get_inventory_item_or_404(db, item_id, ctx.institute_id)
    return {"status": True, "data": db_item, "message": ""}


@router.get("/{item_id}/audit", response_model=ApiResponse[List[InventoryItemAudit]])
def read_inventory_item_audit(
    item_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Quantity history of an inventory row."""
    crud_inventory_items.get_inventory_item_or_404(db, item_id, ctx.institute_id)
    audits = crud_inventory_item_audit.get_inventory_item_audits(
        db, item_id, ctx.institute_id, start_date=start_date, end_date=end_date
    )
    return {"status": True, "data": audits, "message": ""}


@router.post("/", response_model=ApiResponse[InventoryItem], status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    item: InventoryItemCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """Record a purchase of assets into the inventory."""
    db_item = crud_inventory_items.create_inventory_item(db, item, ctx)
    return {"status": True, "data": db_item, "message": "Inventory created successfully"}


@router.put("/{item_id}", response_model=ApiResponse[InventoryUpdateResult])
@router.patch("/{item_id}", response_model=ApiResponse[InventoryUpdateResult])
def update_inventory_item(
    item_id: int,
    item: InventoryItemUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(get_institute_context),
):
    """
    Update an inventory row.

    Sending ``status=Scraped`` with a ``scraped_quantity`` below the row's quantity
    splits the scraped units into a new row, returned as ``ScrapedInventory``.
    """
    db_item, scraped_item = crud_inventory_items.update_inventory_item(db, item_id, item, ctx)
    data = {"Inventory": db_item}
    if scraped_item is not None:
        data["ScrapedInventory"] = scraped_item
        message = f"{scraped_item.quantity} unit(s) scraped into a new inventory record"
    else:
        message = "Inventory updated successfully"
    return {"status": True, "data": data, "message": message}


@router.delete("/{item_id}", response_model=ApiResponse[dict])
def delete_inventory_item(item_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(get_institute_context)):
    """Soft delete an inventory row. Rows with a pending transfer cannot be deleted."""
    crud_inventory_items.delete_inventory_item(db, item_id, ctx)
    return {"status": True, "data": {}, "message": "Inventory deleted successfully"}
