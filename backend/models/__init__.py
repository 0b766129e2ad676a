from models.institute import Institute
from models.room import Room
from models.asset_category import AssetCategory
from models.asset_master import AssetMaster
from models.inventory_items import InventoryItem, InventoryStatus
from models.inventory_item_audit import InventoryItemAudit
from models.transfer import Transfer, TransferStatus
from models.requisition import Requisition, RequisitionStatus
from models.audit_log import AuditLog

__all__ = ['AssetCategory', 'AssetMaster', 'AuditLog', 'Institute', 'InventoryItem', 'InventoryItemAudit', 'InventoryStatus', 'Requisition', 'RequisitionStatus', 'Room', 'Transfer', 'TransferStatus',]
