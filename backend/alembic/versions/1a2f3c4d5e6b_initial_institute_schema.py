"""initial institute schema

Revision ID: 1a2f3c4d5e6b
Revises:
Create Date: 2026-10-19 10:12:41.530117

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '1a2f3c4d5e6b'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

inventory_status = sa.Enum('ACTIVE_STOCK', 'DISCARDED', 'SCRAPED', name='inventorystatus')
transfer_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='transferstatus')
requisition_status = sa.Enum('PENDING', 'APPROVED', 'REJECTED', name='requisitionstatus')


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(), nullable=True),
        sa.Column('updated_by', sa.String(), nullable=True),
    ]


def upgrade() -> None:
    """Create the institute, catalog, inventory and workflow tables."""
    op.create_table(
        'institutes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('code', sa.String(), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
    )
    op.create_index(op.f('ix_institutes_id'), 'institutes', ['id'], unique=False)

    op.create_table(
        'rooms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('floor', sa.String(), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('institute_id', 'name', name='_room_name_institute_uc'),
    )
    op.create_index(op.f('ix_rooms_id'), 'rooms', ['id'], unique=False)
    op.create_index(op.f('ix_rooms_institute_id'), 'rooms', ['institute_id'], unique=False)

    op.create_table(
        'asset_categories',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('institute_id', 'name', name='_asset_category_name_institute_uc'),
    )
    op.create_index(op.f('ix_asset_categories_id'), 'asset_categories', ['id'], unique=False)
    op.create_index(op.f('ix_asset_categories_institute_id'), 'asset_categories', ['institute_id'], unique=False)

    op.create_table(
        'asset_masters',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=False),
        sa.Column('asset_type', sa.String(), nullable=False),
        sa.Column('unit', sa.String(), nullable=True),
        sa.Column('service_required', sa.Boolean(), nullable=False),
        sa.Column('asset_category_ids', sa.JSON(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_asset_masters_id'), 'asset_masters', ['id'], unique=False)
    op.create_index(op.f('ix_asset_masters_institute_id'), 'asset_masters', ['institute_id'], unique=False)

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=False),
        sa.Column('room_id', sa.Integer(), sa.ForeignKey('rooms.id'), nullable=True),
        sa.Column('asset_master_id', sa.Integer(), sa.ForeignKey('asset_masters.id'), nullable=False),
        sa.Column('asset_category_ids', sa.JSON(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', inventory_status, nullable=False),
        sa.Column('scraped_amount', sa.Numeric(12, 2), nullable=True),
        sa.Column('scraped_quantity', sa.Integer(), nullable=True),
        sa.Column('purchase_date', sa.Date(), nullable=True),
        sa.Column('purchase_price', sa.Numeric(12, 2), nullable=True),
        sa.Column('remarks', sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_by', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity >= 0', name='_inventory_quantity_non_negative'),
    )
    op.create_index(op.f('ix_inventory_items_id'), 'inventory_items', ['id'], unique=False)
    op.create_index(op.f('ix_inventory_items_institute_id'), 'inventory_items', ['institute_id'], unique=False)
    op.create_index(op.f('ix_inventory_items_room_id'), 'inventory_items', ['room_id'], unique=False)

    op.create_table(
        'inventory_item_audit',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('inventory_item_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('institute_id', sa.Integer(), nullable=False),
        sa.Column('change_type', sa.String(), nullable=False),
        sa.Column('change_amount', sa.Integer(), nullable=False),
        sa.Column('old_quantity', sa.Integer(), nullable=False),
        sa.Column('new_quantity', sa.Integer(), nullable=False),
        sa.Column('changed_by', sa.String(), nullable=True),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=True),
        sa.Column('note', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_inventory_item_audit_id'), 'inventory_item_audit', ['id'], unique=False)
    op.create_index(op.f('ix_inventory_item_audit_institute_id'), 'inventory_item_audit', ['institute_id'], unique=False)

    op.create_table(
        'transfers',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('inventory_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=False),
        sa.Column('from_room_id', sa.Integer(), sa.ForeignKey('rooms.id'), nullable=True),
        sa.Column('from_institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=True),
        sa.Column('to_room_id', sa.Integer(), sa.ForeignKey('rooms.id'), nullable=True),
        sa.Column('to_institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=True),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('status', transfer_status, nullable=False),
        sa.Column('requested_by', sa.Integer(), nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_inventory_id', sa.Integer(), sa.ForeignKey('inventory_items.id'), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('quantity > 0', name='_transfer_quantity_positive'),
        sa.CheckConstraint('(to_room_id IS NULL) <> (to_institute_id IS NULL)', name='_transfer_single_destination'),
    )
    op.create_index(op.f('ix_transfers_id'), 'transfers', ['id'], unique=False)
    op.create_index(op.f('ix_transfers_inventory_id'), 'transfers', ['inventory_id'], unique=False)
    op.create_index(op.f('ix_transfers_from_institute_id'), 'transfers', ['from_institute_id'], unique=False)
    op.create_index(op.f('ix_transfers_to_institute_id'), 'transfers', ['to_institute_id'], unique=False)

    op.create_table(
        'requisitions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('institute_id', sa.Integer(), sa.ForeignKey('institutes.id'), nullable=False),
        sa.Column('asset_master_id', sa.Integer(), sa.ForeignKey('asset_masters.id'), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requested_by', sa.Integer(), nullable=False),
        sa.Column('requester_role', sa.String(), nullable=True),
        sa.Column('status', requisition_status, nullable=False),
        sa.Column('approved_by', sa.Integer(), nullable=True),
        sa.Column('approval_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('comments', sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_requisitions_id'), 'requisitions', ['id'], unique=False)
    op.create_index(op.f('ix_requisitions_institute_id'), 'requisitions', ['institute_id'], unique=False)
    op.create_index(op.f('ix_requisitions_requested_by'), 'requisitions', ['requested_by'], unique=False)

    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('table_name', sa.String(), nullable=False),
        sa.Column('record_id', sa.Integer(), nullable=False),
        sa.Column('institute_id', sa.Integer(), nullable=True),
        sa.Column('changed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('changed_by', sa.String(), nullable=False),
        sa.Column('action', sa.String(), nullable=False),
        sa.Column('old_values', sa.JSON(), nullable=True),
        sa.Column('new_values', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_audit_log_id'), 'audit_log', ['id'], unique=False)
    op.create_index(op.f('ix_audit_log_institute_id'), 'audit_log', ['institute_id'], unique=False)


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_table('audit_log')
    op.drop_table('requisitions')
    op.drop_table('transfers')
    op.drop_table('inventory_item_audit')
    op.drop_table('inventory_items')
    op.drop_table('asset_masters')
    op.drop_table('asset_categories')
    op.drop_table('rooms')
    op.drop_table('institutes')
    bind = op.get_bind()
    requisition_status.drop(bind, checkfirst=True)
    transfer_status.drop(bind, checkfirst=True)
    inventory_status.drop(bind, checkfirst=True)
