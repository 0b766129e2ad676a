import pytest
from sqlalchemy import update

from conftest import make_headers
from crud import transfer as crud_transfer
from models import InventoryItem, Transfer, TransferStatus


def request_room_transfer(client, headers, inventory_id, room_id, quantity):
    response = client.post('/transfers/', json={
        'inventory_id': inventory_id,
        'target_type': 'room',
        'destination_room_id': room_id,
        'quantity': quantity,
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()['data']


def test_full_transfer_relocates_row_in_place(client, create_inventory, seed, admin_headers, db_session):
    """10 of 10 to another room moves the row itself"""
    item = create_inventory(quantity=10)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 10)
    assert transfer['status'] == 'pending'
    assert transfer['from_room_id'] == seed.store_id
    assert transfer['from_institute_id'] == seed.institute_id

    # Nothing moves until approval
    assert client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']['room_id'] == seed.store_id

    response = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers)

    assert response.status_code == 200, response.text
    approved = response.json()['data']
    assert approved['status'] == 'approved'
    assert approved['approved_by'] == 1
    assert approved['approved_at'] is not None
    assert approved['created_inventory_id'] is None

    moved = client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']
    assert moved['room_id'] == seed.lab_id
    assert moved['quantity'] == 10
    db_session.expire_all()
    assert db_session.query(InventoryItem).count() == 1


def test_partial_transfer_splits_row(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=10)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 4)

    approved = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers).json()['data']

    source = client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']
    assert source['quantity'] == 6
    assert source['room_id'] == seed.store_id

    created_id = approved['created_inventory_id']
    assert created_id is not None
    created = client.get(f"/inventory/{created_id}", headers=admin_headers).json()['data']
    assert created['quantity'] == 4
    assert created['room_id'] == seed.lab_id
    assert created['status'] == 'ActiveStock'
    assert created['asset_master_id'] == item['asset_master_id']
    assert created['remarks'] == f"Transferred from inventory #{item['id']} by transfer #{transfer['id']}"


def test_second_approval_is_a_conflict_and_moves_nothing(client, create_inventory, seed, admin_headers, db_session):
    item = create_inventory(quantity=10)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 4)

    first = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers)
    second = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers)

    assert first.status_code == 200
    assert second.status_code == 409
    assert second.json()['message'] == 'Transfer already processed'
    assert client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']['quantity'] == 6
    db_session.expire_all()
    assert db_session.query(InventoryItem).count() == 2


def test_reject_leaves_inventory_untouched(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=10)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 4)

    response = client.post(f"/transfers/{transfer['id']}/reject", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()['data']['status'] == 'rejected'
    source = client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']
    assert source['quantity'] == 10
    assert source['room_id'] == seed.store_id

    # Rejected is terminal
    assert client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers).status_code == 409
    assert client.post(f"/transfers/{transfer['id']}/reject", headers=admin_headers).status_code == 409


def test_transfer_cannot_exceed_available_quantity(client, create_inventory, seed, staff_headers):
    item = create_inventory(quantity=5)

    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'room',
        'destination_room_id': seed.lab_id,
        'quantity': 6,
    }, headers=staff_headers)

    assert response.status_code == 400
    body = response.json()
    assert body['status'] is False
    assert body['data'] == {'requested': 6, 'available': 5}


def test_staff_cannot_approve(client, create_inventory, seed, staff_headers, db_session):
    item = create_inventory(quantity=5)
    transfer = request_room_transfer(client, staff_headers, item['id'], seed.lab_id, 2)

    response = client.post(f"/transfers/{transfer['id']}/approve", headers=staff_headers)

    assert response.status_code == 403
    assert response.json()['message'] == 'Unauthorized'
    db_session.expire_all()
    assert db_session.query(Transfer).one().status == TransferStatus.PENDING


def test_viceprincipal_can_approve(client, create_inventory, seed, staff_headers, viceprincipal_headers):
    item = create_inventory(quantity=5)
    transfer = request_room_transfer(client, staff_headers, item['id'], seed.lab_id, 5)

    response = client.post(f"/transfers/{transfer['id']}/approve", headers=viceprincipal_headers)

    assert response.status_code == 200
    assert response.json()['data']['approved_by'] == 4


def test_institute_transfer_moves_stock_and_clears_room(
    client, create_inventory, seed, admin_headers, foreign_admin_headers
):
    item = create_inventory(quantity=8)
    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'institute',
        'destination_institute_id': seed.other_institute_id,
        'quantity': 3,
    }, headers=admin_headers)
    assert response.status_code == 201, response.text
    transfer = response.json()['data']
    assert transfer['to_institute_id'] == seed.other_institute_id
    assert transfer['to_room_id'] is None

    # Both ends of the transfer can see it
    incoming = client.get('/transfers/', headers=foreign_admin_headers).json()['data']
    assert [t['id'] for t in incoming['Transfers']] == [transfer['id']]

    approved = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers).json()['data']

    created = client.get(f"/inventory/{approved['created_inventory_id']}", headers=foreign_admin_headers).json()['data']
    assert created['institute_id'] == seed.other_institute_id
    assert created['room_id'] is None
    assert created['quantity'] == 3
    assert client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']['quantity'] == 5


def test_approval_rechecks_quantity(client, create_inventory, seed, admin_headers):
    """Stock scrapped after the request was raised is not moved twice"""
    item = create_inventory(quantity=10)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 8)
    client.put(f"/inventory/{item['id']}", json={'status': 'Scraped', 'scraped_quantity': 5},
               headers=admin_headers)

    response = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers)

    assert response.status_code == 400
    assert response.json()['data'] == {'requested': 8, 'available': 5}
    assert client.get(f"/transfers/{transfer['id']}", headers=admin_headers).json()['data']['status'] == 'pending'
    assert client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']['quantity'] == 5


def test_transfer_to_current_room_is_refused(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=5)

    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'room',
        'destination_room_id': seed.store_id,
        'quantity': 1,
    }, headers=admin_headers)

    assert response.status_code == 400


def test_transfer_to_own_institute_is_refused(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=5)

    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'institute',
        'destination_institute_id': seed.institute_id,
        'quantity': 1,
    }, headers=admin_headers)

    assert response.status_code == 400


def test_transfer_to_room_of_other_institute_is_not_found(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=5)

    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'room',
        'destination_room_id': seed.north_store_id,
        'quantity': 1,
    }, headers=admin_headers)

    assert response.status_code == 404


@pytest.mark.parametrize('payload, field', [
    ({'target_type': 'room', 'quantity': 1}, '__root__'),
    ({'target_type': 'room', 'destination_room_id': 1, 'quantity': 0}, 'quantity'),
    ({'target_type': 'warehouse', 'destination_room_id': 1, 'quantity': 1}, 'target_type'),
])
def test_transfer_payload_validation(client, create_inventory, admin_headers, payload, field):
    item = create_inventory(quantity=5)

    response = client.post('/transfers/', json={'inventory_id': item['id'], **payload}, headers=admin_headers)

    assert response.status_code == 422
    assert field in response.json()['data']


def test_only_active_stock_can_be_transferred(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=5, status='Discarded')

    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'room',
        'destination_room_id': seed.lab_id,
        'quantity': 1,
    }, headers=admin_headers)

    assert response.status_code == 400
    assert response.json()['message'] == 'Only active stock can be transferred'


def test_transfers_are_isolated_per_institute(client, create_inventory, seed, admin_headers, foreign_admin_headers):
    item = create_inventory(quantity=5)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 1)

    assert client.get(f"/transfers/{transfer['id']}", headers=foreign_admin_headers).status_code == 404
    assert client.post(f"/transfers/{transfer['id']}/approve", headers=foreign_admin_headers).status_code == 404
    assert client.get('/transfers/', headers=foreign_admin_headers).json()['data']['Transfers'] == []


def test_list_transfers_filters_by_status(client, create_inventory, seed, admin_headers):
    item = create_inventory(quantity=5)
    first = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 1)
    request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 1)
    client.post(f"/transfers/{first['id']}/reject", headers=admin_headers)

    pending = client.get('/transfers/', params={'status': 'pending'}, headers=admin_headers).json()['data']
    rejected = client.get('/transfers/', params={'status': 'rejected'}, headers=admin_headers).json()['data']

    assert pending['Pagination']['total'] == 1
    assert [t['id'] for t in rejected['Transfers']] == [first['id']]


def test_decisions_are_written_to_audit_log(client, create_inventory, seed, admin_headers, foreign_admin_headers):
    item = create_inventory(quantity=5)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 2)
    client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers)

    response = client.get(f"/transfers/{transfer['id']}/audit", headers=admin_headers)

    assert response.status_code == 200
    logs = response.json()['data']
    assert [log['action'] for log in logs] == ['APPROVE']
    assert logs[0]['old_values']['status'] == 'pending'
    assert logs[0]['new_values']['status'] == 'approved'
    assert logs[0]['changed_by'] == 'user-1'
    assert client.get(f"/transfers/{transfer['id']}/audit", headers=foreign_admin_headers).status_code == 404


def test_token_without_institute_sees_no_transfers(client, create_inventory, seed, admin_headers, superadmin_headers):
    item = create_inventory(quantity=4)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 4)
    detached_admin = make_headers(77, None, ['admin'])

    listing = client.get('/transfers/', headers=detached_admin).json()['data']
    assert listing['Transfers'] == []
    assert listing['Pagination']['total'] == 0
    assert client.get(f"/transfers/{transfer['id']}", headers=detached_admin).status_code == 404
    assert client.post(f"/transfers/{transfer['id']}/approve", headers=detached_admin).status_code == 404
    assert client.post(f"/transfers/{transfer['id']}/reject", headers=detached_admin).status_code == 404

    # A superadmin without an institute still sees everything
    everything = client.get('/transfers/', headers=superadmin_headers).json()['data']
    assert [t['id'] for t in everything['Transfers']] == [transfer['id']]
    assert client.get(f"/transfers/{transfer['id']}", headers=admin_headers).json()['data']['status'] == 'pending'


def test_destination_admin_can_decide_incoming_transfer(client, create_inventory, seed, admin_headers, foreign_admin_headers):
    item = create_inventory(quantity=6)
    response = client.post('/transfers/', json={
        'inventory_id': item['id'],
        'target_type': 'institute',
        'destination_institute_id': seed.other_institute_id,
        'quantity': 6,
    }, headers=admin_headers)
    transfer = response.json()['data']

    approved = client.post(f"/transfers/{transfer['id']}/approve", headers=foreign_admin_headers)

    assert approved.status_code == 200
    assert approved.json()['data']['approved_by'] == 10
    moved = client.get(f"/inventory/{item['id']}", headers=foreign_admin_headers).json()['data']
    assert moved['institute_id'] == seed.other_institute_id
    assert moved['quantity'] == 6


def test_concurrent_decision_loses_the_status_swap(client, create_inventory, seed, admin_headers, db_session, monkeypatch):
    """Another request closes the transfer after it was read: nothing moves"""
    item = create_inventory(quantity=10)
    transfer = request_room_transfer(client, admin_headers, item['id'], seed.lab_id, 4)
    read_transfer = crud_transfer.get_transfer_or_404

    def read_then_rejected_elsewhere(db, transfer_id, ctx):
        db_transfer = read_transfer(db, transfer_id, ctx)
        db.execute(
            update(Transfer)
            .where(Transfer.id == transfer_id)
            .values(status=TransferStatus.REJECTED)
            .execution_options(synchronize_session=False)
        )
        return db_transfer

    monkeypatch.setattr(crud_transfer, 'get_transfer_or_404', read_then_rejected_elsewhere)

    response = client.post(f"/transfers/{transfer['id']}/approve", headers=admin_headers)

    assert response.status_code == 409
    assert response.json()['message'] == 'Transfer already processed'
    monkeypatch.undo()
    source = client.get(f"/inventory/{item['id']}", headers=admin_headers).json()['data']
    assert source['quantity'] == 10
    assert source['room_id'] == seed.store_id
    db_session.expire_all()
    assert db_session.query(InventoryItem).count() == 1
    assert db_session.query(Transfer).one().status == TransferStatus.PENDING
