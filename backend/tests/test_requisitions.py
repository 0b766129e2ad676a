import pytest

from crud import requisition as crud_requisition
from conftest import ADMIN_ID, STAFF_ID


def raise_requisition(client, headers, asset_master_id, description='Need two more projectors'):
    response = client.post('/requisitions/', json={
        'asset_master_id': asset_master_id,
        'description': description,
    }, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()['data']


def test_staff_raises_pending_requisition(client, seed, staff_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    assert requisition['status'] == 'pending'
    assert requisition['requested_by'] == STAFF_ID
    assert requisition['requester_role'] == 'staff'
    assert requisition['institute_id'] == seed.institute_id
    assert requisition['asset_name'] == 'Projector'
    assert requisition['approved_by'] is None


def test_requisition_needs_asset_master_of_own_institute(client, seed, staff_headers):
    response = client.post('/requisitions/', json={
        'asset_master_id': seed.other_asset_master_id,
        'description': 'Borrowed idea',
    }, headers=staff_headers)

    assert response.status_code == 404


def test_admin_approves_requisition(client, seed, staff_headers, admin_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    response = client.post(f"/requisitions/{requisition['id']}/approve", json={'comments': 'Budget cleared'},
                           headers=admin_headers)

    assert response.status_code == 200
    approved = response.json()['data']
    assert approved['status'] == 'approved'
    assert approved['approved_by'] == ADMIN_ID
    assert approved['approval_date'] is not None
    assert approved['comments'] == 'Budget cleared'


def test_approve_without_body(client, seed, staff_headers, admin_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    response = client.post(f"/requisitions/{requisition['id']}/approve", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()['data']['comments'] is None


@pytest.mark.parametrize('body', [{}, {'comments': ''}, {'comments': '   '}])
def test_reject_requires_comments(client, seed, staff_headers, admin_headers, body):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    response = client.post(f"/requisitions/{requisition['id']}/reject", json=body, headers=admin_headers)

    assert response.status_code == 422
    assert 'comments' in response.json()['data']
    still_pending = client.get(f"/requisitions/{requisition['id']}", headers=admin_headers).json()['data']
    assert still_pending['status'] == 'pending'


def test_reject_with_comments(client, seed, staff_headers, admin_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    response = client.post(f"/requisitions/{requisition['id']}/reject", json={'comments': '  Not in budget '},
                           headers=admin_headers)

    assert response.status_code == 200
    assert response.json()['data']['status'] == 'rejected'
    assert response.json()['data']['comments'] == 'Not in budget'


def test_decision_happens_once(client, seed, staff_headers, admin_headers, second_admin_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)
    client.post(f"/requisitions/{requisition['id']}/approve", json={'comments': 'ok'}, headers=admin_headers)

    again = client.post(f"/requisitions/{requisition['id']}/reject", json={'comments': 'changed my mind'},
                        headers=second_admin_headers)

    assert again.status_code == 409
    assert again.json()['message'] == 'Requisition already processed'
    current = client.get(f"/requisitions/{requisition['id']}", headers=admin_headers).json()['data']
    assert current['status'] == 'approved'
    assert current['approved_by'] == ADMIN_ID
    assert current['comments'] == 'ok'


def test_staff_cannot_decide(client, seed, staff_headers, viceprincipal_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    assert client.post(f"/requisitions/{requisition['id']}/approve", headers=staff_headers).status_code == 403
    response = client.post(f"/requisitions/{requisition['id']}/approve", headers=viceprincipal_headers)
    assert response.status_code == 403
    assert response.json()['message'] == 'Unauthorized'


def test_pending_queue_excludes_own_requisitions(client, seed, staff_headers, admin_headers):
    own = raise_requisition(client, admin_headers, seed.asset_master_id, 'Admin laptop')
    other = raise_requisition(client, staff_headers, seed.asset_master_id, 'Lab projector')

    response = client.get('/requisitions/pending-approvals', headers=admin_headers)

    assert response.status_code == 200
    ids = [r['id'] for r in response.json()['data']['Requisition']]
    assert ids == [other['id']]
    assert own['id'] not in ids


def test_pending_queue_is_for_admins(client, seed, staff_headers):
    assert client.get('/requisitions/pending-approvals', headers=staff_headers).status_code == 403


def test_self_approval_allowed_by_default(client, seed, admin_headers, monkeypatch):
    monkeypatch.setattr(crud_requisition, 'ALLOW_SELF_APPROVAL', True)
    own = raise_requisition(client, admin_headers, seed.asset_master_id)

    response = client.post(f"/requisitions/{own['id']}/approve", headers=admin_headers)

    assert response.status_code == 200


def test_self_approval_can_be_disabled(client, seed, admin_headers, monkeypatch):
    monkeypatch.setattr(crud_requisition, 'ALLOW_SELF_APPROVAL', False)
    own = raise_requisition(client, admin_headers, seed.asset_master_id)

    response = client.post(f"/requisitions/{own['id']}/approve", headers=admin_headers)

    assert response.status_code == 403
    assert client.get(f"/requisitions/{own['id']}", headers=admin_headers).json()['data']['status'] == 'pending'


def test_only_requester_edits_pending_requisition(client, seed, staff_headers, admin_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    forbidden = client.put(f"/requisitions/{requisition['id']}", json={'description': 'hijacked'},
                           headers=admin_headers)
    assert forbidden.status_code == 403

    edited = client.patch(f"/requisitions/{requisition['id']}", json={'description': 'Three projectors'},
                          headers=staff_headers)
    assert edited.status_code == 200
    assert edited.json()['data']['description'] == 'Three projectors'

    client.post(f"/requisitions/{requisition['id']}/approve", headers=admin_headers)
    locked = client.patch(f"/requisitions/{requisition['id']}", json={'description': 'Four'}, headers=staff_headers)
    assert locked.status_code == 409


def test_delete_only_while_pending(client, seed, staff_headers, admin_headers):
    first = raise_requisition(client, staff_headers, seed.asset_master_id)
    second = raise_requisition(client, staff_headers, seed.asset_master_id)

    assert client.delete(f"/requisitions/{first['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/requisitions/{first['id']}", headers=admin_headers).status_code == 404

    client.post(f"/requisitions/{second['id']}/reject", json={'comments': 'no'}, headers=admin_headers)
    assert client.delete(f"/requisitions/{second['id']}", headers=staff_headers).status_code == 409


def test_other_staff_cannot_delete(client, seed, staff_headers):
    from conftest import make_headers
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)
    colleague = make_headers(7, seed.institute_id, ['staff'])

    assert client.delete(f"/requisitions/{requisition['id']}", headers=colleague).status_code == 403


def test_list_filters_and_history(client, seed, staff_headers, admin_headers):
    approved = raise_requisition(client, staff_headers, seed.asset_master_id, 'Whiteboard markers')
    raise_requisition(client, staff_headers, seed.asset_master_id, 'Projector screen')
    client.post(f"/requisitions/{approved['id']}/approve", headers=admin_headers)

    pending = client.get('/requisitions/', params={'status': 'pending'}, headers=staff_headers).json()['data']
    assert pending['Pagination']['total'] == 1

    searched = client.get('/requisitions/', params={'search': 'marker'}, headers=staff_headers).json()['data']
    assert [r['id'] for r in searched['Requisition']] == [approved['id']]

    everything = client.get('/requisitions/all', headers=staff_headers).json()['data']
    assert len(everything['Requisition']) == 2

    staff_history = client.get('/requisitions/history', headers=staff_headers).json()['data']
    admin_history = client.get('/requisitions/history', headers=admin_headers).json()['data']
    assert [r['id'] for r in staff_history['Requisition']] == [approved['id']]
    assert [r['id'] for r in admin_history['Requisition']] == [approved['id']]


def test_own_requisitions(client, seed, staff_headers, admin_headers):
    mine = raise_requisition(client, admin_headers, seed.asset_master_id)
    raise_requisition(client, staff_headers, seed.asset_master_id)

    response = client.get('/requisitions/admin-own', headers=admin_headers).json()['data']

    assert [r['id'] for r in response['Requisition']] == [mine['id']]


def test_superadmin_sees_admin_requisitions_across_institutes(
    client, seed, staff_headers, admin_headers, foreign_admin_headers, superadmin_headers
):
    ours = raise_requisition(client, admin_headers, seed.asset_master_id)
    theirs = raise_requisition(client, foreign_admin_headers, seed.other_asset_master_id)
    raise_requisition(client, staff_headers, seed.asset_master_id)
    client.post(f"/requisitions/{theirs['id']}/approve", headers=superadmin_headers)

    all_admin = client.get('/requisitions/admin', headers=superadmin_headers).json()['data']
    assert sorted(r['id'] for r in all_admin['Requisition']) == sorted([ours['id'], theirs['id']])

    pending = client.get('/requisitions/admin/pending', headers=superadmin_headers).json()['data']
    assert [r['id'] for r in pending['Requisition']] == [ours['id']]

    assert client.get('/requisitions/admin', headers=admin_headers).status_code == 403


def test_requisitions_are_isolated_per_institute(client, seed, staff_headers, foreign_admin_headers):
    requisition = raise_requisition(client, staff_headers, seed.asset_master_id)

    assert client.get(f"/requisitions/{requisition['id']}", headers=foreign_admin_headers).status_code == 404
    response = client.post(f"/requisitions/{requisition['id']}/approve", headers=foreign_admin_headers)
    assert response.status_code == 404
    assert client.get('/requisitions/', headers=foreign_admin_headers).json()['data']['Requisition'] == []
