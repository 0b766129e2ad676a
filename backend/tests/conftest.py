"""
Institute API - Test Configuration and Fixtures
"""
import os
import tempfile
from types import SimpleNamespace
from typing import Generator, List, Optional
import pytest
from fastapi.testclient import TestClient

# Set testing environment before the app reads it
os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['JWT_SECRET_KEY'] = 'test-jwt-secret-key-for-testing'
os.environ['LOG_DIR'] = os.path.join(tempfile.gettempdir(), 'institute-api-test-logs')
os.environ['LOG_LEVEL'] = 'WARNING'

from main import app
from database import Base, engine, SessionLocal
from models import AssetCategory, AssetMaster, Institute, Room
from utils.auth_utils import create_access_token

ADMIN_ID = 1
STAFF_ID = 2
SECOND_ADMIN_ID = 3
VICEPRINCIPAL_ID = 4
FOREIGN_ADMIN_ID = 10
SUPERADMIN_ID = 99


def make_headers(user_id: int, institute_id: Optional[int], roles: List[str], **extra) -> dict:
    """Authorization header for a user with the given claims."""
    claims = {'sub': user_id, 'roles': roles, 'name': f'user-{user_id}'}
    if institute_id is not None:
        claims['institute_id'] = institute_id
    claims.update(extra)
    return {'Authorization': f'Bearer {create_access_token(claims)}'}


@pytest.fixture(scope='function')
def db_session() -> Generator:
    """Fresh tables and a session for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session) -> Generator:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seed(db_session):
    """Two institutes with rooms, one category and one asset master each."""
    main_campus = Institute(name='Main Campus', code='MC')
    north_campus = Institute(name='North Campus', code='NC')
    db_session.add_all([main_campus, north_campus])
    db_session.flush()

    store = Room(institute_id=main_campus.id, name='Store Room', floor='Ground')
    lab = Room(institute_id=main_campus.id, name='Physics Lab', floor='First')
    north_store = Room(institute_id=north_campus.id, name='Store Room', floor='Ground')
    electronics = AssetCategory(institute_id=main_campus.id, name='Electronics')
    north_electronics = AssetCategory(institute_id=north_campus.id, name='Electronics')
    db_session.add_all([store, lab, north_store, electronics, north_electronics])
    db_session.flush()

    projector = AssetMaster(
        institute_id=main_campus.id,
        asset_type='Projector',
        unit='pcs',
        asset_category_ids=[electronics.id],
    )
    north_projector = AssetMaster(
        institute_id=north_campus.id,
        asset_type='Projector',
        unit='pcs',
        asset_category_ids=[north_electronics.id],
    )
    db_session.add_all([projector, north_projector])
    db_session.commit()

    return SimpleNamespace(
        institute_id=main_campus.id,
        other_institute_id=north_campus.id,
        store_id=store.id,
        lab_id=lab.id,
        north_store_id=north_store.id,
        category_id=electronics.id,
        other_category_id=north_electronics.id,
        asset_master_id=projector.id,
        other_asset_master_id=north_projector.id,
    )


@pytest.fixture
def admin_headers(seed) -> dict:
    return make_headers(ADMIN_ID, seed.institute_id, ['admin'])


@pytest.fixture
def second_admin_headers(seed) -> dict:
    return make_headers(SECOND_ADMIN_ID, seed.institute_id, ['admin'])


@pytest.fixture
def staff_headers(seed) -> dict:
    return make_headers(STAFF_ID, seed.institute_id, ['staff'])


@pytest.fixture
def viceprincipal_headers(seed) -> dict:
    return make_headers(VICEPRINCIPAL_ID, seed.institute_id, ['viceprincipal'])


@pytest.fixture
def foreign_admin_headers(seed) -> dict:
    """Admin of the other institute"""
    return make_headers(FOREIGN_ADMIN_ID, seed.other_institute_id, ['admin'])


@pytest.fixture
def superadmin_headers(seed) -> dict:
    return make_headers(SUPERADMIN_ID, None, ['superadmin'])


@pytest.fixture
def create_inventory(client, seed, admin_headers):
    """Factory creating an inventory row through the API and returning its JSON"""
    def _create(quantity: int = 10, headers: Optional[dict] = None, **overrides) -> dict:
        payload = {
            'asset_master_id': seed.asset_master_id,
            'room_id': seed.store_id,
            'quantity': quantity,
            'purchase_date': '2026-06-01',
            'purchase_price': '1500.00',
        }
        payload.update(overrides)
        response = client.post('/inventory/', json=payload, headers=headers or admin_headers)
        assert response.status_code == 201, response.text
        return response.json()['data']
    return _create
