# tests/conftest.py

import json
from datetime import date

import pytest
import requests

from config import Config


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    WTF_CSRF_ENABLED = False
    SHEET_API_URL = 'https://sheets.example.test/exec'
    SHEET_SYNC_ASYNC = False


class FakeResponse:
    def __init__(self, payload=None, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Stands in for the sheet client's requests.Session.

    Records every POST and answers GETs from `responses`, keyed by action.
    A response may be a payload, a FakeResponse or an exception to raise.
    """

    def __init__(self):
        self.posts = []
        self.gets = []
        self.responses = {}

    def post(self, url, data=None, headers=None, timeout=None):
        self.posts.append({
            'url': url,
            'body': json.loads(data.decode('utf-8')),
            'headers': headers,
            'timeout': timeout,
        })
        return FakeResponse({'status': 'success'})

    def get(self, url, params=None, timeout=None):
        self.gets.append(params)
        response = self.responses.get(params['action'], [])
        if isinstance(response, Exception):
            raise response
        if isinstance(response, FakeResponse):
            return response
        return FakeResponse(response)

    def actions(self):
        return [p['body']['action'] for p in self.posts]


TODAY = date.today().isoformat()

USERS = [
    {'id': 'u_admin', 'username': 'admin', 'password': 'admin123', 'fullName': 'Quản trị viên',
     'role': 'admin', 'branch': 'Baby Boss Hội sở', 'phone': '0900000001'},
    {'id': 'u_mgr', 'username': 'quanly', 'password': 'ql123', 'fullName': 'Trần Quản Lý',
     'role': 'manager', 'branch': 'Baby Boss Hội sở', 'phone': '0900000002'},
    {'id': 'u_an', 'username': 'An.Nguyen', 'password': 'an123', 'fullName': 'Nguyễn Văn An',
     'role': 'staff', 'branch': 'Baby Boss Hội sở', 'phone': '0900000003'},
    {'id': 'u_binh', 'username': 'binh', 'password': 'binh123', 'fullName': 'Lê Thị Bình',
     'role': 'staff', 'branch': 'Baby Boss miền Bắc', 'phone': '0900000004'},
]

CUSTOMERS = [
    {'id': 'c_1', 'name': 'Phạm Hoa', 'companyName': 'Kem Hoa Sữa', 'phone': '0911111111',
     'address': '12 Lê Lợi, Bến Nghé, Quận 1, TP Hồ Chí Minh', 'salesId': 'u_an',
     'createdDate': '2024-01-05'},
    {'id': 'c_2', 'name': 'Đỗ Minh', 'companyName': 'Tiệm Kem Tuyết', 'phone': '0922222222',
     'address': '5 Hàng Bài, Tràng Tiền, Hoàn Kiếm, Hà Nội', 'salesId': 'u_binh',
     'createdDate': '2024-02-10'},
    {'id': 'c_3', 'name': 'Vũ Lan', 'companyName': 'Cafe Lan', 'phone': '0933333333',
     'address': '8 Trần Phú, Phường 4, Quận 5, TP Hồ Chí Minh', 'salesId': 'u_an',
     'createdDate': '2024-03-01'},
]

ORDERS = [
    {'id': 'o_1', 'salesId': 'u_an', 'customerId': 'c_1', 'customerName': 'Phạm Hoa',
     'companyName': 'Kem Hoa Sữa', 'date': TODAY, 'hasInvoice': False,
     'iceCreamItems': [{'id': 'i1', 'line': 'Pro', 'size': '500ml', 'flavor': 'Vani',
                        'quantity': 10, 'pricePerUnit': 50000, 'total': 500000}],
     'toppingItems': [], 'discountItems': [], 'giftItems': [],
     'totalIceCreamRevenue': 500000, 'totalToppingRevenue': 0, 'totalRevenue': 500000,
     'totalQuantity': 10, 'shippingCost': 0, 'finalAmount': 500000, 'depositAmount': 250000},
    {'id': 'o_2', 'salesId': 'u_binh', 'customerId': 'c_2', 'customerName': 'Đỗ Minh',
     'companyName': 'Tiệm Kem Tuyết', 'date': TODAY, 'hasInvoice': True,
     'iceCreamItems': [{'id': 'i2', 'line': 'Promax', 'size': '2700ml', 'flavor': 'Socola',
                        'quantity': 3, 'pricePerUnit': 300000, 'total': 900000}],
     'toppingItems': [], 'discountItems': [], 'giftItems': [],
     'totalIceCreamRevenue': 900000, 'totalToppingRevenue': 0, 'totalRevenue': 900000,
     'totalQuantity': 3, 'shippingCost': 0, 'finalAmount': 900000, 'depositAmount': 450000},
]


@pytest.fixture
def app_with_db():
    """
    Creates a new app instance with an in-memory database and a fake sheet
    session, and yields the app within an application context.
    """
    from babyboss import create_app, db, sheets

    app = create_app(TestingConfig)
    original_session = sheets.session
    sheets.session = FakeSession()

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()

    sheets.session = original_session


@pytest.fixture
def fake_sheet(app_with_db):
    from babyboss import sheets
    return sheets.session


def _store(key, records):
    from babyboss import db
    from babyboss.models import StoredCollection

    row = StoredCollection(key=key)
    row.set_value(records)
    db.session.add(row)
    db.session.commit()


@pytest.fixture
def seeded(app_with_db):
    """Local store pre-filled with users, customers and orders."""
    import copy
    from babyboss import storage

    _store(storage.KEY_USERS, copy.deepcopy(USERS))
    _store(storage.KEY_CUSTOMERS, copy.deepcopy(CUSTOMERS))
    _store(storage.KEY_ORDERS, copy.deepcopy(ORDERS))
    return app_with_db


@pytest.fixture
def client(seeded):
    return seeded.test_client()


@pytest.fixture
def login_as(client):
    """Returns a function that marks the test client as logged in."""
    def _login(user_id):
        with client.session_transaction() as sess:
            sess['user_id'] = user_id
        return client
    return _login
