# tests/test_validator.py

from datetime import date

import pytest

from babyboss.calculator.validator import compose_address, validate_customer, validate_password_change

STAFF = {'id': 'u_an', 'role': 'staff', 'password': 'an123'}


@pytest.fixture
def form_data():
    return {
        'name': ' Phạm Hoa ', 'companyName': 'Kem Hoa Sữa', 'phone': '0911111111',
        'specificAddress': '12 Lê Lợi', 'ward': 'Bến Nghé', 'district': 'Quận 1',
        'province': 'TP Hồ Chí Minh', 'salesId': None,
    }


def test_compose_address_needs_every_part():
    assert compose_address('12 Lê Lợi', 'Bến Nghé', 'Quận 1', 'TP HCM') == '12 Lê Lợi, Bến Nghé, Quận 1, TP HCM'
    assert compose_address('12 Lê Lợi', '', 'Quận 1', 'TP HCM') is None
    assert compose_address('12 Lê Lợi', '  ', 'Quận 1', 'TP HCM') is None


def test_new_customer_is_assigned_to_creator(form_data):
    customer, errors = validate_customer(form_data, current_user=STAFF)

    assert errors == []
    assert customer['salesId'] == 'u_an'
    assert customer['name'] == 'Phạm Hoa'
    assert customer['address'] == '12 Lê Lợi, Bến Nghé, Quận 1, TP Hồ Chí Minh'
    assert customer['createdDate'] == date.today().isoformat()
    assert customer['id']


def test_explicit_assignment_wins(form_data):
    form_data['salesId'] = 'u_binh'
    customer, _ = validate_customer(form_data, current_user=STAFF)
    assert customer['salesId'] == 'u_binh'


def test_missing_required_fields(form_data):
    form_data['phone'] = ''
    customer, errors = validate_customer(form_data, current_user=STAFF)

    assert customer is None
    assert errors == ['Vui lòng điền các thông tin bắt buộc (Tên, Công ty, SĐT).']


def test_new_customer_needs_full_address(form_data):
    form_data['ward'] = ''
    customer, errors = validate_customer(form_data, current_user=STAFF)

    assert customer is None
    assert 'địa chỉ' in errors[0]


def test_edit_keeps_stored_address_id_and_owner(form_data):
    existing = {'id': 'c_1', 'salesId': 'u_binh', 'createdDate': '2024-01-05',
                'address': '5 Hàng Bài, Tràng Tiền, Hoàn Kiếm, Hà Nội'}
    for key in ('specificAddress', 'ward', 'district', 'province'):
        form_data[key] = ''

    customer, errors = validate_customer(form_data, existing=existing, current_user=STAFF)

    assert errors == []
    assert customer['id'] == 'c_1'
    assert customer['salesId'] == 'u_binh'
    assert customer['createdDate'] == '2024-01-05'
    assert customer['address'] == existing['address']


@pytest.mark.parametrize("current, new, confirm, expected", [
    ('wrong', 'abcd', 'abcd', 'Mật khẩu hiện tại không đúng.'),
    ('an123', 'ab', 'ab', 'Mật khẩu mới quá ngắn.'),
    ('an123', 'abcd', 'abce', 'Mật khẩu xác nhận không khớp.'),
    ('an123', 'an123', 'an123', 'Mật khẩu mới không được trùng với mật khẩu cũ.'),
])
def test_password_change_rejections(current, new, confirm, expected):
    assert validate_password_change(STAFF, current, new, confirm) == [expected]


def test_password_change_accepted():
    assert validate_password_change(STAFF, 'an123', 'abc', 'abc') == []
