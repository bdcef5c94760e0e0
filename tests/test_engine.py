# tests/test_engine.py

import pytest

from babyboss.calculator.engine import (OrderError, to_number, make_ice_cream_item, make_topping_item,
                                        make_discount_item, make_gift_item, calculate_order_totals,
                                        is_first_order, build_order, document_totals)


@pytest.fixture
def customer():
    return {'id': 'c_1', 'name': 'Phạm Hoa', 'companyName': 'Kem Hoa Sữa', 'salesId': 'u_an'}


@pytest.fixture
def user():
    return {'id': 'u_mgr', 'username': 'quanly', 'role': 'manager', 'branch': 'Baby Boss Hội sở'}


@pytest.mark.parametrize("value, expected", [
    (None, 0), ('', 0), ('abc', 0), (float('nan'), 0),
    ('1,500,000', 1500000), ('12.5', 12.5), (7, 7), (3.0, 3),
])
def test_to_number_coerces_sheet_values(value, expected):
    assert to_number(value) == expected


def test_ice_cream_item_is_priced_from_catalogue():
    item = make_ice_cream_item('Pro', '500ml', 'Vani', 10)

    assert item['pricePerUnit'] == 50000
    assert item['total'] == 500000
    assert item['flavor'] == 'Vani'
    assert item['id']


@pytest.mark.parametrize("quantity", [0, -1, 1.5, 'abc'])
def test_item_rejects_bad_quantity(quantity):
    with pytest.raises(OrderError):
        make_ice_cream_item('Pro', '500ml', 'Vani', quantity)


def test_item_rejects_unknown_product():
    with pytest.raises(OrderError):
        make_ice_cream_item('Ultra', '500ml', 'Vani', 1)
    with pytest.raises(OrderError):
        make_discount_item('Pro', '1l', 'Vani', 1)


def test_topping_item_requires_name_and_non_negative_price():
    item = make_topping_item('Sốt dâu', 'Chai', 2, 20000)
    assert item['total'] == 40000

    with pytest.raises(OrderError):
        make_topping_item('', 'Chai', 1, 1000)
    with pytest.raises(OrderError):
        make_topping_item('Sốt dâu', 'Chai', 1, -5)


def test_discount_item_is_always_free():
    item = make_discount_item('Promax', '2700ml', 'Socola', 4)

    assert item['pricePerUnit'] == 0
    assert item['total'] == 0
    assert item['id'].startswith('disc_')


def test_gift_item_keeps_its_display_price():
    item = make_gift_item('Tủ đông mini', 'Cái', 1, 2500000)

    assert item['total'] == 2500000
    assert item['id'].startswith('gift_')


def test_order_totals_example():
    ice = [{'quantity': 10, 'pricePerUnit': 50000, 'total': 500000}]
    topping = [{'quantity': 2, 'pricePerUnit': 20000, 'total': 40000}]

    totals = calculate_order_totals(ice, topping, shipping_cost=30000)

    assert totals['totalIceCreamRevenue'] == 500000
    assert totals['totalToppingRevenue'] == 40000
    assert totals['totalRevenue'] == 540000
    assert totals['finalAmount'] == 570000
    assert totals['depositAmount'] == 285000
    assert totals['shippingCost'] == 30000


def test_discounts_and_gifts_do_not_change_the_amount_due():
    ice = [{'quantity': 10, 'pricePerUnit': 50000, 'total': 500000}]
    discount = [{'quantity': 2, 'pricePerUnit': 0, 'total': 0}]
    gift = [{'quantity': 1, 'pricePerUnit': 2500000, 'total': 2500000}]

    totals = calculate_order_totals(ice, [], discount, gift)

    assert totals['totalRevenue'] == 500000
    assert totals['finalAmount'] == 500000
    # Free boxes still count as boxes shipped
    assert totals['totalQuantity'] == 12


def test_totals_treat_blank_shipping_as_zero():
    totals = calculate_order_totals([], [{'quantity': 1, 'total': 1000}], shipping_cost='')
    assert totals['finalAmount'] == 1000
    assert totals['depositAmount'] == 500


def test_is_first_order():
    orders = [{'customerId': 'c_1'}, {'customerId': 'c_2'}]
    assert is_first_order('c_3', orders)
    assert not is_first_order('c_1', orders)
    assert is_first_order('c_1', [])


def test_build_order_credits_customer_owner(customer, user):
    ice = [make_ice_cream_item('Pro', '500ml', 'Vani', 10)]

    order = build_order(customer, user, ice, [], order_date='2024-05-02', shipping_cost=30000)

    assert order['salesId'] == 'u_an'
    assert order['customerId'] == 'c_1'
    assert order['companyName'] == 'Kem Hoa Sữa'
    assert order['date'] == '2024-05-02'
    assert order['finalAmount'] == 530000
    assert order['giftItems'] == []
    assert order['id'].isdigit()


def test_build_order_falls_back_to_entering_user(customer, user):
    customer['salesId'] = ''
    order = build_order(customer, user, [], [make_topping_item('Ốc quế', 'Hộp', 1, 80000)])
    assert order['salesId'] == 'u_mgr'


def test_build_order_requires_customer_and_items(customer, user):
    with pytest.raises(OrderError):
        build_order(None, user, [make_ice_cream_item('Pro', '80g', 'Dâu', 1)], [])
    with pytest.raises(OrderError):
        build_order(customer, user, [], [], discount_items=[make_discount_item('Pro', '80g', 'Dâu', 1)])


def test_document_totals_separate_value_from_payment(customer, user):
    order = build_order(
        customer, user,
        [make_ice_cream_item('Pro', '500ml', 'Vani', 10)],
        [make_topping_item('Sốt dâu', 'Chai', 2, 20000)],
        discount_items=[make_discount_item('Pro', '500ml', 'Vani', 2)],
        gift_items=[make_gift_item('Tủ đông mini', 'Cái', 1, 2500000)],
        shipping_cost=30000,
    )

    totals = document_totals(order)

    assert totals['ice_cream_total'] == 500000
    assert totals['ice_cream_quantity'] == 10
    assert totals['topping_total'] == 40000
    assert totals['promo_total'] == 2500000
    assert totals['shipping'] == 30000
    assert totals['grand_total_value'] == 3070000
    assert totals['grand_total_payment'] == 570000
