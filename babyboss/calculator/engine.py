# ==============================================================================
# babyboss/calculator/engine.py
# ------------------------------------------------------------------------------
# Order line items and the derived order totals.
# ==============================================================================

import time
import uuid
import logging
from babyboss.calculator.schema import ICE_CREAM_PRICES, LINES, SIZES, DEPOSIT_RATE


class OrderError(ValueError):
    """Raised when a line item or an order cannot be built from the input."""


# --- Helper Functions ---

def new_record_id():
    """Millisecond timestamp, the id format already used by the spreadsheet."""
    return str(int(time.time() * 1000))


def _item_id(prefix=''):
    return f"{prefix}{uuid.uuid4().hex[:12]}"


def to_number(value):
    """Coerces form/sheet input to a number; blanks and junk count as 0."""
    if value is None or value == '':
        return 0
    try:
        number = float(str(value).replace(',', ''))
    except (TypeError, ValueError):
        return 0
    if number != number:  # NaN
        return 0
    return int(number) if number.is_integer() else number


def _check_quantity(quantity):
    quantity = to_number(quantity)
    if quantity < 1 or not float(quantity).is_integer():
        raise OrderError('Số lượng phải là số nguyên lớn hơn 0.')
    return int(quantity)


def _check_price(price):
    price = to_number(price)
    if price < 0:
        raise OrderError('Đơn giá không được âm.')
    return price


def _check_product(line, size):
    if line not in LINES:
        raise OrderError(f"Dòng sản phẩm không hợp lệ: {line}")
    if size not in SIZES:
        raise OrderError(f"Quy cách không hợp lệ: {size}")


# --- Line Items ---

def make_ice_cream_item(line, size, flavor, quantity):
    """A purchased ice-cream item priced from the catalogue."""
    _check_product(line, size)
    quantity = _check_quantity(quantity)
    price = ICE_CREAM_PRICES[line][size]
    return {
        'id': _item_id(),
        'line': line, 'size': size, 'flavor': flavor, 'quantity': quantity,
        'pricePerUnit': price, 'total': price * quantity
    }


def make_topping_item(name, unit, quantity, price):
    """A purchased topping or tool with a free-form unit price."""
    if not name or not unit:
        raise OrderError('Vui lòng nhập tên và đơn vị tính.')
    quantity = _check_quantity(quantity)
    price = _check_price(price)
    return {
        'id': _item_id(),
        'name': name, 'unit': unit, 'quantity': quantity,
        'pricePerUnit': price, 'total': price * quantity
    }


def make_discount_item(line, size, flavor, quantity):
    """Free boxes given as a discount. Always priced at zero."""
    _check_product(line, size)
    quantity = _check_quantity(quantity)
    return {
        'id': _item_id('disc_'),
        'line': line, 'size': size, 'flavor': flavor, 'quantity': quantity,
        'pricePerUnit': 0, 'total': 0
    }


def make_gift_item(name, unit, quantity, price):
    """
    A first-order gift. Keeps its real price and total for display on the
    order document; it never counts towards the payable amount.
    """
    if not name or not unit:
        raise OrderError('Vui lòng nhập tên và đơn vị tính của quà tặng.')
    quantity = _check_quantity(quantity)
    price = _check_price(price)
    return {
        'id': _item_id('gift_'),
        'name': name, 'unit': unit, 'quantity': quantity,
        'pricePerUnit': price, 'total': price * quantity
    }


# --- Totals ---

def calculate_order_totals(ice_cream_items, topping_items, discount_items=(), gift_items=(), shipping_cost=0):
    """
    Derives the order totals from its line items.

    Revenue only counts purchased ice cream and toppings. Discount and gift
    items are priced at zero here regardless of any display price they carry.
    The final amount adds shipping, and the deposit is half the final amount.

    Returns:
        dict: The derived fields, keyed as they are stored on the order.
    """
    ice_cream_revenue = sum(to_number(i.get('total')) for i in ice_cream_items)
    topping_revenue = sum(to_number(i.get('total')) for i in topping_items)
    revenue = ice_cream_revenue + topping_revenue

    shipping = to_number(shipping_cost)
    final_amount = revenue + shipping
    deposit = final_amount * DEPOSIT_RATE

    total_quantity = sum(to_number(i.get('quantity')) for i in ice_cream_items) + \
        sum(to_number(i.get('quantity')) for i in discount_items)

    logging.debug(f"Order totals: ice cream={ice_cream_revenue:,.0f}, topping={topping_revenue:,.0f}, "
                  f"shipping={shipping:,.0f}, final={final_amount:,.0f}, gifts ignored={len(gift_items)}")

    return {
        'totalIceCreamRevenue': ice_cream_revenue,
        'totalToppingRevenue': topping_revenue,
        'totalRevenue': revenue,
        'totalQuantity': total_quantity,
        'shippingCost': shipping,
        'finalAmount': final_amount,
        'depositAmount': deposit,
    }


def is_first_order(customer_id, orders):
    """True when no order exists yet for this customer (gift entry is unlocked)."""
    return not any(o.get('customerId') == customer_id for o in orders)


def build_order(customer, user, ice_cream_items, topping_items, discount_items=(), gift_items=(),
                order_date=None, has_invoice=False, shipping_cost=0, order_id=None):
    """
    Assembles the order record that gets persisted and synced.

    Sales credit goes to the staff member who owns the customer, falling back
    to the user entering the order.
    """
    if customer is None:
        raise OrderError('Vui lòng chọn khách hàng.')
    if not ice_cream_items and not topping_items:
        raise OrderError('Đơn hàng chưa có sản phẩm nào.')

    order = {
        'id': order_id or new_record_id(),
        'salesId': customer.get('salesId') or user['id'],
        'customerId': customer['id'],
        'customerName': customer.get('name', ''),
        'companyName': customer.get('companyName', ''),
        'date': order_date,
        'hasInvoice': bool(has_invoice),
        'iceCreamItems': list(ice_cream_items),
        'toppingItems': list(topping_items),
        'discountItems': list(discount_items),
        'giftItems': list(gift_items),
    }
    order.update(calculate_order_totals(ice_cream_items, topping_items, discount_items,
                                        gift_items, shipping_cost))
    logging.info(f"Built order {order['id']} for '{order['companyName']}': final amount {order['finalAmount']:,.0f}")
    return order


def document_totals(order):
    """
    Figures printed in the totals block of the order document.

    Section III is the display value of discounts and gifts. It appears in the
    grand total value (I + II + III + IV) but not in the payable total
    (I + II + IV).
    """
    ice_cream_total = to_number(order.get('totalIceCreamRevenue'))
    topping_total = to_number(order.get('totalToppingRevenue'))
    discount_total = sum(to_number(i.get('total')) for i in order.get('discountItems') or [])
    gift_total = sum(to_number(i.get('total')) for i in order.get('giftItems') or [])
    promo_total = discount_total + gift_total
    shipping = to_number(order.get('shippingCost'))

    return {
        'ice_cream_total': ice_cream_total,
        'ice_cream_quantity': sum(to_number(i.get('quantity')) for i in order.get('iceCreamItems') or []),
        'topping_total': topping_total,
        'promo_total': promo_total,
        'shipping': shipping,
        'grand_total_value': ice_cream_total + topping_total + promo_total + shipping,
        'grand_total_payment': to_number(order.get('finalAmount')) or (ice_cream_total + topping_total + shipping),
    }
