# ==============================================================================
# babyboss/storage.py
# ------------------------------------------------------------------------------
# Local store for users, customers and orders, plus the spreadsheet sync hooks.
# Every write replaces the whole collection locally, then pushes the single
# record that changed to the sheet.
# ==============================================================================

import logging
from babyboss import db, sheets
from babyboss.models import StoredCollection

# Local storage keys
KEY_CUSTOMERS = 'babyboss_customers'
KEY_ORDERS = 'babyboss_orders'
KEY_USERS = 'babyboss_users'

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Raised when a login attempt cannot be accepted."""


def _load(key):
    return StoredCollection.read(key) or []


def _dump(key, records):
    row = StoredCollection.query.filter_by(key=key).first()
    if row is None:
        row = StoredCollection(key=key)
        db.session.add(row)
    row.set_value(records)
    db.session.commit()


def _refresh(key, action):
    """Replaces a local collection with the sheet's copy when the sheet has data."""
    records = sheets.fetch(action)
    if records:
        _dump(key, records)
        return True
    return False


# --- User Management ---

def get_users():
    return _load(KEY_USERS)


def get_user(user_id):
    return next((u for u in get_users() if u.get('id') == user_id), None)


def refresh_users_from_cloud():
    return _refresh(KEY_USERS, 'get_users')


def authenticate(username, password):
    """
    Checks credentials against the locally cached users.
    The username comparison ignores case, the password must match exactly.

    Raises:
        AuthError: with the message to show on the login form.
    """
    users = get_users()
    if not users:
        raise AuthError('Hệ thống chưa có dữ liệu nhân viên. Vui lòng tải lại trang.')

    username = (username or '').lower()
    for user in users:
        if user.get('username') and str(user['username']).lower() == username \
                and str(user.get('password', '')) == password:
            return user
    raise AuthError('Sai tên đăng nhập hoặc mật khẩu')


def update_user_password(user_id, new_password):
    users = get_users()
    for user in users:
        if user.get('id') == user_id:
            user['password'] = new_password
            _dump(KEY_USERS, users)
            sheets.push('sync_users', user)
            return True
    return False


def get_staff_ids_by_branch(branch):
    return [u['id'] for u in get_users() if u.get('branch') == branch]


# --- Customer Management ---

def get_customers():
    return _load(KEY_CUSTOMERS)


def get_customer(customer_id):
    return next((c for c in get_customers() if c.get('id') == customer_id), None)


def refresh_customers_from_cloud():
    return _refresh(KEY_CUSTOMERS, 'get_customers')


def save_customer(customer):
    """Inserts or replaces a customer by id."""
    customers = get_customers()
    for index, existing in enumerate(customers):
        if existing.get('id') == customer['id']:
            customers[index] = customer
            break
    else:
        customers.append(customer)
    _dump(KEY_CUSTOMERS, customers)
    sheets.push('sync_customers', customer)
    logger.info(f"Customer {customer['id']} saved ({len(customers)} total)")


# --- Order Management ---

def get_orders():
    return _load(KEY_ORDERS)


def get_order(order_id):
    return next((o for o in get_orders() if o.get('id') == order_id), None)


def refresh_orders_from_cloud():
    return _refresh(KEY_ORDERS, 'get_orders')


def save_order(order):
    orders = get_orders()
    orders.append(order)
    _dump(KEY_ORDERS, orders)
    sheets.push('sync_orders', order)
    logger.info(f"Order {order['id']} saved for customer {order['customerId']}")


# --- Order Drafts ---
# Work-in-progress orders from the multi-step entry form. Kept per user,
# local only, never synced.

def _draft_key(user_id):
    return f'order_draft_{user_id}'


def get_draft(user_id):
    return StoredCollection.read(_draft_key(user_id))


def save_draft(user_id, draft):
    _dump(_draft_key(user_id), draft)


def clear_draft(user_id):
    StoredCollection.query.filter_by(key=_draft_key(user_id)).delete()
    db.session.commit()
