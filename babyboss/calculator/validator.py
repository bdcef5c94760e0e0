# ==============================================================================
# babyboss/calculator/validator.py
# ------------------------------------------------------------------------------
# Validation of customer records and password changes before they are saved.
# ==============================================================================

from datetime import date
from babyboss.calculator.engine import new_record_id

MIN_PASSWORD_LENGTH = 3

CUSTOMER_TEXT_FIELDS = ('name', 'companyName', 'position', 'phone', 'email',
                        'repName', 'repPhone', 'repPosition', 'notes')


def compose_address(specific, ward, district, province):
    """Joins the address parts as 'Specific, Ward, District, Province', or
    returns None if any part is missing."""
    parts = [str(p or '').strip() for p in (specific, ward, district, province)]
    if not all(parts):
        return None
    return ', '.join(parts)


def validate_customer(data, existing=None, current_user=None):
    """
    Validates submitted customer fields and builds the record to save.

    Args:
        data (dict): Submitted fields, including the address parts
            'specificAddress', 'ward', 'district' and 'province'.
        existing (dict): The stored customer when editing, else None.
        current_user (dict): The user submitting the form.

    Returns:
        tuple: A tuple containing:
            - dict: The customer record if validation is successful, else None.
            - list: A list of human-readable error messages.
    """
    errors = []
    existing = existing or {}

    address = compose_address(data.get('specificAddress'), data.get('ward'),
                              data.get('district'), data.get('province'))
    if address is None:
        if existing.get('address'):
            # Editing without re-entering the address keeps the stored one
            address = existing['address']
        else:
            errors.append('Vui lòng điền đầy đủ thông tin địa chỉ (Số nhà, Phường/Xã, Quận/Huyện, Tỉnh/Thành).')

    fields = {k: str(data.get(k) or '').strip() for k in CUSTOMER_TEXT_FIELDS}
    if not fields['name'] or not fields['companyName'] or not fields['phone']:
        errors.append('Vui lòng điền các thông tin bắt buộc (Tên, Công ty, SĐT).')

    if errors:
        return None, errors

    sales_id = data.get('salesId') or existing.get('salesId') or (current_user or {}).get('id', '')
    customer = {
        'id': existing.get('id') or new_record_id(),
        'salesId': sales_id,
        'createdDate': existing.get('createdDate') or date.today().isoformat(),
        **fields,
        'address': address,
    }
    return customer, []


def validate_password_change(user, current_password, new_password, confirm_password):
    """Returns the list of reasons the password change is rejected (empty if accepted)."""
    if current_password != str(user.get('password', '')):
        return ['Mật khẩu hiện tại không đúng.']
    if len(new_password or '') < MIN_PASSWORD_LENGTH:
        return ['Mật khẩu mới quá ngắn.']
    if new_password != confirm_password:
        return ['Mật khẩu xác nhận không khớp.']
    if new_password == current_password:
        return ['Mật khẩu mới không được trùng với mật khẩu cũ.']
    return []
