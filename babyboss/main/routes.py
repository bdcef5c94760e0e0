# ==============================================================================
# babyboss/main/routes.py
# ------------------------------------------------------------------------------
# Defines all user-facing routes for the main application blueprint.
# This file acts as the main controller for the web interface.
# ==============================================================================

from datetime import date
from functools import wraps
from flask import (render_template, request, flash, redirect, url_for, abort,
                   current_app, session, Response, g)

from babyboss import storage
from babyboss.main import bp
from babyboss.calculator.engine import (OrderError, build_order, is_first_order, make_ice_cream_item,
                                        make_topping_item, make_discount_item, make_gift_item)
from babyboss.calculator.validator import validate_customer, validate_password_change
from babyboss.calculator import reports
from babyboss.main.forms import (LoginForm, ChangePasswordForm, CustomerForm, CustomerFilterForm,
                                 OrderDetailsForm, IceCreamItemForm, ToppingItemForm, DiscountItemForm,
                                 GiftItemForm, ShippingForm, ReportFilterForm)
from babyboss.main.utils import render_order_document, html_to_pdf, pdf_filename, draft_as_order

ITEM_KINDS = {
    'ice-cream': 'iceCreamItems',
    'topping': 'toppingItems',
    'discount': 'discountItems',
    'gift': 'giftItems',
}


# --- Helper Functions ---

def login_required(f):
    """Decorator that loads the session user into g.user or redirects to login."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = session.get('user_id')
        user = storage.get_user(user_id) if user_id else None
        if user is None:
            session.pop('user_id', None)
            flash('Vui lòng đăng nhập để tiếp tục.', 'warning')
            return redirect(url_for('main.login'))
        g.user = user
        return f(*args, **kwargs)
    return decorated_function


def roles_required(*roles):
    """Restricts a login-protected view to the given roles."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if g.user.get('role') not in roles:
                flash('Bạn không có quyền truy cập trang này.', 'danger')
                return redirect(url_for('main.dashboard'))
            return f(*args, **kwargs)
        return decorated_function
    return decorator


def _report_filters(with_month=False):
    """Reads the shared report filters from the query string."""
    form = ReportFilterForm(request.args)
    employees = reports.filterable_employees(g.user, storage.get_users())
    form.employee.choices = [('All', 'Tất cả nhân viên')] + [(u['id'], u.get('fullName', u['id'])) for u in employees]
    if not form.validate():
        flash('Bộ lọc không hợp lệ, đang hiển thị mặc định.', 'warning')

    today = date.today()
    filters = {
        'period': form.period.data if form.period.data in ('week', 'month', 'year') else 'month',
        'branch': form.branch.data if form.branch.data and not form.branch.errors else 'All',
        'employee_id': form.employee.data or 'All',
    }
    if with_month:
        filters['month'] = form.month.data if not form.month.errors and form.month.data else today.month
        filters['year'] = form.year.data if not form.year.errors and form.year.data else today.year
        form.month.data, form.year.data = filters['month'], filters['year']
    return form, filters


def _visible_customer_or_404(customer_id):
    customer = storage.get_customer(customer_id)
    if customer is None or not reports.visible_customers([customer], g.user, storage.get_users()):
        abort(404)
    return customer


def _visible_order_or_404(order_id):
    order = storage.get_order(order_id)
    if order is None or not reports.visible_orders([order], g.user, storage.get_users()):
        abort(404)
    return order


def _pdf_response(pdf_bytes, filename):
    return Response(pdf_bytes, mimetype='application/pdf',
                    headers={'Content-Disposition': f'attachment; filename="{filename}"'})


# --- Authentication Routes ---

@bp.route('/login', methods=['GET', 'POST'])
def login():
    """Checks credentials against the cached employee list."""
    if not storage.get_users():
        # First visit on this server: try to pull employees from the sheet
        storage.refresh_users_from_cloud()

    form = LoginForm()
    if form.validate_on_submit():
        try:
            user = storage.authenticate(form.username.data, form.password.data)
        except storage.AuthError as e:
            flash(str(e), 'danger')
        else:
            session.clear()
            session['user_id'] = user['id']
            current_app.logger.info(f"User '{user['username']}' ({user['role']}) logged in")
            return redirect(url_for('main.dashboard'))
    return render_template('login.html', form=form, has_users=bool(storage.get_users()))


@bp.route('/logout')
def logout():
    session.clear()
    flash('Bạn đã đăng xuất.', 'info')
    return redirect(url_for('main.login'))


@bp.route('/account/password', methods=['GET', 'POST'])
@login_required
def change_password():
    form = ChangePasswordForm()
    if form.validate_on_submit():
        errors = validate_password_change(g.user, form.current_password.data,
                                          form.new_password.data, form.confirm_password.data)
        if errors:
            for error in errors:
                flash(error, 'danger')
        elif storage.update_user_password(g.user['id'], form.new_password.data):
            flash('Đổi mật khẩu thành công! Dữ liệu đã được đồng bộ.', 'success')
            return redirect(url_for('main.dashboard'))
        else:
            flash('Có lỗi xảy ra khi cập nhật.', 'danger')
    return render_template('change_password.html', form=form)


@bp.route('/sync', methods=['POST'])
@login_required
def sync():
    """Manual reload of all collections from the spreadsheet."""
    from babyboss.seed import seed_data
    loaded = seed_data()
    if any(loaded.values()):
        flash('Đã tải lại dữ liệu từ Google Sheet.', 'success')
    else:
        flash('Không tải được dữ liệu mới từ Google Sheet, đang dùng dữ liệu cục bộ.', 'warning')
    return redirect(request.referrer or url_for('main.dashboard'))


# --- Dashboard & Reports ---

@bp.route('/')
@login_required
def dashboard():
    """Revenue overview, last orders chart and top-5 customer ranking."""
    storage.refresh_orders_from_cloud()
    form, filters = _report_filters()
    users = storage.get_users()
    orders = reports.filter_orders(storage.get_orders(), g.user, users, **filters)
    summary = reports.dashboard_summary(orders, g.user)
    staff_names = {u.get('id'): u.get('fullName') for u in users}
    return render_template('dashboard.html', form=form, summary=summary, staff_names=staff_names)


@bp.route('/orders')
@login_required
def sales_log():
    """All visible orders in the selected window, newest first."""
    storage.refresh_orders_from_cloud()
    form, filters = _report_filters()
    users = storage.get_users()
    orders = reports.newest_first(reports.filter_orders(storage.get_orders(), g.user, users, **filters))
    staff_names = {u.get('id'): u.get('fullName') for u in users}
    return render_template('orders.html', form=form, orders=orders, staff_names=staff_names)


@bp.route('/orders/<order_id>')
@login_required
def order_detail(order_id):
    order = _visible_order_or_404(order_id)
    sales_user = storage.get_user(order.get('salesId'))
    return render_template('order_detail.html', order=order, sales_user=sales_user)


@bp.route('/orders/<order_id>/pdf')
@login_required
def order_pdf(order_id):
    order = _visible_order_or_404(order_id)
    customer = storage.get_customer(order.get('customerId'))
    sales_user = storage.get_user(order.get('salesId'))
    try:
        html = render_order_document(order, customer, sales_user, g.user)
        pdf = html_to_pdf(html)
    except OSError as e:
        current_app.logger.error(f"PDF generation failed for order {order_id}: {e}", exc_info=True)
        flash('Lỗi xuất file PDF. Vui lòng thử lại.', 'danger')
        return redirect(url_for('main.order_detail', order_id=order_id))
    return _pdf_response(pdf, pdf_filename(order.get('companyName'), order.get('date')))


@bp.route('/reports/summary')
@login_required
def summary_report():
    """Monthly revenue summary, per employee for managers/admins, per customer for staff."""
    storage.refresh_orders_from_cloud()
    form, filters = _report_filters(with_month=True)
    users = storage.get_users()
    orders = reports.filter_orders(storage.get_orders(), g.user, users, **filters)
    rows = reports.summary_report(orders, g.user, users)
    return render_template('summary.html', form=form, rows=rows, filters=filters,
                           total_revenue=sum(r['revenue'] for r in rows),
                           total_orders=sum(r['orders'] for r in rows))


@bp.route('/analysis')
@login_required
@roles_required('admin', 'manager')
def analysis():
    """Flavour/topping preferences and customer geography."""
    form, filters = _report_filters()
    data = reports.analysis_report(storage.get_orders(), storage.get_customers(), g.user,
                                   storage.get_users(), period=filters['period'], branch=filters['branch'])
    return render_template('analysis.html', form=form, data=data)


# --- Customer Routes ---

@bp.route('/customers')
@login_required
def customers():
    users = storage.get_users()
    visible = reports.visible_customers(storage.get_customers(), g.user, users)
    enriched = reports.enrich_customers(visible, storage.get_orders())

    filter_form = CustomerFilterForm(request.args)
    enriched = reports.filter_customers(
        enriched,
        first_month=(filter_form.first_month.data or '').strip() or None,
        last_month=(filter_form.last_month.data or '').strip() or None,
        province=(filter_form.province.data or '').strip() or None,
    )
    staff_names = {u.get('id'): u.get('fullName') for u in users}
    return render_template('customers.html', customers=enriched, filter_form=filter_form,
                           staff_names=staff_names)


def _customer_form(customer=None):
    form = CustomerForm()
    staff = reports.assignable_staff(g.user, storage.get_users())
    form.sales_id.choices = [('', '-- Tôi phụ trách --')] + [(u['id'], u.get('fullName', u['id'])) for u in staff]
    if customer and request.method == 'GET':
        form.name.data = customer.get('name')
        form.company_name.data = customer.get('companyName')
        form.position.data = customer.get('position')
        form.phone.data = customer.get('phone')
        form.email.data = customer.get('email')
        form.rep_name.data = customer.get('repName')
        form.rep_phone.data = customer.get('repPhone')
        form.rep_position.data = customer.get('repPosition')
        form.notes.data = customer.get('notes')
        form.sales_id.data = customer.get('salesId')
    return form


def _save_customer_from_form(form, existing=None):
    data = form.to_record_fields()
    if not form.sales_id.choices[1:]:
        # Staff cannot reassign customers
        data['salesId'] = None
    customer, errors = validate_customer(data, existing=existing, current_user=g.user)
    if errors:
        for error in errors:
            flash(error, 'danger')
        return None
    storage.save_customer(customer)
    return customer


@bp.route('/customers/new', methods=['GET', 'POST'])
@login_required
def add_customer():
    form = _customer_form()
    if form.validate_on_submit():
        customer = _save_customer_from_form(form)
        if customer:
            flash(f'Đã thêm khách hàng "{customer["companyName"]}".', 'success')
            return redirect(url_for('main.customers'))
    return render_template('customer_form.html', form=form, title='Thêm khách hàng mới', customer=None)


@bp.route('/customers/<customer_id>/edit', methods=['GET', 'POST'])
@login_required
def edit_customer(customer_id):
    existing = _visible_customer_or_404(customer_id)
    form = _customer_form(existing)
    if form.validate_on_submit():
        customer = _save_customer_from_form(form, existing=existing)
        if customer:
            flash('Đã cập nhật thông tin khách hàng.', 'success')
            return redirect(url_for('main.customer_detail', customer_id=customer_id))
    return render_template('customer_form.html', form=form, customer=existing,
                           title=f'Sửa khách hàng: {existing.get("companyName", "")}')


@bp.route('/customers/<customer_id>')
@login_required
def customer_detail(customer_id):
    customer = _visible_customer_or_404(customer_id)
    orders = storage.get_orders()
    history = reports.customer_history(customer_id, orders)
    enriched = reports.enrich_customers([customer], orders)[0]
    sales_user = storage.get_user(customer.get('salesId'))
    return render_template('customer_detail.html', customer=enriched, history=history,
                           product_mix=reports.customer_product_mix(history) if history else None,
                           sales_user=sales_user)


# --- Order Entry (multi-step) ---

def _current_draft():
    draft = storage.get_draft(g.user['id'])
    if not draft or not draft.get('customerId'):
        return None
    return draft


@bp.route('/orders/new', methods=['GET', 'POST'])
@login_required
def new_order():
    """Step 1: pick the customer, date and invoice flag."""
    users = storage.get_users()
    available = reports.visible_customers(storage.get_customers(), g.user, users)
    form = OrderDetailsForm()
    form.customer_id.choices = [(c['id'], f"{c.get('companyName', '')} - {c.get('name', '')}") for c in available]

    draft = storage.get_draft(g.user['id']) or {}
    if request.method == 'GET' and draft.get('customerId'):
        form.customer_id.data = draft['customerId']
        form.order_date.data = reports.parse_date(draft.get('date')) or date.today()
        form.has_invoice.data = draft.get('hasInvoice', False)

    if form.validate_on_submit():
        first_order = is_first_order(form.customer_id.data, storage.get_orders())
        draft.update({
            'customerId': form.customer_id.data,
            'date': form.order_date.data.isoformat(),
            'hasInvoice': bool(form.has_invoice.data),
            'isFirstOrder': first_order,
        })
        for key in ITEM_KINDS.values():
            draft.setdefault(key, [])
        draft.setdefault('shippingCost', 0)
        if not first_order:
            # Gifts are only offered on a customer's first order
            draft['giftItems'] = []
        storage.save_draft(g.user['id'], draft)
        return redirect(url_for('main.order_items'))

    return render_template('order_details.html', form=form, has_customers=bool(available))


@bp.route('/orders/new/items', methods=['GET', 'POST'])
@login_required
def order_items():
    """Step 2: purchased items, discounts, first-order gifts and shipping."""
    draft = _current_draft()
    if draft is None:
        return redirect(url_for('main.new_order'))

    ice_form = IceCreamItemForm(prefix='ic')
    topping_form = ToppingItemForm(prefix='tp')
    discount_form = DiscountItemForm(prefix='dc')
    gift_form = GiftItemForm(prefix='gf')
    shipping_form = ShippingForm(prefix='sh')

    if request.method == 'POST':
        try:
            if ice_form.submit.data and ice_form.validate():
                draft['iceCreamItems'].append(make_ice_cream_item(
                    ice_form.line.data, ice_form.size.data, ice_form.flavor.data, ice_form.quantity.data))
            elif topping_form.submit.data and topping_form.validate():
                draft['toppingItems'].append(make_topping_item(
                    topping_form.name.data, topping_form.unit.data, topping_form.quantity.data, topping_form.price.data))
            elif discount_form.submit.data and discount_form.validate():
                draft['discountItems'].append(make_discount_item(
                    discount_form.line.data, discount_form.size.data, discount_form.flavor.data,
                    discount_form.quantity.data))
            elif gift_form.submit.data and gift_form.validate():
                if not draft.get('isFirstOrder'):
                    raise OrderError('Quà tặng chỉ áp dụng cho đơn hàng đầu tiên của khách hàng.')
                draft['giftItems'].append(make_gift_item(
                    gift_form.name.data, gift_form.unit.data, gift_form.quantity.data, gift_form.price.data))
            elif shipping_form.submit.data and shipping_form.validate():
                draft['shippingCost'] = shipping_form.shipping_cost.data or 0
            else:
                flash('Thông tin sản phẩm không hợp lệ.', 'danger')
                return redirect(url_for('main.order_items'))
        except OrderError as e:
            flash(str(e), 'danger')
        else:
            storage.save_draft(g.user['id'], draft)
        return redirect(url_for('main.order_items'))

    shipping_form.shipping_cost.data = draft.get('shippingCost', 0)
    customer = storage.get_customer(draft['customerId'])
    order = draft_as_order(draft, customer, g.user)
    return render_template('order_items.html', draft=draft, order=order, customer=customer,
                           ice_form=ice_form, topping_form=topping_form, discount_form=discount_form,
                           gift_form=gift_form, shipping_form=shipping_form)


@bp.route('/orders/new/items/<kind>/<item_id>/delete', methods=['POST'])
@login_required
def remove_order_item(kind, item_id):
    draft = _current_draft()
    if draft is None or kind not in ITEM_KINDS:
        abort(404)
    key = ITEM_KINDS[kind]
    draft[key] = [i for i in draft.get(key, []) if i.get('id') != item_id]
    storage.save_draft(g.user['id'], draft)
    return redirect(url_for('main.order_items'))


@bp.route('/orders/new/review')
@login_required
def review_order():
    """Step 3: totals, deposit and the final check before saving."""
    draft = _current_draft()
    if draft is None:
        return redirect(url_for('main.new_order'))
    customer = storage.get_customer(draft['customerId'])
    order = draft_as_order(draft, customer, g.user)
    sales_user = storage.get_user(order['salesId'])
    return render_template('order_review.html', order=order, customer=customer, sales_user=sales_user)


@bp.route('/orders/new/pdf')
@login_required
def draft_pdf():
    """Quote document for the order being entered, before it is saved."""
    draft = _current_draft()
    if draft is None:
        return redirect(url_for('main.new_order'))
    customer = storage.get_customer(draft['customerId'])
    order = draft_as_order(draft, customer, g.user)
    sales_user = storage.get_user(order['salesId']) or g.user
    try:
        pdf = html_to_pdf(render_order_document(order, customer, sales_user, g.user))
    except OSError as e:
        current_app.logger.error(f"PDF generation failed for draft of {g.user['id']}: {e}", exc_info=True)
        flash('Lỗi xuất file PDF. Vui lòng thử lại.', 'danger')
        return redirect(url_for('main.review_order'))
    return _pdf_response(pdf, pdf_filename(order.get('companyName'), order.get('date')))


@bp.route('/orders/new/submit', methods=['POST'])
@login_required
def submit_order():
    draft = _current_draft()
    if draft is None:
        return redirect(url_for('main.new_order'))
    customer = _visible_customer_or_404(draft['customerId'])
    try:
        order = build_order(
            customer, g.user,
            draft.get('iceCreamItems', []), draft.get('toppingItems', []),
            draft.get('discountItems', []),
            draft.get('giftItems', []) if draft.get('isFirstOrder') else [],
            order_date=draft.get('date'), has_invoice=draft.get('hasInvoice'),
            shipping_cost=draft.get('shippingCost', 0)
        )
    except OrderError as e:
        flash(str(e), 'danger')
        return redirect(url_for('main.order_items'))

    storage.save_order(order)
    storage.clear_draft(g.user['id'])
    flash('Đơn hàng đã được lưu!', 'success')
    return redirect(url_for('main.sales_log'))


@bp.route('/orders/new/cancel', methods=['POST'])
@login_required
def cancel_order():
    storage.clear_draft(g.user['id'])
    flash('Đã huỷ đơn hàng đang nhập.', 'info')
    return redirect(url_for('main.dashboard'))
