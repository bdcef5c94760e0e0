# ==============================================================================
# babyboss/calculator/reports.py
# ------------------------------------------------------------------------------
# Role-based visibility, time filters and the group-by aggregations behind the
# dashboard, the sales log, the summary report and the analysis page.
# ==============================================================================

import logging
from datetime import date, datetime, timedelta

import pandas as pd

from babyboss.calculator.engine import to_number
from babyboss.calculator.schema import LINES, SIZES

RANKING_LIMIT = 5
CHART_LIMIT = 10
UNKNOWN_STAFF = 'Không xác định'


# --- Helper Functions ---

def parse_date(value):
    """Reads the leading YYYY-MM-DD of an ISO date/datetime string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], '%Y-%m-%d').date()
    except (TypeError, ValueError):
        return None


def _users_by_id(users):
    return {u.get('id'): u for u in users}


def _purchased_quantity(order):
    return sum(to_number(i.get('quantity')) for i in order.get('iceCreamItems') or [])


def _stable_desc(df, column):
    # mergesort keeps first-encountered order among equal values
    return df.sort_values(column, ascending=False, kind='mergesort')


def province_of(address):
    """Address format is 'Specific, Ward, District, Province'; the province is the last part."""
    if not address:
        return None
    province = str(address).split(',')[-1].strip()
    return province or None


# --- Visibility ---

def _visible_sales_ids(viewer, users):
    """None means everything is visible."""
    if viewer['role'] == 'admin':
        return None
    if viewer['role'] == 'manager':
        ids = {u.get('id') for u in users if u.get('branch') == viewer.get('branch')}
        ids.add(viewer['id'])
        return ids
    return {viewer['id']}


def visible_orders(orders, viewer, users):
    """
    Staff see their own orders, managers see their branch's orders plus their
    own, admins see everything.
    """
    allowed = _visible_sales_ids(viewer, users)
    if allowed is None:
        return list(orders)
    return [o for o in orders if o.get('salesId') in allowed]


def visible_customers(customers, viewer, users):
    """Same scoping as orders, keyed on the customer's owning sales id."""
    allowed = _visible_sales_ids(viewer, users)
    if allowed is None:
        return list(customers)
    return [c for c in customers if c.get('salesId') in allowed]


def assignable_staff(viewer, users):
    """Staff a viewer may assign a customer to."""
    if viewer['role'] == 'admin':
        return [u for u in users if u.get('role') in ('staff', 'manager')]
    if viewer['role'] == 'manager':
        return [u for u in users if u.get('branch') == viewer.get('branch')
                and u.get('role') in ('staff', 'manager')]
    return []


def filterable_employees(viewer, users):
    """Employees offered in the report employee filter."""
    if viewer['role'] == 'admin':
        return list(users)
    if viewer['role'] == 'manager':
        return [u for u in users if u.get('branch') == viewer.get('branch')]
    return []


# --- Time Filters ---

def in_period(value, period, today=None):
    """
    'week' keeps the last 7 days including today (date > today - 7); 'month'
    and 'year' keep the calendar month/year of today.
    """
    today = today or date.today()
    d = parse_date(value)
    if d is None:
        return False
    if period == 'year':
        return d.year == today.year
    if period == 'month':
        return d.year == today.year and d.month == today.month
    if period == 'week':
        return d > today - timedelta(days=7)
    raise ValueError(f"Unknown period: {period}")


def in_month(value, month, year):
    d = parse_date(value)
    return d is not None and d.month == int(month) and d.year == int(year)


def filter_orders(orders, viewer, users, period='month', month=None, year=None,
                  branch=None, employee_id=None, today=None):
    """
    Applies visibility, then the time window, then the optional overrides.

    An explicit month + year replaces the relative period. The branch
    override is honoured for admins only and the employee override for
    admins and managers. Pass None or 'All' to skip an override.
    """
    by_id = _users_by_id(users)
    result = []
    for o in visible_orders(orders, viewer, users):
        if month and year:
            if not in_month(o.get('date'), month, year):
                continue
        elif not in_period(o.get('date'), period, today):
            continue

        if viewer['role'] == 'admin' and branch and branch != 'All':
            if (by_id.get(o.get('salesId')) or {}).get('branch') != branch:
                continue
        if viewer['role'] in ('admin', 'manager') and employee_id and employee_id != 'All':
            if o.get('salesId') != employee_id:
                continue
        result.append(o)
    return result


def newest_first(orders):
    return sorted(orders, key=lambda o: parse_date(o.get('date')) or date.min, reverse=True)


# --- Aggregations ---

def _orders_frame(orders, users=None, group_by_staff=False):
    columns = ['customerId', 'salesId', 'companyName', 'customerName', 'totalRevenue',
               'iceCreamQty', 'groupKey', 'label', 'subLabel']
    by_id = _users_by_id(users or [])
    rows = []
    for o in orders:
        if group_by_staff:
            staff = by_id.get(o.get('salesId')) or {}
            key, label, sub = o.get('salesId'), staff.get('fullName') or UNKNOWN_STAFF, staff.get('branch', '')
        else:
            key, label, sub = o.get('customerId'), o.get('companyName', ''), o.get('customerName', '')
        rows.append({
            'customerId': o.get('customerId'),
            'salesId': o.get('salesId'),
            'companyName': o.get('companyName', ''),
            'customerName': o.get('customerName', ''),
            'totalRevenue': float(to_number(o.get('totalRevenue'))),
            'iceCreamQty': float(_purchased_quantity(o)),
            'groupKey': key, 'label': label, 'subLabel': sub,
        })
    return pd.DataFrame(rows, columns=columns)


def top_customers(orders, limit=RANKING_LIMIT):
    """Customers ranked by revenue; ties keep the order they were first seen in."""
    df = _orders_frame(orders)
    if df.empty:
        return []
    grouped = df.groupby('customerId', sort=False).agg(
        name=('companyName', 'first'),
        salesId=('salesId', 'first'),
        totalOrders=('salesId', 'size'),
        totalRevenue=('totalRevenue', 'sum'),
    ).reset_index()
    return _stable_desc(grouped, 'totalRevenue').head(limit).to_dict('records')


def dashboard_summary(orders, viewer):
    """
    Totals for the dashboard. Revenue excludes shipping. The chart shows the
    ten most recent orders, oldest on the left. The ranking walks orders newest
    first, so on a revenue tie the more recent customer comes first. Staff get
    no ranking.
    """
    ordered = newest_first(orders)
    chart = [{
        'name': (o.get('companyName') or '')[:10] + '...',
        'fullName': o.get('companyName', ''),
        'value': to_number(o.get('totalRevenue')),
    } for o in ordered[:CHART_LIMIT]]
    chart.reverse()

    return {
        'total_revenue': sum(to_number(o.get('totalRevenue')) for o in orders),
        'total_orders': len(orders),
        'chart': chart,
        'ranking': [] if viewer['role'] == 'staff' else top_customers(ordered),
    }


def summary_report(orders, viewer, users):
    """
    Revenue summary rows. Admins and managers get one row per employee,
    staff one row per customer. Quantity counts purchased ice cream only.
    """
    group_by_staff = viewer['role'] in ('admin', 'manager')
    df = _orders_frame(orders, users, group_by_staff=group_by_staff)
    if df.empty:
        return []
    grouped = df.groupby('groupKey', sort=False).agg(
        name=('label', 'first'),
        sub=('subLabel', 'first'),
        revenue=('totalRevenue', 'sum'),
        orders=('label', 'size'),
        qty=('iceCreamQty', 'sum'),
    ).reset_index().rename(columns={'groupKey': 'key'})
    rows = _stable_desc(grouped, 'revenue').to_dict('records')
    logging.info(f"Summary report for {viewer.get('username')}: {len(rows)} rows from {len(orders)} orders")
    return rows


def _top_quantities(pairs, limit=RANKING_LIMIT):
    df = pd.DataFrame(pairs, columns=['name', 'value'])
    if df.empty:
        return []
    grouped = _stable_desc(df.groupby('name', sort=False)['value'].sum().reset_index(), 'value')
    if limit is not None:
        grouped = grouped.head(limit)
    return grouped.to_dict('records')


def province_breakdown(customers):
    """Customer count per province, most customers first."""
    provinces = [province_of(c.get('address')) for c in customers]
    return _top_quantities([(p, 1) for p in provinces if p], limit=None)


def analysis_report(orders, customers, viewer, users, period='month', branch=None, today=None):
    """
    Behaviour and market analysis: top flavours and toppings by quantity in
    the period, and for admins the customer spread across provinces.
    """
    filtered = filter_orders(orders, viewer, users, period=period, branch=branch, today=today)

    flavours = [(i.get('flavor'), to_number(i.get('quantity')))
                for o in filtered for i in o.get('iceCreamItems') or []]
    toppings = [(t.get('name'), to_number(t.get('quantity')))
                for o in filtered for t in o.get('toppingItems') or []]

    locations, total_agents = [], 0
    if viewer['role'] == 'admin':
        total_agents = len(customers)
        locations = province_breakdown(customers)

    return {
        'top_flavors': _top_quantities(flavours),
        'top_toppings': _top_quantities(toppings),
        'locations': locations,
        'total_provinces': len(locations),
        'total_agents': total_agents,
    }


# --- Customers ---

def customer_history(customer_id, orders):
    """The customer's orders, newest first."""
    return newest_first([o for o in orders if o.get('customerId') == customer_id])


def enrich_customers(customers, orders):
    """
    Adds the derived purchase aggregates to copies of the customer records.
    Box counts only include purchased ice cream, not discounts or gifts.
    """
    by_customer = {}
    for o in orders:
        by_customer.setdefault(o.get('customerId'), []).append(o)

    enriched = []
    for customer in customers:
        history = sorted(by_customer.get(customer.get('id'), []),
                         key=lambda o: parse_date(o.get('date')) or date.min)
        enriched.append({
            **customer,
            'totalOrders': len(history),
            'totalIceCreamRevenue': sum(to_number(o.get('totalIceCreamRevenue')) for o in history),
            'totalToppingRevenue': sum(to_number(o.get('totalToppingRevenue')) for o in history),
            'totalBoxes': sum(_purchased_quantity(o) for o in history),
            'firstPurchaseDate': history[0].get('date') if history else None,
            'lastPurchaseDate': history[-1].get('date') if history else None,
        })
    return enriched


def filter_customers(customers, first_month=None, last_month=None, province=None):
    """
    Filters enriched customers by first/last purchase month ('YYYY-MM') and
    by province name appearing in the address.
    """
    result = []
    for c in customers:
        if first_month and (not c.get('firstPurchaseDate') or str(c['firstPurchaseDate'])[:7] != first_month):
            continue
        if last_month and (not c.get('lastPurchaseDate') or str(c['lastPurchaseDate'])[:7] != last_month):
            continue
        if province and province.lower() not in str(c.get('address') or '').lower():
            continue
        result.append(c)
    return result


def customer_product_mix(history):
    """Purchased boxes per product line and size."""
    stats = {line: {size: 0 for size in SIZES} for line in LINES}
    for order in history:
        for item in order.get('iceCreamItems') or []:
            if item.get('line') in stats and item.get('size') in stats[item['line']]:
                stats[item['line']][item['size']] += to_number(item.get('quantity'))
    return stats
