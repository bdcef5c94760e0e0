# ==============================================================================
# babyboss/main/utils.py
# ------------------------------------------------------------------------------
# Order document (PDF) rendering and small helpers shared by the views.
# ==============================================================================
import unicodedata

import pdfkit
from flask import current_app, render_template

from babyboss.calculator.engine import document_totals, calculate_order_totals
from babyboss.calculator.schema import ICE_CREAM_UNIT

PDF_OPTIONS = {
    'page-size': 'A4',
    'encoding': 'UTF-8',
    'margin-top': '12mm',
    'margin-bottom': '12mm',
    'margin-left': '10mm',
    'margin-right': '10mm',
}


def remove_vietnamese_tones(text):
    """Strips Vietnamese diacritics, e.g. 'Đơn hàng' -> 'Don hang'."""
    text = str(text or '').replace('đ', 'd').replace('Đ', 'D')
    normalized = unicodedata.normalize('NFD', text)
    return ''.join(ch for ch in normalized if unicodedata.category(ch) != 'Mn')


def pdf_filename(company_name, order_date):
    return f"Order_{remove_vietnamese_tones(company_name)}_{order_date}.pdf"


def draft_as_order(draft, customer, user):
    """Shapes an unsaved draft like a stored order so the same document and
    review templates can render it."""
    order = {
        'id': None,
        'salesId': (customer or {}).get('salesId') or user['id'],
        'customerId': draft.get('customerId'),
        'customerName': (customer or {}).get('name', ''),
        'companyName': (customer or {}).get('companyName', ''),
        'date': draft.get('date'),
        'hasInvoice': draft.get('hasInvoice', False),
        'iceCreamItems': draft.get('iceCreamItems', []),
        'toppingItems': draft.get('toppingItems', []),
        'discountItems': draft.get('discountItems', []),
        'giftItems': draft.get('giftItems', []),
    }
    order.update(calculate_order_totals(order['iceCreamItems'], order['toppingItems'],
                                        order['discountItems'], order['giftItems'],
                                        draft.get('shippingCost', 0)))
    return order


def render_order_document(order, customer, sales_user, author):
    """
    Renders the order document HTML: company header, line-item sections
    I-III, the totals block, payment terms and signatures.

    Args:
        order (dict): A stored order or a draft shaped by draft_as_order.
        customer (dict): The customer record, or None if it was removed.
        sales_user (dict): The staff member credited with the sale.
        author (dict): The user producing the document.
    """
    config = current_app.config
    promo_rows = [
        {'name': f"[CK] Kem {i.get('flavor', '')}", 'line': i.get('line', '-'), 'size': i.get('size', '-'),
         'quantity': i.get('quantity', 0), 'unit': ICE_CREAM_UNIT, 'price': 0, 'total': 0}
        for i in order.get('discountItems') or []
    ] + [
        {'name': f"[Quà] {g.get('name', '')}", 'line': '-', 'size': '-',
         'quantity': g.get('quantity', 0), 'unit': g.get('unit', ''),
         'price': g.get('pricePerUnit', 0), 'total': g.get('total', 0)}
        for g in order.get('giftItems') or []
    ]
    return render_template(
        'order_document.html',
        order=order,
        customer=customer or {},
        sales_user=sales_user or {},
        author=author,
        promo_rows=promo_rows,
        totals=document_totals(order),
        ice_cream_unit=ICE_CREAM_UNIT,
        company={
            'name': config['COMPANY_NAME'], 'tax_code': config['COMPANY_TAX_CODE'],
            'address': config['COMPANY_ADDRESS'], 'hotline': config['COMPANY_HOTLINE'],
            'website': config['COMPANY_WEBSITE'], 'bank_account': config['BANK_ACCOUNT_NUMBER'],
            'bank_holder': config['BANK_ACCOUNT_HOLDER'], 'bank_name': config['BANK_NAME'],
        },
    )


def html_to_pdf(html):
    """Converts the rendered document to PDF bytes with wkhtmltopdf."""
    wkhtmltopdf_path = current_app.config.get('WKHTMLTOPDF_PATH')
    configuration = pdfkit.configuration(wkhtmltopdf=wkhtmltopdf_path) if wkhtmltopdf_path else None
    return pdfkit.from_string(html, False, options=PDF_OPTIONS, configuration=configuration)
