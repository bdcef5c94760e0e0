# ==============================================================================
# babyboss/main/filters.py
# ------------------------------------------------------------------------------
# Defines custom Jinja2 template filters for the application.
# ==============================================================================

from babyboss.main import bp


@bp.app_template_filter('vnd')
def vnd_filter(s):
    """
    Formats a number with Vietnamese thousands separators.
    Example: 1234567 -> "1.234.567"
    """
    try:
        return "{:,}".format(int(round(float(s)))).replace(',', '.')
    except (ValueError, TypeError):
        return s


@bp.app_template_filter('currency')
def currency_filter(s):
    """Example: 540000 -> "540.000 ₫" """
    try:
        return "{:,} ₫".format(int(round(float(s)))).replace(",", ".")
    except (ValueError, TypeError):
        return s
