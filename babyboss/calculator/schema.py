# ==============================================================================
# babyboss/calculator/schema.py
# ------------------------------------------------------------------------------
# Product catalogue and organisation constants. This module is the single
# source of truth for prices, product lines and branches.
# ==============================================================================

BRANCHES = ('Baby Boss Hội sở', 'Baby Boss miền Bắc')

LINES = ('Pro', 'Promax')

SIZES = ('80g', '500ml', '2700ml', '3500ml')

FLAVORS = [
    'Vani', 'Socola', 'Dâu', 'Sầu riêng', 'Dừa', 'Khoai môn',
    'Trà xanh', 'Cà phê', 'Bạc hà', 'Việt quất', 'Xoài', 'Cookies & Cream'
]

# Unit price (VND) of one box, by product line and size
ICE_CREAM_PRICES = {
    'Pro': {'80g': 12000, '500ml': 50000, '2700ml': 230000, '3500ml': 290000},
    'Promax': {'80g': 15000, '500ml': 65000, '2700ml': 300000, '3500ml': 380000},
}

# Unit printed for ice-cream rows on the order document
ICE_CREAM_UNIT = 'Hộp'

DEPOSIT_RATE = 0.5
