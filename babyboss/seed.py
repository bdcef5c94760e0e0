from babyboss.storage import (refresh_users_from_cloud, refresh_customers_from_cloud,
                              refresh_orders_from_cloud)


def seed_data():
    """Populates the local store from the spreadsheet. Collections the sheet
    returns empty are left untouched."""
    loaded = {
        'users': refresh_users_from_cloud(),
        'customers': refresh_customers_from_cloud(),
        'orders': refresh_orders_from_cloud(),
    }
    for name, ok in loaded.items():
        print(f'{name}: {"refreshed" if ok else "kept local copy"}')
    return loaded
