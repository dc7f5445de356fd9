"""Models package - the store table and the documents kept in it."""
# Persistence
from minimart.models.store_entry import StoreEntry

# Ledger documents
from minimart.models.product import Product, PackMatch
from minimart.models.cart_item import CartItem
from minimart.models.parked_cart import ParkedCart
from minimart.models.sale import Sale
from minimart.models.supplier import Supplier, SupplierPrice, BuyUnit
from minimart.models.settings import StoreSettings

__all__ = [
    'StoreEntry',
    'Product', 'PackMatch', 'CartItem', 'ParkedCart', 'Sale',
    'Supplier', 'SupplierPrice', 'BuyUnit',
    'StoreSettings',
]
