from .auth import User, Permission, Preference, CAPABILITIES
from .inventory import (
    Product,
    ProductLink,
    Brand,
    Category,
    Supplier,
    OWNER_MODELS,
    OWNER_BRAND,
    OWNER_CATEGORY,
    OWNER_SUPPLIER,
)
from .orders import PendingOrder, ReceivedOrder

__all__ = [
    'User', 'Permission', 'Preference', 'CAPABILITIES',
    'Product', 'ProductLink', 'Brand', 'Category', 'Supplier',
    'OWNER_MODELS', 'OWNER_BRAND', 'OWNER_CATEGORY', 'OWNER_SUPPLIER',
    'PendingOrder', 'ReceivedOrder',
]
