from .auth import User, SessionToken
from .catalog import Product
from .partners import Vendor, Supplier, Distributor, Retailer, BilledEntity
from .transactions import Purchase, Sale
from .approvals import ApprovalRequest
from .templates import InvoiceTemplate

__all__ = [
    'User', 'SessionToken',
    'Product',
    'Vendor', 'Supplier', 'Distributor', 'Retailer', 'BilledEntity',
    'Purchase', 'Sale',
    'ApprovalRequest',
    'InvoiceTemplate',
]
