from .tenancy import Distributor, Vendor, DistributorVendor
from .catalog import Category, Product, VendorPriceOverride, BulkPriceOverride
from .orders import Order, OrderLine, ORDER_STATUSES, ORDER_UNITS, ORDER_METADATA_COLUMNS
from .invoices import Invoice, InvoiceLine
from .analytics import ProfitCenterReset

__all__ = [
    'Distributor', 'Vendor', 'DistributorVendor',
    'Category', 'Product', 'VendorPriceOverride', 'BulkPriceOverride',
    'Order', 'OrderLine', 'ORDER_STATUSES', 'ORDER_UNITS', 'ORDER_METADATA_COLUMNS',
    'Invoice', 'InvoiceLine',
    'ProfitCenterReset',
]
