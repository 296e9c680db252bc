from .inventory import Stock, StockLog
from .staff import Staff
from .enquiries import Enquiry

__all__ = [
    'Stock', 'StockLog',
    'Staff',
    'Enquiry',
]
