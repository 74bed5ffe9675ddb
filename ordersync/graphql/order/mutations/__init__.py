from .order_add_packages import OrderAddPackages
from .order_add_refund import OrderAddRefund
from .order_cancel import OrderCancel
from .order_export import OrderMarkExported, OrderSetImportable
from .order_mark_complete import OrderMarkComplete
from .order_synchronize import OrderSynchronize

__all__ = [
    "OrderAddPackages",
    "OrderAddRefund",
    "OrderCancel",
    "OrderMarkComplete",
    "OrderMarkExported",
    "OrderSetImportable",
    "OrderSynchronize",
]
