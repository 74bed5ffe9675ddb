class ImportState:
    """Whether the external system should pick the order up.

    `done` is terminal: an exported order is never offered for import again.
    """

    NO = "no"
    YES = "yes"
    DONE = "done"

    CHOICES = [
        (NO, "Not importable"),
        (YES, "Waiting for import"),
        (DONE, "Exported"),
    ]


class OrderStatus:
    COMPLETE = "complete"
    CANCELED = "canceled"

    CHOICES = [
        (COMPLETE, "Complete"),
        (CANCELED, "Canceled"),
    ]


class ShipmentState:
    PENDING = "pending"
    READY = "ready"
    SHIPPED = "shipped"
    CANCELED = "canceled"

    CHOICES = [
        (PENDING, "Pending"),
        (READY, "Ready"),
        (SHIPPED, "Shipped"),
        (CANCELED, "Canceled"),
    ]

    # Shipments in these states no longer take new inventory units.
    TERMINAL = [SHIPPED, CANCELED]


class InventoryUnitState:
    UNFULFILLED = "unfulfilled"
    SHIPPED = "shipped"
    RETURNED = "returned"

    CHOICES = [
        (UNFULFILLED, "Unfulfilled"),
        (SHIPPED, "Shipped"),
        (RETURNED, "Returned"),
    ]


class AdjustmentState:
    # Closed adjustments keep their amount when the order is recalculated.
    OPEN = "open"
    CLOSED = "closed"

    CHOICES = [
        (OPEN, "Open"),
        (CLOSED, "Closed"),
    ]


class AdjustmentKind:
    SHIPPING = "shipping"
    TAX = "tax"
    PROMOTION = "promotion"
    REFUND = "refund"
    RETURN = "return"

    CHOICES = [
        (SHIPPING, "Shipping"),
        (TAX, "Tax"),
        (PROMOTION, "Promotion"),
        (REFUND, "Refund"),
        (RETURN, "Return"),
    ]


class ReturnAuthorizationState:
    AUTHORIZED = "authorized"
    RECEIVED = "received"
    CANCELED = "canceled"

    CHOICES = [
        (AUTHORIZED, "Authorized"),
        (RECEIVED, "Received"),
        (CANCELED, "Canceled"),
    ]


class ShippingPriceMode:
    """Where an asserted shipping price is recorded."""

    SHIPMENT = "shipment"
    ADJUSTMENT = "adjustment"


STANDARD_SHIPPING_LABEL = "Standard Shipping"
TAX_SET_EXTERNALLY_LABEL = "Tax set externally"
DISCOUNT_SET_EXTERNALLY_LABEL = "Discount set externally"


def rma_number(rma_id) -> str:
    return f"RMA-RO-{rma_id}"


def return_number(return_id) -> str:
    return f"RMA-RET-{return_id}"


def return_shipping_label(return_id) -> str:
    return f"Return {return_id} Shipping"


def return_tax_label(return_id) -> str:
    return f"Return {return_id} Tax"


def package_number(package_id) -> str:
    return f"P{package_id}"


def return_credit_label(number) -> str:
    return f"RMA credit {number}"
