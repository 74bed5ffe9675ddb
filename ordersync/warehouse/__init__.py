class StockMovementOriginator:
    """What caused a change of on-hand quantity."""

    INVENTORY_PUSH = "inventory_push"
    SHIPMENT = "shipment"

    CHOICES = [
        (INVENTORY_PUSH, "Inventory pushed by the external system"),
        (SHIPMENT, "Shipment finalized"),
    ]
