class ShippingCalculator:
    FLAT_RATE = "flat_rate"
    PER_ITEM = "per_item"
    # Placeholder used where the true carrier cost lives in an order level
    # adjustment. Never offered to customers and always priced at zero.
    ADVISORY = "advisory"

    CHOICES = [
        (FLAT_RATE, "Flat rate per shipment"),
        (PER_ITEM, "Flat rate per item"),
        (ADVISORY, "Advisory (priced externally)"),
    ]
