class GatewayError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.message = message
        self.code = code


class PaymentState:
    """Lifecycle of a payment.

    Money is only moved from `pending` (capture or void) and only returned
    from `completed` (credit).
    """

    CHECKOUT = "checkout"
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    VOIDED = "voided"

    CHOICES = [
        (CHECKOUT, "Checkout"),
        (PENDING, "Pending"),
        (PROCESSING, "Processing"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
        (VOIDED, "Voided"),
    ]


class TransactionKind:
    CAPTURE = "capture"
    VOID = "void"
    REFUND = "refund"

    CHOICES = [
        (CAPTURE, "Capture"),
        (VOID, "Void"),
        (REFUND, "Refund"),
    ]
