import graphene

from ...core.error_codes import SyncErrorCode

SyncErrorCodeEnum = graphene.Enum.from_enum(SyncErrorCode)


class SyncError(graphene.ObjectType):
    field = graphene.String(
        description=(
            "Name of a field that caused the error. A value of `null` indicates "
            "that the error isn't associated with a particular field."
        )
    )
    message = graphene.String(description="The error message.")
    code = SyncErrorCodeEnum(description="The error code.", required=True)


class Diagnostic(graphene.ObjectType):
    corr_id = graphene.String(description="Correlation id sent with the item.")
    message = graphene.String(required=True)
    failed = graphene.Boolean(required=True)


class PaymentStatus(graphene.ObjectType):
    id = graphene.Int(required=True)
    state = graphene.String(required=True)
    amount = graphene.Decimal(required=True)
    credit = graphene.Decimal(
        required=True, description="Amount credited back so far."
    )
