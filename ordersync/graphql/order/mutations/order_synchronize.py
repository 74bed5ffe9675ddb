import graphene

from ....order import actions
from ...core.mutations import BaseMutation, diagnostics_to_type
from ...core.types import Diagnostic


class LineCorrelation(graphene.ObjectType):
    corr = graphene.String(description="Correlation id of the pushed line.")
    refnum = graphene.Int(description="ID of the local line item.")
    quantity = graphene.Int(required=True, description="Resulting quantity.")


class OrderSynchronize(BaseMutation):
    changed = graphene.Boolean(description="Whether the order was modified.")
    dump = graphene.JSONString(description="Snapshot of the order after the call.")
    result = graphene.List(graphene.NonNull(LineCorrelation), required=True)
    diagnostics = graphene.List(graphene.NonNull(Diagnostic), required=True)

    class Arguments:
        order_refnum = graphene.String(required=True, description="Order number.")
        line_items = graphene.JSONString(
            required=True, description="Every line the order should have."
        )
        rmas = graphene.JSONString(description="Open return authorizations.")
        amounts = graphene.JSONString(
            description="Asserted `shipping_amt`, `tax_amt` and `discount_amt`."
        )
        ext = graphene.JSONString(description="Extension fields for the order.")
        options = graphene.JSONString(description="Synchronization switches.")

    class Meta:
        description = "Converges an order on the state pushed by the order system."

    @classmethod
    def handle_errors(cls, errors: list, **extra):
        return super().handle_errors(errors, result=[], diagnostics=[], **extra)

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        response = actions.synchronize(
            data["order_refnum"],
            data["line_items"],
            rmas=data.get("rmas") or (),
            amounts=data.get("amounts"),
            options=cls.get_options(data),
            ext=data.get("ext"),
        )
        return OrderSynchronize(
            changed=response["changed"],
            dump=response["dump"],
            result=[LineCorrelation(**entry) for entry in response["result"]],
            diagnostics=diagnostics_to_type(response["diagnostics"]),
        )
