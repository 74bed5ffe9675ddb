import graphene

from ....order import actions
from ...core.mutations import SettlementMutation


class OrderAddRefund(SettlementMutation):
    class Arguments:
        order_refnum = graphene.String(required=True, description="Order number.")
        refund = graphene.JSONString(
            required=True,
            description=(
                "Received return: `return_id`, `rma_id`, `return_items`, "
                "`refund_amt`, `tax_amt` and `shipping_amt`."
            ),
        )
        options = graphene.JSONString(description="Synchronization switches.")

    class Meta:
        description = "Records a received return and settles the refund."

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        result = actions.add_refund(
            data["order_refnum"], data["refund"], options=cls.get_options(data)
        )
        return cls.from_settlement(result)
