import graphene

from ....order import actions
from ...core.mutations import SettlementMutation


class OrderMarkComplete(SettlementMutation):
    class Arguments:
        order_refnum = graphene.String(required=True, description="Order number.")
        refund_items = graphene.JSONString(
            description=(
                "Short-ship refunds: `label`, `amount` and the line item `id` "
                "and `quantity` that will never ship."
            )
        )
        options = graphene.JSONString(description="Synchronization switches.")

    class Meta:
        description = (
            "Flags an order as complete on the order system side and settles "
            "its payments."
        )

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        result = actions.mark_complete(
            data["order_refnum"],
            data.get("refund_items") or (),
            options=cls.get_options(data),
        )
        return cls.from_settlement(result)
