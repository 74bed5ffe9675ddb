import graphene

from ....order import actions
from ...core.mutations import SettlementMutation


class OrderCancel(SettlementMutation):
    class Arguments:
        order_refnum = graphene.String(required=True, description="Order number.")
        options = graphene.JSONString(description="Synchronization switches.")

    class Meta:
        description = "Cancels an order and gives back its payments."

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        result = actions.cancel(data["order_refnum"], options=cls.get_options(data))
        return cls.from_settlement(result)
