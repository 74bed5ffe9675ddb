import graphene

from ....order import ImportState, actions
from ...core.mutations import BaseMutation

ImportStateEnum = graphene.Enum(
    "ImportStateEnum", [(value.upper(), value) for value, _ in ImportState.CHOICES]
)


class OrderMarkExported(BaseMutation):
    class Arguments:
        ids = graphene.List(
            graphene.NonNull(graphene.Int),
            required=True,
            description="IDs of the orders the order system has imported.",
        )

    class Meta:
        description = "Marks orders as exported so they are not offered again."

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        actions.mark_exported(list(data["ids"]))
        return OrderMarkExported()


class OrderSetImportable(BaseMutation):
    class Arguments:
        order_refnum = graphene.String(required=True, description="Order number.")
        importable = ImportStateEnum(required=True)

    class Meta:
        description = "Sets the import state of an order that was not exported yet."

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        importable = data["importable"]
        actions.set_importable(
            data["order_refnum"], getattr(importable, "value", importable)
        )
        return OrderSetImportable()
