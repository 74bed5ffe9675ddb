import graphene

from ...order import actions
from .mutations import (
    OrderAddPackages,
    OrderAddRefund,
    OrderCancel,
    OrderMarkComplete,
    OrderMarkExported,
    OrderSetImportable,
    OrderSynchronize,
)


class OrderQueries(graphene.ObjectType):
    importable_orders = graphene.List(
        graphene.NonNull(graphene.JSONString),
        required=True,
        limit=graphene.Int(default_value=50),
        completed_from=graphene.DateTime(),
        completed_to=graphene.DateTime(),
        include_all=graphene.Boolean(
            name="all",
            default_value=False,
            description="List every order instead of the importable ones.",
        ),
        description="Snapshots of completed orders waiting for import.",
    )

    @staticmethod
    def resolve_importable_orders(_root, _info, **kwargs):
        return actions.importable_orders(
            limit=kwargs.get("limit") or 50,
            completed_from=kwargs.get("completed_from"),
            completed_to=kwargs.get("completed_to"),
            include_all=kwargs.get("include_all", False),
        )


class OrderMutations(graphene.ObjectType):
    order_synchronize = OrderSynchronize.Field()
    order_add_packages = OrderAddPackages.Field()
    order_mark_complete = OrderMarkComplete.Field()
    order_add_refund = OrderAddRefund.Field()
    order_cancel = OrderCancel.Field()
    order_mark_exported = OrderMarkExported.Field()
    order_set_importable = OrderSetImportable.Field()
