import graphene

from ....order import actions
from ...core.mutations import BaseMutation, diagnostics_to_type
from ...core.types import Diagnostic


class OrderAddPackages(BaseMutation):
    diagnostics = graphene.List(graphene.NonNull(Diagnostic), required=True)

    class Arguments:
        order_refnum = graphene.String(required=True, description="Order number.")
        packages = graphene.JSONString(
            required=True,
            description=(
                "Shipped packages: `id`, `shipcode`, `tracking`, `from`, `date` "
                "and `contents` of line item `id` and `quantity`."
            ),
        )
        options = graphene.JSONString(description="Synchronization switches.")

    class Meta:
        description = "Records packages shipped for an order."

    @classmethod
    def handle_errors(cls, errors: list, **extra):
        return super().handle_errors(errors, diagnostics=[], **extra)

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        response = actions.add_packages(
            data["order_refnum"], data["packages"], options=cls.get_options(data)
        )
        return OrderAddPackages(
            diagnostics=diagnostics_to_type(response["diagnostics"])
        )
