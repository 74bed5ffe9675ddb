import graphene

from ...core.diagnostics import Diagnostics
from ...core.error_codes import SyncErrorCode
from ...core.exceptions import SyncError
from ...warehouse.management import apply_inventory
from ..core.mutations import BaseMutation, diagnostics_to_type
from ..core.types import Diagnostic


class InventoryPush(BaseMutation):
    updated = graphene.Int(
        required=True, default_value=0, description="Variants whose stock changed."
    )
    diagnostics = graphene.List(graphene.NonNull(Diagnostic), required=True)

    class Arguments:
        inventory = graphene.JSONString(
            required=True,
            description=(
                "Records of `sku`, `stock` (location name to on-hand quantity), "
                "optional `stock_detailed` and `corr_id`."
            ),
        )

    class Meta:
        description = "Sets absolute per-location stock levels."

    @classmethod
    def handle_errors(cls, errors: list, **extra):
        return super().handle_errors(errors, updated=0, diagnostics=[], **extra)

    @classmethod
    def perform_mutation(cls, _root, _info, /, **data):
        records = data["inventory"]
        if not isinstance(records, list) or not all(
            isinstance(record, dict) for record in records
        ):
            raise SyncError("inventory must be a list of objects", SyncErrorCode.INVALID)
        diagnostics = Diagnostics()
        updated = apply_inventory(records, diagnostics)
        return InventoryPush(
            updated=updated, diagnostics=diagnostics_to_type(diagnostics)
        )
