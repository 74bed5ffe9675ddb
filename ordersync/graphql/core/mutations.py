import logging

import graphene
from django.core.exceptions import NON_FIELD_ERRORS, ValidationError

from ...core.error_codes import SyncErrorCode
from ...core.exceptions import SyncError
from ...core.options import SyncOptions
from .types import Diagnostic, PaymentStatus
from .types import SyncError as SyncErrorType

logger = logging.getLogger(__name__)


def validation_error_to_error_type(error: ValidationError) -> list:
    """Convert a ValidationError into a list of error objects."""
    err_list = []
    if hasattr(error, "error_dict"):
        for field, field_errors in error.error_dict.items():
            field = None if field == NON_FIELD_ERRORS else field
            for err in field_errors:
                err_list.append(
                    SyncErrorType(
                        field=field,
                        message=" ".join(err.messages),
                        code=err.code or SyncErrorCode.INVALID.value,
                    )
                )
    else:
        for err in error.error_list:
            err_list.append(
                SyncErrorType(
                    field=None,
                    message=" ".join(err.messages),
                    code=err.code or SyncErrorCode.INVALID.value,
                )
            )
    return err_list


class BaseMutation(graphene.Mutation):
    errors = graphene.List(graphene.NonNull(SyncErrorType), required=True)

    class Meta:
        abstract = True

    @classmethod
    def get_options(cls, data) -> SyncOptions:
        return SyncOptions.from_payload(data.get("options"))

    @classmethod
    def perform_mutation(cls, root, info, /, **data):
        raise NotImplementedError

    @classmethod
    def handle_errors(cls, errors: list, **extra):
        return cls(errors=errors, **extra)

    @classmethod
    def mutate(cls, root, info, **data):
        try:
            response = cls.perform_mutation(root, info, **data)
        except SyncError as e:
            logger.info("%s failed: %s", cls.__name__, e.message)
            return cls.handle_errors(
                [SyncErrorType(field=None, message=e.message, code=e.code.value)]
            )
        except ValidationError as e:
            return cls.handle_errors(validation_error_to_error_type(e))
        if response.errors is None:
            response.errors = []
        return response


class SettlementMutation(BaseMutation):
    """Mutation answering with the payment settlement outcome."""

    settlement_errors = graphene.List(
        graphene.NonNull(graphene.String),
        required=True,
        description="Gateway errors met while settling payments.",
    )
    status = graphene.List(
        graphene.NonNull(PaymentStatus),
        required=True,
        description="Resulting state of every payment with a positive amount.",
    )

    class Meta:
        abstract = True

    @classmethod
    def handle_errors(cls, errors: list, **extra):
        return super().handle_errors(
            errors, settlement_errors=[], status=[], **extra
        )

    @classmethod
    def from_settlement(cls, result: dict):
        return cls(
            settlement_errors=result["errors"],
            status=[PaymentStatus(**status) for status in result["status"]],
        )


def diagnostics_to_type(entries) -> list:
    return [Diagnostic(**entry) for entry in entries]
