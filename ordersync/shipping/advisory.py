"""Advisory shipping methods.

An advisory method records how the external system shipped something without
pricing it: the real price lives in an order level adjustment. Methods are
looked up by admin name and created on demand unless the caller forbids it.
"""

import logging

from ..core.db import find_or_create_locked
from ..core.error_codes import SyncErrorCode
from ..core.exceptions import SyncError
from ..core.options import SyncOptions
from . import ShippingCalculator
from .models import ShippingMethod

logger = logging.getLogger(__name__)


class AdvisoryMethodResolver:
    def __init__(self, options: SyncOptions):
        self.options = options
        self._methods: dict[str, ShippingMethod] = {}

    def tbd_method(self) -> ShippingMethod:
        """Method for shipments whose carrier is not decided yet."""
        return self.advisory_method(self.options.partial_ship_name)

    def advisory_method(self, name: str) -> ShippingMethod:
        name = name or self.options.partial_ship_name
        if name in self._methods:
            return self._methods[name]

        method = None
        for candidate in ShippingMethod.objects.filter(admin_name=name):
            if self.options.use_any_method or candidate.is_advisory:
                method = candidate
                break

        if method is None:
            if self.options.no_auto_shipping_methods:
                raise SyncError(
                    f"Advisory shipping method {name} does not exist and automatic "
                    "creation is disabled",
                    SyncErrorCode.SHIPPING_METHOD_NOT_FOUND,
                )
            method, created = find_or_create_locked(
                ShippingMethod.objects.all(),
                admin_name=name,
                calculator=ShippingCalculator.ADVISORY,
                defaults={"name": name},
            )
            if created:
                logger.info("Created advisory shipping method %r", name)

        self._methods[name] = method
        return method
