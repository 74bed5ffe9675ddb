"""Correlation-keyed diagnostics.

The external system tags every item it pushes with a correlation id and
expects problems to come back tagged with the same id, so it can attach them
to its own object instead of to the whole batch. Catalog and order
synchronization report through the same structure.
"""

import logging

logger = logging.getLogger(__name__)


class Diagnostics:
    def __init__(self):
        self._entries: list[dict] = []
        self._failed: set = set()

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def add_error(self, corr_id, message: str):
        """Record a failure for one item; the rest of the batch carries on."""
        logger.warning("Sync error for %s: %s", corr_id, message)
        self._failed.add(corr_id)
        self._entries.append({"corr_id": corr_id, "message": message, "failed": True})

    def add_warning(self, corr_id, message: str):
        logger.info("Sync warning for %s: %s", corr_id, message)
        self._entries.append({"corr_id": corr_id, "message": message, "failed": False})

    def failed(self, corr_id) -> bool:
        return corr_id in self._failed

    def as_list(self) -> list[dict]:
        return list(self._entries)
