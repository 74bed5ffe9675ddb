from django.db import models


class ModelWithMetadata(models.Model):
    metadata = models.JSONField(blank=True, default=dict)

    class Meta:
        abstract = True

    def get_value_from_metadata(self, key: str, default=None):
        return self.metadata.get(key, default)

    def store_value_in_metadata(self, items: dict):
        if not self.metadata:
            self.metadata = {}
        self.metadata.update(items)
