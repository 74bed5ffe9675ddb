"""Extension fields.

Inbound payloads may carry free-form `name: value` pairs for an entity. A
model opts in by listing which of its columns and associations may be written
that way, and by naming hook methods for anything else. Unknown names are
reported back as warnings; they never fail the call.
"""

from enum import Enum

from .db import find_or_create_locked


class ExtensionResult(Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"
    UNKNOWN = "unknown"


class ExtensibleMixin:
    # Columns that may be assigned directly.
    EXTENSION_FIELDS: tuple[str, ...] = ()
    # Foreign keys to models with a unique `name`; the value is the name.
    EXTENSION_ASSOCIATIONS: tuple[str, ...] = ()
    # Extension name -> method name, called with the raw value. A hook
    # returns True when it modified the instance.
    EXTENSION_HOOKS: dict[str, str] = {}
    # Names starting with this prefix are stored in `metadata`.
    EXTENSION_METADATA_PREFIX = "meta_"

    def set_extension(self, name: str, value) -> ExtensionResult:
        if name in self.EXTENSION_FIELDS:
            field = self._meta.get_field(name)
            new_value = field.to_python(value)
            if getattr(self, field.attname) == new_value:
                return ExtensionResult.UNCHANGED
            setattr(self, field.attname, new_value)
            return ExtensionResult.APPLIED

        if name in self.EXTENSION_ASSOCIATIONS:
            field = self._meta.get_field(name)
            related, _ = find_or_create_locked(
                field.related_model.objects.all(), name=str(value)
            )
            if getattr(self, field.attname) == related.pk:
                return ExtensionResult.UNCHANGED
            setattr(self, name, related)
            return ExtensionResult.APPLIED

        hook = self.EXTENSION_HOOKS.get(name)
        if hook:
            changed = getattr(self, hook)(value)
            return ExtensionResult.APPLIED if changed else ExtensionResult.UNCHANGED

        prefix = self.EXTENSION_METADATA_PREFIX
        if prefix and name.startswith(prefix) and hasattr(self, "metadata"):
            key = name[len(prefix) :]
            if self.get_value_from_metadata(key) == value:
                return ExtensionResult.UNCHANGED
            self.store_value_in_metadata({key: value})
            return ExtensionResult.APPLIED

        return ExtensionResult.UNKNOWN


def apply_extensions(target, values, diagnostics=None, corr_id=None) -> bool:
    """Route every `name: value` pair through `target.set_extension`.

    Returns True when the target was modified; saving it is up to the caller.
    """
    changed = False
    for name, value in (values or {}).items():
        result = target.set_extension(name, value)
        if result is ExtensionResult.APPLIED:
            changed = True
        elif result is ExtensionResult.UNKNOWN and diagnostics is not None:
            diagnostics.add_warning(
                corr_id,
                f"Unknown extension field {name!r} for {type(target).__name__}",
            )
    return changed
