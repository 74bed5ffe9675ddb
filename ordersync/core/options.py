import attrs


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


@attrs.frozen
class SyncOptions:
    """Per-call switches sent by the external system along with a payload."""

    ok_capture: bool = False
    ok_partial_capture: bool = False
    ok_void: bool = False
    ok_refund: bool = False
    use_any_method: bool = False
    no_auto_shipping_methods: bool = False
    no_auto_stock_locations: bool = False
    partial_ship_name: str = "Unshipped"
    ro_authoritative_ship: bool = False

    @classmethod
    def from_payload(cls, options: dict | None) -> "SyncOptions":
        options = options or {}
        flags = {
            field.name: _flag(options[field.name])
            for field in attrs.fields(cls)
            if field.type is bool and field.name in options
        }
        partial_ship_name = str(options.get("partial_ship_name") or "").strip()
        return cls(**flags, partial_ship_name=partial_ship_name or "Unshipped")
