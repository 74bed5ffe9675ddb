from .error_codes import SyncErrorCode
from .exceptions import SyncError


def parse_mapping(value, field: str) -> dict:
    """Return `value` as a dict; missing values become an empty one."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SyncError(f"{field} must be an object", SyncErrorCode.INVALID)
    return value


def parse_record(record_class, item, field: str):
    item = parse_mapping(item, field)
    try:
        return record_class.from_payload(item)
    except (KeyError, TypeError, ValueError) as exc:
        raise SyncError(f"{field} is invalid: {exc}", SyncErrorCode.INVALID) from exc


def parse_records(record_class, items, field: str) -> list:
    """Build `record_class` instances from inbound mappings.

    A malformed item aborts the call; the message names the offending item.
    """
    records = []
    for index, item in enumerate(items or ()):
        if not isinstance(item, dict):
            raise SyncError(f"{field}[{index}] must be an object", SyncErrorCode.INVALID)
        records.append(parse_record(record_class, item, f"{field}[{index}]"))
    return records
