"""Request validators."""
from splitledger.errors import LedgerError
from splitledger.utils.enums import ExpenseCategory


class MissingFields(LedgerError):
    code = "missing_fields"


class InvalidField(LedgerError):
    code = "invalid_field"


def require_keys(payload, *keys):
    missing = [k for k in keys if k not in (payload or {})]
    if missing:
        raise MissingFields(f"missing keys: {missing}")
    return True


def parse_category(value):
    try:
        return ExpenseCategory(value)
    except ValueError:
        raise InvalidField(f"unknown category: {value!r}")
