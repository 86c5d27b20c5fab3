"""
Ledger error taxonomy.

Every error is local and recoverable by the caller. Each carries a stable
``code`` and the HTTP ``status`` the API layer answers with.
"""


class LedgerError(Exception):
    """Base class for all ledger failures."""
    code = "ledger_error"
    status = 400

    def to_dict(self):
        return {"error": self.code, "message": str(self)}


class InvalidAmount(LedgerError):
    """Amount is not a positive number."""
    code = "invalid_amount"


class EmptySplit(LedgerError):
    """Expense has nobody to split between."""
    code = "empty_split"


class UnknownMember(LedgerError):
    """Payer or split member is not on the roster."""
    code = "unknown_member"

    def __init__(self, member: str):
        super().__init__(f"Unknown member: {member!r}")
        self.member = member


class NotFound(LedgerError):
    """No expense (or group) with the given id."""
    code = "not_found"
    status = 404


class UnbalancedInput(LedgerError):
    """Balances handed to the settlement planner do not sum to zero."""
    code = "unbalanced_input"
    status = 500


class Conflict(LedgerError):
    """The stored group changed between load and save."""
    code = "conflict"
    status = 409
