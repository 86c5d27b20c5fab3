"""
Expense models.

An expense is either shared (a payer and the members it is split between) or
personal (one owner, never part of a group ledger). ``kind`` tags which one a
stored document holds.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Tuple, Dict, Any, Union

from splitledger.utils.enums import ExpenseCategory, ExpenseKind

SETTLEMENT_TITLE = "Debt payment"


def new_expense_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SharedExpense:
    """A group outlay fronted by ``payer`` and owed equally by ``split_among``."""
    id: str
    amount: Decimal
    payer: str
    split_among: Tuple[str, ...]
    category: ExpenseCategory = ExpenseCategory.OTHER
    title: str = ""
    is_settlement: bool = False
    created_at: datetime = field(default_factory=utcnow)
    kind: ExpenseKind = field(default=ExpenseKind.SHARED, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "amount": str(self.amount),
            "category": self.category.value,
            "payer": self.payer,
            "split_among": list(self.split_among),
            "is_settlement": self.is_settlement,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class PersonalExpense:
    """Money one person spent on themselves."""
    id: str
    amount: Decimal
    owner: str
    category: ExpenseCategory = ExpenseCategory.OTHER
    title: str = ""
    created_at: datetime = field(default_factory=utcnow)
    kind: ExpenseKind = field(default=ExpenseKind.PERSONAL, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind.value,
            "title": self.title,
            "amount": str(self.amount),
            "category": self.category.value,
            "owner": self.owner,
            "created_at": self.created_at.isoformat(),
        }


Expense = Union[SharedExpense, PersonalExpense]


def expense_from_dict(doc: Dict[str, Any]) -> Expense:
    """Rebuild an expense from its ``to_dict`` form."""
    common = {
        "id": doc["id"],
        "amount": Decimal(doc["amount"]),
        "category": ExpenseCategory(doc.get("category", ExpenseCategory.OTHER.value)),
        "title": doc.get("title", ""),
        "created_at": datetime.fromisoformat(doc["created_at"]),
    }
    kind = ExpenseKind(doc.get("kind", ExpenseKind.SHARED.value))
    if kind is ExpenseKind.PERSONAL:
        return PersonalExpense(owner=doc["owner"], **common)
    return SharedExpense(
        payer=doc["payer"],
        split_among=tuple(doc["split_among"]),
        is_settlement=bool(doc.get("is_settlement", False)),
        **common,
    )
