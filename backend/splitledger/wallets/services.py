"""
Wallet Service - Personal expenses outside any group.

Responsibilities:
- Record and delete one member's own spending
- Report totals overall and per category
"""
import logging
from collections import OrderedDict
from decimal import Decimal
from threading import RLock
from typing import Any, Dict, List

from splitledger.errors import NotFound
from splitledger.expenses.models import PersonalExpense, expense_from_dict, new_expense_id
from splitledger.utils.enums import ExpenseCategory
from splitledger.utils.money import ZERO, to_amount

logger = logging.getLogger(__name__)


class Wallet:
    """Personal expense list for a single owner."""

    def __init__(self, owner: str, expenses: List[PersonalExpense] = None):
        self.owner = owner
        self._expenses: List[PersonalExpense] = list(expenses or [])
        self._lock = RLock()

    @property
    def expenses(self):
        with self._lock:
            return tuple(self._expenses)

    def add_expense(
        self,
        amount,
        category: ExpenseCategory = ExpenseCategory.OTHER,
        title: str = ""
    ) -> PersonalExpense:
        expense = PersonalExpense(
            id=new_expense_id(),
            amount=to_amount(amount),
            owner=self.owner,
            category=ExpenseCategory(category),
            title=title,
        )
        with self._lock:
            self._expenses.append(expense)
        logger.debug("wallet %r: added expense %s", self.owner, expense.id)
        return expense

    def remove_expense(self, expense_id: str) -> None:
        with self._lock:
            for i, expense in enumerate(self._expenses):
                if expense.id == expense_id:
                    del self._expenses[i]
                    return
        raise NotFound(f"Expense not found: {expense_id}")

    def total_spent(self) -> Decimal:
        with self._lock:
            return sum((e.amount for e in self._expenses), ZERO)

    def totals_by_category(self) -> Dict[ExpenseCategory, Decimal]:
        """Spending per category, in category declaration order, empty ones skipped."""
        totals = OrderedDict()
        with self._lock:
            for category in ExpenseCategory:
                spent = sum((e.amount for e in self._expenses if e.category is category), ZERO)
                if spent > 0:
                    totals[category] = spent
        return totals

    def to_document(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "_id": self.owner,
                "expenses": [e.to_dict() for e in self._expenses],
            }

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Wallet":
        expenses = [expense_from_dict(e) for e in doc.get("expenses", [])]
        for expense in expenses:
            if not isinstance(expense, PersonalExpense):
                raise ValueError(f"Expense {expense.id} is not a personal expense")
        return cls(doc["_id"], expenses)
