"""
Ledger Service - Shared expense history and net balances for one group.

Responsibilities:
- Maintain the roster and the ordered expense history
- Validate every mutation before touching state
- Record debt payments as settlement expenses
- Compute per-member net balances that always sum to zero
"""
import copy
import logging
from collections import OrderedDict
from dataclasses import replace
from decimal import Decimal
from itertools import groupby
from threading import RLock
from typing import Dict, Iterable, List, Optional, Tuple, Any

from splitledger.errors import EmptySplit, NotFound, UnknownMember
from splitledger.expenses.models import (
    SETTLEMENT_TITLE, SharedExpense, new_expense_id
)
from splitledger.groups.models import Group
from splitledger.utils.enums import ExpenseCategory, ExpenseKind
from splitledger.utils.money import ZERO, from_cents, split_equal, to_amount, to_cents

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class Ledger:
    """
    Authoritative expense history for a single group.

    One writer at a time: every command and every read that walks the
    expense list holds ``_lock``. Expenses are frozen, so updates swap a new
    value into the list and readers never see a half-applied change.
    """

    def __init__(self, group: Optional[Group] = None):
        self._group = group or Group()
        self._lock = RLock()

    # ==================== ROSTER ====================

    @property
    def group_id(self) -> str:
        return self._group.id

    @property
    def members(self) -> Tuple[str, ...]:
        with self._lock:
            return tuple(self._group.members)

    def add_member(self, name: str) -> bool:
        """Add a member; returns False if they are already on the roster."""
        with self._lock:
            if name in self._group.members:
                return False
            self._group.members.append(name)
            logger.debug("group %s: added member %r", self.group_id, name)
            return True

    def remove_member(self, name: str) -> bool:
        """
        Take a member off the roster.

        Past expenses that reference them are left alone, so they keep
        showing up in balances until settled.
        """
        with self._lock:
            if name not in self._group.members:
                return False
            self._group.members.remove(name)
            logger.debug("group %s: removed member %r", self.group_id, name)
            return True

    # ==================== EXPENSES ====================

    @property
    def expenses(self) -> Tuple[SharedExpense, ...]:
        with self._lock:
            return tuple(self._group.expenses)

    def get_expense(self, expense_id: str) -> SharedExpense:
        with self._lock:
            return self._group.expenses[self._index_of(expense_id)]

    def add_expense(
        self,
        payer: str,
        amount,
        split_among: Iterable[str],
        category: ExpenseCategory = ExpenseCategory.OTHER,
        title: str = ""
    ) -> SharedExpense:
        """
        Append a new shared expense.

        Args:
            payer: Member who fronted the money
            amount: Positive amount (anything Decimal can parse)
            split_among: Members who owe an equal share; duplicates collapse
            category: Cosmetic category
            title: Free text label

        Returns:
            The stored expense

        Raises:
            InvalidAmount, EmptySplit, UnknownMember
        """
        with self._lock:
            parsed_amount, parsed_split = self._validate(payer, amount, split_among)
            expense = SharedExpense(
                id=new_expense_id(),
                amount=parsed_amount,
                payer=payer,
                split_among=parsed_split,
                category=ExpenseCategory(category),
                title=title,
            )
            self._group.expenses.append(expense)
            logger.debug("group %s: added expense %s (%s by %r)",
                         self.group_id, expense.id, expense.amount, payer)
            return expense

    def update_expense(
        self,
        expense_id: str,
        *,
        title: str = _UNSET,
        amount=_UNSET,
        category: ExpenseCategory = _UNSET,
        payer: str = _UNSET,
        split_among: Iterable[str] = _UNSET
    ) -> SharedExpense:
        """
        Replace the given fields of an existing expense.

        Fields left out keep their current value and are not re-checked, so a
        past expense that names a member who has since left can still be
        retitled or re-priced. A new payer or split must be on the roster.
        The id, creation time and settlement tag never change.

        Raises:
            NotFound, InvalidAmount, EmptySplit, UnknownMember
        """
        with self._lock:
            index = self._index_of(expense_id)
            current = self._group.expenses[index]

            new_amount = current.amount if amount is _UNSET else to_amount(amount)
            new_split = current.split_among if split_among is _UNSET else self._parse_split(split_among)
            new_payer = current.payer
            if payer is not _UNSET:
                self._check_member(payer, self._group.members)
                new_payer = payer

            updated = replace(
                current,
                amount=new_amount,
                payer=new_payer,
                split_among=new_split,
                category=current.category if category is _UNSET else ExpenseCategory(category),
                title=current.title if title is _UNSET else title,
            )
            self._group.expenses[index] = updated
            logger.debug("group %s: updated expense %s", self.group_id, expense_id)
            return updated

    def remove_expense(self, expense_id: str) -> None:
        """Delete an expense. Removing an id twice raises NotFound."""
        with self._lock:
            index = self._index_of(expense_id)
            del self._group.expenses[index]
            logger.debug("group %s: removed expense %s", self.group_id, expense_id)

    def record_settlement(self, from_member: str, to_member: str, amount) -> SharedExpense:
        """
        Record that ``from_member`` paid ``to_member`` back.

        Stored as an expense paid by the debtor and owed entirely by the
        creditor, tagged so it stays out of spending totals. Either party may
        be a former member who still carries a balance.

        Raises:
            InvalidAmount, UnknownMember (neither on the roster nor in history)
        """
        return self.record_settlements([(from_member, to_member, amount)])[0]

    def record_settlements(self, payments: Iterable[Tuple[str, str, Any]]) -> List[SharedExpense]:
        """
        Record several ``(from, to, amount)`` payments at once.

        All payments are checked before the first one is stored, so a bad
        entry leaves the ledger untouched.
        """
        with self._lock:
            known = self._known_members()
            pending = []
            for from_member, to_member, amount in payments:
                parsed_amount = to_amount(amount)
                self._check_member(from_member, known)
                self._check_member(to_member, known)
                pending.append(SharedExpense(
                    id=new_expense_id(),
                    amount=parsed_amount,
                    payer=from_member,
                    split_among=(to_member,),
                    category=ExpenseCategory.OTHER,
                    title=SETTLEMENT_TITLE,
                    is_settlement=True,
                ))

            self._group.expenses.extend(pending)
            for expense in pending:
                logger.debug("group %s: %r paid %r %s", self.group_id,
                             expense.payer, expense.split_among[0], expense.amount)
            return pending

    # ==================== BALANCES ====================

    def shares_for(self, expense: SharedExpense) -> Dict[str, Decimal]:
        """
        Split one expense into per-member shares.

        Each share is ``amount / k`` in whole cents. Leftover cents go out one
        at a time, payer first when the payer is part of the split, then the
        other members in stored order, so the shares add back to the amount.
        """
        order = list(expense.split_among)
        if expense.payer in order:
            order.remove(expense.payer)
            order.insert(0, expense.payer)
        return split_equal(expense.amount, order)

    def net_balances(self) -> Dict[str, Decimal]:
        """
        Net balance per member: positive means the group owes them.

        Roster members come first in roster order, followed by former members
        still referenced by some expense. The values always sum to zero.
        """
        with self._lock:
            cents: Dict[str, int] = OrderedDict((m, 0) for m in self._group.members)
            for expense in self._group.expenses:
                total = to_cents(expense.amount)
                cents[expense.payer] = cents.get(expense.payer, 0) + total
                for member, share in self.shares_for(expense).items():
                    cents[member] = cents.get(member, 0) - to_cents(share)
            return OrderedDict((m, from_cents(c)) for m, c in cents.items())

    def balance_for(self, member: str) -> Decimal:
        return self.net_balances().get(member, ZERO)

    def debtors(self) -> List[Tuple[str, Decimal]]:
        """Members who owe money, largest debt first."""
        owing = [(m, b) for m, b in self.net_balances().items() if b < 0]
        return sorted(owing, key=lambda item: item[1])

    def total_spent(self) -> Decimal:
        """Sum of real spending; settlement payments are excluded."""
        with self._lock:
            return sum((e.amount for e in self._group.expenses if not e.is_settlement), ZERO)

    def paid_by(self, member: str) -> Decimal:
        """Total spending this member fronted for the group."""
        with self._lock:
            return sum(
                (e.amount for e in self._group.expenses
                 if e.payer == member and not e.is_settlement),
                ZERO,
            )

    def expenses_by_date(self) -> List[Tuple[Any, List[SharedExpense]]]:
        """Expenses grouped by calendar day, newest day first."""
        ordered = sorted(self.expenses, key=lambda e: e.created_at, reverse=True)
        return [
            (day, list(items))
            for day, items in groupby(ordered, key=lambda e: e.created_at.date())
        ]

    # ==================== SNAPSHOTS ====================

    def snapshot(self) -> Group:
        """Independent copy of the group for readers."""
        with self._lock:
            return copy.deepcopy(self._group)

    def to_document(self) -> Dict[str, Any]:
        with self._lock:
            return self._group.to_document()

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Ledger":
        group = Group.from_document(doc)
        for expense in group.expenses:
            if expense.kind is not ExpenseKind.SHARED:
                raise ValueError(f"Expense {expense.id} is not a shared expense")
        return cls(group)

    # ==================== HELPERS ====================

    def _index_of(self, expense_id: str) -> int:
        for i, expense in enumerate(self._group.expenses):
            if expense.id == expense_id:
                return i
        logger.info("group %s: expense %s not found", self.group_id, expense_id)
        raise NotFound(f"Expense not found: {expense_id}")

    def _known_members(self) -> List[str]:
        """Roster plus former members still named by some expense."""
        known = OrderedDict.fromkeys(self._group.members)
        for expense in self._group.expenses:
            known.setdefault(expense.payer)
            for member in expense.split_among:
                known.setdefault(member)
        return list(known)

    def _check_member(self, member: str, allowed: Iterable[str]) -> None:
        if member not in allowed:
            logger.info("group %s: rejected reference to %r", self.group_id, member)
            raise UnknownMember(member)

    def _parse_split(self, split_among: Iterable[str]) -> Tuple[str, ...]:
        if isinstance(split_among, str):
            split_among = [split_among]

        # Collapse duplicates, keep first-seen order
        split = tuple(OrderedDict.fromkeys(split_among or ()))
        if not split:
            raise EmptySplit("Expense must be split between at least one member")

        roster = self._group.members
        for member in split:
            self._check_member(member, roster)

        # Store in roster order so remainder cents go out deterministically
        return tuple(sorted(split, key=roster.index))

    def _validate(self, payer: str, amount, split_among: Iterable[str]) -> Tuple[Decimal, Tuple[str, ...]]:
        """Check a would-be expense against the roster; nothing is mutated here."""
        parsed_amount = to_amount(amount)
        split = self._parse_split(split_among)
        self._check_member(payer, self._group.members)
        return parsed_amount, split
