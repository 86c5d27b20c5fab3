"""Settlement planning - Splitwise-style debt minimization."""
import heapq
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Mapping, Any

from splitledger.errors import UnbalancedInput

logger = logging.getLogger(__name__)

DEFAULT_EPSILON = Decimal("0.005")


@dataclass(frozen=True)
class SettlementInstruction:
    """``from_member`` should pay ``to_member`` this amount."""
    from_member: str
    to_member: str
    amount: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.from_member,
            "to": self.to_member,
            "amount": str(self.amount),
        }


class SettlementPlanner:
    """Turn net balances into direct member-to-member payments."""

    def __init__(self, epsilon: Decimal = DEFAULT_EPSILON):
        self.epsilon = Decimal(epsilon)

    def plan(self, balances: Mapping[str, Decimal]) -> List[SettlementInstruction]:
        """
        Calculate who pays whom, largest debtor to largest creditor.

        Balances within ``epsilon`` of zero count as settled. Every step
        clears at least one party, so at most ``members - 1`` instructions
        come out. Ties are broken by the order of ``balances``.

        Raises:
            UnbalancedInput: balances do not sum to zero (within epsilon)
        """
        values = {member: Decimal(balance) for member, balance in balances.items()}
        total = sum(values.values(), Decimal(0))
        if abs(total) > self.epsilon:
            logger.error("balances sum to %s, refusing to plan", total)
            raise UnbalancedInput(f"Balances sum to {total}, expected 0")

        # Max heaps keyed on outstanding amount, then input position
        debtors = []
        creditors = []
        for position, (member, balance) in enumerate(values.items()):
            if balance < -self.epsilon:
                heapq.heappush(debtors, (balance, position, member))
            elif balance > self.epsilon:
                heapq.heappush(creditors, (-balance, position, member))

        instructions = []
        while debtors and creditors:
            debt, debtor_pos, debtor = heapq.heappop(debtors)
            credit, creditor_pos, creditor = heapq.heappop(creditors)
            debt, credit = -debt, -credit

            amount = min(debt, credit)
            instructions.append(SettlementInstruction(debtor, creditor, amount))

            remaining_debt = debt - amount
            remaining_credit = credit - amount
            if remaining_debt > self.epsilon:
                heapq.heappush(debtors, (-remaining_debt, debtor_pos, debtor))
            if remaining_credit > self.epsilon:
                heapq.heappush(creditors, (-remaining_credit, creditor_pos, creditor))

        logger.debug("planned %d settlement(s) for %d member(s)", len(instructions), len(values))
        return instructions


def instructions_for(member: str, plan: List[SettlementInstruction]) -> List[SettlementInstruction]:
    """Only the payments ``member`` makes or receives."""
    return [i for i in plan if member in (i.from_member, i.to_member)]


def apply_plan(ledger, plan: List[SettlementInstruction]):
    """
    Record every instruction in ``ledger`` as a settlement payment.

    The whole plan is checked before anything is recorded.
    """
    return ledger.record_settlements(
        [(i.from_member, i.to_member, i.amount) for i in plan]
    )
