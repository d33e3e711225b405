from typing import Dict, List, Optional

from payhive.core.config import settings
from payhive.models.group import Group
from payhive.models.settlement import Settlement
from payhive.schemas.ledger import GroupSummary


class LedgerService:
    @staticmethod
    def calculate_balances(group: Group) -> Dict[str, float]:
        """
        Net balance per member from the group's authorized expenses.

        Positive = is owed money, negative = owes money. The payer is
        credited the full amount and, when also a participant, debited
        their own share. Pending expenses are ignored.
        """
        # 1. Every current member starts at zero, in join order
        balances: Dict[str, float] = {m.user_id: 0.0 for m in group.members}

        # 2. Fold authorized expenses, even split only
        for expense in group.authorized_expenses():
            share = expense.amount / len(expense.participants)
            balances[expense.paid_by] = balances.get(expense.paid_by, 0.0) + expense.amount
            for participant_id in expense.participants:
                balances[participant_id] = balances.get(participant_id, 0.0) - share

        return balances

    @staticmethod
    def plan_settlements(
        balances: Dict[str, float],
        epsilon: Optional[float] = None
    ) -> List[Settlement]:
        """
        Greedy netting: repeatedly match the largest creditor with the
        largest debtor.

        Deterministic and O(n log n), but not guaranteed to find the fewest
        possible transfers for every topology.
        """
        if epsilon is None:
            epsilon = settings.EPSILON

        # Stable sorts: equal balances keep balance-map order
        creditors = [[uid, amount] for uid, amount in balances.items() if amount > epsilon]
        debtors = [[uid, amount] for uid, amount in balances.items() if amount < -epsilon]
        creditors.sort(key=lambda x: x[1], reverse=True)
        debtors.sort(key=lambda x: x[1])

        settlements: List[Settlement] = []
        i = 0
        j = 0

        while i < len(creditors) and j < len(debtors):
            creditor = creditors[i]
            debtor = debtors[j]

            amount = min(creditor[1], -debtor[1])

            if amount > epsilon:
                settlements.append(Settlement(
                    from_user_id=debtor[0],
                    to_user_id=creditor[0],
                    amount=amount
                ))

            creditor[1] -= amount
            debtor[1] += amount

            if abs(creditor[1]) < epsilon:
                i += 1
            if abs(debtor[1]) < epsilon:
                j += 1

        return settlements

    @staticmethod
    def settlements_for_member(settlements: List[Settlement], member_id: str) -> List[Settlement]:
        """Transfers the member pays or receives."""
        return [
            s for s in settlements
            if s.from_user_id == member_id or s.to_user_id == member_id
        ]

    @staticmethod
    def summarize(group: Group) -> GroupSummary:
        authorized = group.authorized_expenses()
        balances = LedgerService.calculate_balances(group)
        return GroupSummary(
            group_id=group.id,
            member_count=len(group.members),
            expense_count=len(group.expenses),
            authorized_expense_count=len(authorized),
            pending_expense_count=len(group.expenses) - len(authorized),
            total_authorized_amount=sum(e.amount for e in authorized),
            is_settled_up=not LedgerService.plan_settlements(balances)
        )
