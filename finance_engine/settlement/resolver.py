"""
Debt Settlement Resolver

Reduces a group's shared bills into directed payment instructions.

DESIGN DECISION: Matching is greedy in encounter order (participants as
given, then anyone first seen on a bill). It does not sort by magnitude,
so the number of transfers is small but not guaranteed minimal.

The resolver assumes every bill's share mapping already sums to its total
(SplitBillValidator runs before it) and that all bills share one currency.
"""

from decimal import Decimal
from typing import Iterable

from finance_engine.models.splits import (
    CENT,
    Participant,
    ParticipantBalance,
    Settlement,
    SplitBill,
)


def active_bills(bills: Iterable[SplitBill]) -> list[SplitBill]:
    """Bills that take part in settlement: not settled, with participants."""
    return [bill for bill in bills if bill.is_active]


def _participant_order(
    bills: list[SplitBill],
    participants: Iterable[Participant],
) -> list[str]:
    order = [p.id for p in participants]
    seen = set(order)
    for bill in bills:
        for participant_id in (bill.payer_id, *bill.participant_ids):
            if participant_id not in seen:
                seen.add(participant_id)
                order.append(participant_id)
    return order


def compute_balances(
    bills: Iterable[SplitBill],
    participants: Iterable[Participant] = (),
) -> list[ParticipantBalance]:
    """
    Net position of every participant over the active bills.

    paid is the total of bills a participant paid for; owed is the sum of
    their own shares. Settled and empty bills are skipped.
    """
    bills = active_bills(bills)
    balances = {
        participant_id: ParticipantBalance(participant_id=participant_id)
        for participant_id in _participant_order(bills, participants)
    }

    for bill in bills:
        payer = balances[bill.payer_id]
        payer.paid += bill.total_amount
        for participant_id in bill.participant_ids:
            balances[participant_id].owed += bill.share_of(participant_id)

    return list(balances.values())


def resolve_settlements(
    bills: Iterable[SplitBill],
    participants: Iterable[Participant] = (),
    epsilon: Decimal = CENT,
) -> list[Settlement]:
    """
    Turn active bills into payment instructions that zero every net balance.

    Each debtor, in order, pays creditors in order: the amount is
    min(what the debtor still owes, what the creditor is still owed).
    Balances within epsilon of zero are ignored, and so are transfers of
    epsilon or less, so rounding residue never becomes a phantom payment.
    """
    balances = compute_balances(bills, participants)

    creditors = [[b.participant_id, b.net] for b in balances if b.net > epsilon]
    debtors = [[b.participant_id, -b.net] for b in balances if b.net < -epsilon]

    settlements = []
    creditor_index = 0
    for debtor in debtors:
        while debtor[1] > epsilon and creditor_index < len(creditors):
            creditor = creditors[creditor_index]
            amount = min(debtor[1], creditor[1])
            if amount > epsilon:
                settlements.append(Settlement(
                    from_participant=debtor[0],
                    to_participant=creditor[0],
                    amount=amount,
                ))
            debtor[1] -= amount
            creditor[1] -= amount
            if creditor[1] <= epsilon:
                creditor_index += 1

    return settlements
