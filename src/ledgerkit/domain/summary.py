"""Summary aggregation over ledger roots."""

from collections import defaultdict
from decimal import Decimal
from typing import Any, Iterable

from ledgerkit.domain.entities import (
    CategoryStats,
    ExpenseCategory,
    LedgerNode,
    LedgerStats,
    PaymentStatus,
)

UNLABELLED = "Unlabelled"


def _add(stats: CategoryStats, node: LedgerNode) -> CategoryStats:
    return CategoryStats(count=stats.count + 1, amount=stats.amount + node.total_amount)


def build_stats(nodes: Iterable[LedgerNode]) -> LedgerStats:
    """Compute per-category counts and totals.

    Counts roots only; amounts are root totals including sub-entries.

    Args:
        nodes: Ledger roots, typically the full reconciled set

    Returns:
        LedgerStats with total, company, client and invoice buckets
    """
    buckets = {category: CategoryStats() for category in ExpenseCategory}
    total = CategoryStats()
    for node in nodes:
        buckets[node.category] = _add(buckets[node.category], node)
        total = _add(total, node)

    return LedgerStats(
        total=total,
        company=buckets[ExpenseCategory.COMPANY],
        client=buckets[ExpenseCategory.CLIENT],
        invoice=buckets[ExpenseCategory.INVOICE],
    )


def build_label_breakdown(nodes: Iterable[LedgerNode]) -> list[dict[str, Any]]:
    """Aggregate roots by category label.

    Returns:
        List of dicts with label, category, count and amount, largest
        amount first
    """
    summary_dict: dict[tuple[str, ExpenseCategory], dict[str, Any]] = defaultdict(
        lambda: {"count": 0, "amount": Decimal("0")}
    )
    for node in nodes:
        label = node.entry.category_label or UNLABELLED
        group = summary_dict[(label, node.category)]
        group["count"] += 1
        group["amount"] += node.total_amount

    results = [
        {
            "label": label,
            "category": category,
            "count": data["count"],
            "amount": data["amount"],
        }
        for (label, category), data in summary_dict.items()
    ]
    results.sort(key=lambda r: (-r["amount"], r["label"].lower(), r["category"].value))
    return results


def build_status_breakdown(nodes: Iterable[LedgerNode]) -> dict[PaymentStatus, CategoryStats]:
    """Aggregate root totals by payment status.

    Status is per entry, so each sub-entry counts toward its own status.
    """
    amounts = {status: Decimal("0") for status in PaymentStatus}
    counts = {status: 0 for status in PaymentStatus}
    for node in nodes:
        counts[node.entry.payment_status] += 1
        amounts[node.entry.payment_status] += node.entry.amount
        for child in node.children:
            amounts[child.payment_status] += child.amount

    return {
        status: CategoryStats(count=counts[status], amount=amounts[status])
        for status in PaymentStatus
    }
