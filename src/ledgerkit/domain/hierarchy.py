"""Grouping of normalized entries into roots with attached sub-entries."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Optional

from ledgerkit.domain.entities import (
    CategoryCorrection,
    CorrectionReason,
    Entry,
    ExpenseCategory,
    LedgerNode,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkResult:
    """Linker output: ordered roots plus the corrections applied to them."""

    roots: tuple[LedgerNode, ...] = ()
    corrections: tuple[CategoryCorrection, ...] = ()

    def entries(self) -> tuple[Entry, ...]:
        """Return every entry in the result, roots followed by their children."""
        flat: list[Entry] = []
        for node in self.roots:
            flat.append(node.entry)
            flat.extend(node.children)
        return tuple(flat)


def _timestamp(value: Optional[datetime]) -> float:
    return value.timestamp() if value is not None else float("-inf")


def ingestion_order_key(entry: Entry) -> tuple[float, str]:
    """Sort key for ingestion order (oldest first), ties broken by id."""
    return (_timestamp(entry.created_at), entry.id)


def duplicate_rank(record: object, created_at: Optional[datetime]) -> tuple[float, str]:
    """Rank copies sharing one id: the newest wins, then the greatest repr."""
    return (_timestamp(created_at), repr(record))


def _with_category(
    entry: Entry, category: ExpenseCategory, reason: CorrectionReason, corrections: list[CategoryCorrection]
) -> Entry:
    if entry.category is category:
        return entry
    corrections.append(
        CategoryCorrection(
            entry_id=entry.id, previous=entry.category.value, category=category, reason=reason
        )
    )
    return replace(entry, category=category)


def total_amount(entry: Entry, children: Iterable[Entry]) -> Decimal:
    """Return the root amount plus the amounts of its children."""
    return entry.amount + sum((child.amount for child in children), Decimal("0"))


def link_entries(entries: Iterable[Entry]) -> LinkResult:
    """Group a flat collection of normalized entries into roots.

    A child whose parent is missing, is itself a child, or is the child
    itself is promoted to a standalone root. Copies sharing an id collapse
    to the newest one. A family containing any
    booking-linked entry is entirely ``client``; otherwise children take
    their root's category.

    The result depends only on the set of entries, not on their order:
    roots are ordered newest first and children oldest first, ties broken
    by id.

    Args:
        entries: Normalized entries

    Returns:
        LinkResult with ordered roots and the category corrections applied
    """
    by_id: dict[str, Entry] = {}
    for entry in entries:
        kept = by_id.get(entry.id)
        if kept is not None:
            logger.warning("Duplicate entry id in snapshot", extra={"entry_id": entry.id})
            if duplicate_rank(kept, kept.created_at) >= duplicate_rank(entry, entry.created_at):
                continue
        by_id[entry.id] = entry

    root_ids: set[str] = {e.id for e in by_id.values() if e.parent_id is None}
    children_by_root: dict[str, list[Entry]] = {root_id: [] for root_id in root_ids}
    orphan_ids: set[str] = set()

    for entry in by_id.values():
        if entry.parent_id is None:
            continue
        if entry.parent_id in root_ids and entry.parent_id != entry.id:
            children_by_root[entry.parent_id].append(entry)
        else:
            logger.warning(
                "Orphaned sub-entry promoted to root",
                extra={"entry_id": entry.id, "parent_id": entry.parent_id},
            )
            orphan_ids.add(entry.id)
            children_by_root[entry.id] = []

    corrections: list[CategoryCorrection] = []
    nodes: list[LedgerNode] = []
    for root_id, children in children_by_root.items():
        root = by_id[root_id]
        children.sort(key=ingestion_order_key)

        if any(member.booking_id for member in children):
            root = _with_category(
                root, ExpenseCategory.CLIENT, CorrectionReason.BOOKING_REQUIRES_CLIENT, corrections
            )
        linked_children = tuple(
            _with_category(child, root.category, CorrectionReason.PARENT_MISMATCH, corrections)
            for child in children
        )

        nodes.append(
            LedgerNode(
                entry=root,
                children=linked_children,
                total_amount=total_amount(root, linked_children),
                is_orphan=root_id in orphan_ids,
            )
        )

    nodes.sort(key=lambda node: (-_timestamp(node.entry.created_at), node.id))
    corrections.sort(key=lambda c: c.entry_id)
    return LinkResult(roots=tuple(nodes), corrections=tuple(corrections))
