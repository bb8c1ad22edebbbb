"""
Collision layout for one calendar day.

Overlapping items are split into clusters and each cluster is laid out in
columns:
- items starting close together sit side by side (up to MAX_COLUMNS)
- an item starting SIDE_BY_SIDE_THRESHOLD_MINUTES or more after a column's
  occupants may reuse that column and stack on top of them
"""

import logging
from typing import Dict, List, Iterable

from .constants import MAX_COLUMNS, SIDE_BY_SIDE_THRESHOLD_MINUTES
from .time_slot import PositionedItem, ItemLayout

logger = logging.getLogger(__name__)

# ================================
# CLUSTERING
# ================================

class _DisjointSet:
    """Union-find over item positions in the sorted list."""
    def __init__(self, size: int):
        self.parent = list(range(size))

    def find(self, index: int) -> int:
        root = index
        while self.parent[root] != root:
            root = self.parent[root]
        # Path compression
        while self.parent[index] != root:
            self.parent[index], index = root, self.parent[index]
        return root

    def union(self, a: int, b: int):
        root_a, root_b = self.find(a), self.find(b)
        if root_a != root_b:
            # Keep the earlier item as the root so clusters stay in start order
            if root_b < root_a:
                root_a, root_b = root_b, root_a
            self.parent[root_b] = root_a


def sort_items(items: Iterable[PositionedItem]) -> List[PositionedItem]:
    """Sort by start time, ties keep their original order."""
    return [item for _, item in sorted(enumerate(items), key=lambda pair: (pair[1].start_minutes, pair[0]))]


def find_collision_clusters(items: Iterable[PositionedItem]) -> List[List[PositionedItem]]:
    """
    Partition items into collision clusters.

    A cluster is a maximal set of items connected by overlap, transitively:
    if A overlaps B and B overlaps C, all three share a cluster.
    Each cluster comes back sorted by start time.
    """
    ordered = sort_items(items)
    groups = _DisjointSet(len(ordered))

    for i, item in enumerate(ordered):
        for j in range(i + 1, len(ordered)):
            other = ordered[j]
            # Sorted by start, so nothing further along can overlap this item
            if other.start_minutes >= item.end_minutes:
                break
            groups.union(i, j)

    clusters: Dict[int, List[PositionedItem]] = {}
    for i, item in enumerate(ordered):
        clusters.setdefault(groups.find(i), []).append(item)

    return [clusters[root] for root in sorted(clusters)]

# ================================
# COLUMN ASSIGNMENT
# ================================

def _column_accepts(column: List[PositionedItem], item: PositionedItem) -> bool:
    """An item may join a column when every occupant is clear of it or started long before it."""
    for occupant in column:
        if not occupant.overlaps(item):
            continue
        if item.start_minutes - occupant.start_minutes >= SIDE_BY_SIDE_THRESHOLD_MINUTES:
            continue
        return False
    return True


def assign_columns_to_cluster(cluster: List[PositionedItem]) -> Dict[str, ItemLayout]:
    """
    Greedy first-fit column assignment for one cluster (already in start order).

    Items that would need a column past MAX_COLUMNS are stacked into the last one.
    """
    columns: List[List[PositionedItem]] = []
    assigned: Dict[str, int] = {}
    stack_orders: Dict[str, int] = {}

    for position, item in enumerate(cluster, start=1):
        column_index = None
        for index, column in enumerate(columns):
            if _column_accepts(column, item):
                column_index = index
                break

        if column_index is None:
            if len(columns) < MAX_COLUMNS:
                columns.append([])
                column_index = len(columns) - 1
            else:
                column_index = MAX_COLUMNS - 1

        columns[column_index].append(item)
        assigned[item.id] = column_index
        stack_orders[item.id] = position

    total_columns = max(assigned.values()) + 1 if assigned else 1
    return {
        item_id: ItemLayout(column_index, total_columns, stack_orders[item_id])
        for item_id, column_index in assigned.items()
    }

# ================================
# PUBLIC ENTRY POINT
# ================================

def calculate_collision_layout(items: Iterable[PositionedItem]) -> Dict[str, ItemLayout]:
    """
    Calculate the collision layout for all items of a single day.

    Args:
        items: Positioned items for one day, in any order

    Returns:
        Mapping from item id to its ItemLayout
    """
    unique: List[PositionedItem] = []
    seen = set()
    for item in items:
        if item.id in seen:
            logger.warning(f"Duplicate item id {item.id!r} in layout input, keeping the first occurrence")
            continue
        seen.add(item.id)
        unique.append(item)

    result: Dict[str, ItemLayout] = {}
    for cluster in find_collision_clusters(unique):
        if len(cluster) == 1:
            result[cluster[0].id] = ItemLayout(column_index=0, total_columns=1, stack_order=1)
            continue
        result.update(assign_columns_to_cluster(cluster))

    return result
