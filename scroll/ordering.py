import logging
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from scroll.store import Store

logger = logging.getLogger(__name__)

FIRST_ORDER = 1.0
ORDER_STEP = 1.0
MIN_ORDER_GAP = 1e-9


def order_between(before: Optional[float], after: Optional[float]) -> float:
    if before is None and after is None:
        return FIRST_ORDER
    if before is None:
        return after / 2
    if after is None:
        return before + ORDER_STEP
    return (before + after) / 2


def has_room_between(before: Optional[float], after: Optional[float]) -> bool:
    candidate = order_between(before, after)
    if before is not None and not candidate > before:
        return False
    if after is not None and not candidate < after:
        return False
    if before is not None and after is not None and after - before < MIN_ORDER_GAP:
        return False
    if before is None and after is not None and after < MIN_ORDER_GAP:
        return False
    return True


def sequential_orders(count: int) -> List[float]:
    return [FIRST_ORDER + index * ORDER_STEP for index in range(count)]


def rebalance(orders: Sequence[float]) -> List[float]:
    """Integer-spaced keys for siblings, preserving their current relative order."""
    ranked = sorted(range(len(orders)), key=lambda index: orders[index])
    rebalanced = [0.0] * len(orders)
    for position, index in enumerate(ranked):
        rebalanced[index] = FIRST_ORDER + position * ORDER_STEP
    logger.info("order_keys_rebalanced:%s", len(orders))
    return rebalanced


def move_node(
    store: "Store",
    document_id: str,
    node_id: str,
    before_id: Optional[str] = None,
    after_id: Optional[str] = None,
) -> float:
    siblings = store.get_nodes(document_id)
    orders = {stored.id: stored.order for stored in siblings}
    if node_id not in orders:
        raise LookupError("node_not_found")
    for neighbour_id in (before_id, after_id):
        if neighbour_id is not None and (neighbour_id not in orders or neighbour_id == node_id):
            raise LookupError("neighbour_not_found")
    before = orders[before_id] if before_id is not None else None
    after = orders[after_id] if after_id is not None else None
    if before is not None and after is not None and before >= after:
        raise ValueError("neighbours_out_of_order")
    if not has_room_between(before, after):
        others = [stored.id for stored in siblings if stored.id != node_id]
        rebalanced = dict(zip(others, rebalance([orders[other] for other in others])))
        store.set_node_orders(document_id, rebalanced)
        before = rebalanced[before_id] if before_id is not None else None
        after = rebalanced[after_id] if after_id is not None else None
    order = order_between(before, after)
    store.set_node_orders(document_id, {node_id: order})
    return order
