import dataclasses
import uuid
from dataclasses import dataclass
from typing import Callable, Iterable, List, Sequence

from scroll.ordering import sequential_orders
from scroll.types import CitableNode, DocumentNode, StoredNode, StructuralNode


@dataclass(frozen=True)
class ReviewNode:
    node: DocumentNode
    ignored: bool = False


def generate_id() -> str:
    return str(uuid.uuid4())


def to_review_nodes(nodes: Iterable[DocumentNode], ignored_indices: Iterable[int] = ()) -> List[ReviewNode]:
    ignored = set(ignored_indices)
    return [ReviewNode(node=node, ignored=index in ignored) for index, node in enumerate(nodes)]


def resequence(nodes: Sequence[DocumentNode]) -> List[DocumentNode]:
    resequenced: List[DocumentNode] = []
    counter = 0
    for node in nodes:
        if isinstance(node, CitableNode):
            counter += 1
            resequenced.append(dataclasses.replace(node, number=counter, display_number=str(counter)))
        elif isinstance(node, StructuralNode):
            resequenced.append(node)
        else:
            raise TypeError(f"unknown_node_variant:{type(node).__name__}")
    return resequenced


def canonicalize(
    document_id: str,
    review_nodes: Sequence[ReviewNode],
    id_factory: Callable[[], str] = generate_id,
) -> List[StoredNode]:
    accepted = [review.node for review in review_nodes if not review.ignored]
    orders = sequential_orders(len(accepted))
    return [
        StoredNode(document_id=document_id, order=order, node=dataclasses.replace(node, id=id_factory()))
        for node, order in zip(accepted, orders)
    ]
