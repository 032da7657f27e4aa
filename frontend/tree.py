# frontend/tree.py
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

FOLDER_TYPE = "folder"


def is_folder(doc: dict) -> bool:
    return doc.get("type") == FOLDER_TYPE


@dataclass
class TreeNode:
    document: dict
    children: List["TreeNode"] = field(default_factory=list)

    @property
    def id(self) -> int:
        return self.document["id"]


def _sort_key(doc: dict):
    # folders first, then by name
    return (not is_folder(doc), doc.get("name", "").lower(), doc["id"])


def build_forest(documents: List[dict]) -> List[TreeNode]:
    """
    Builds the folder tree from the flat list. Documents whose parent no
    longer exists (e.g. after the folder was deleted) are shown at the root.
    """
    nodes = {doc["id"]: TreeNode(doc) for doc in sorted(documents, key=_sort_key)}
    roots: List[TreeNode] = []
    for node in nodes.values():
        parent = nodes.get(node.document.get("parentId"))
        if parent is None or parent is node:
            roots.append(node)
        else:
            parent.children.append(node)
    return roots


def walk(forest: List[TreeNode], expanded: Optional[Set[int]] = None, depth: int = 0) -> Iterator[Tuple[TreeNode, int]]:
    """Depth-first (node, depth) pairs. With `expanded`, collapsed folders are not descended into."""
    for node in forest:
        yield node, depth
        if expanded is None or node.id in expanded:
            yield from walk(node.children, expanded, depth + 1)


def _children_index(documents: List[dict]) -> Dict[Optional[int], List[int]]:
    index: Dict[Optional[int], List[int]] = {}
    for doc in documents:
        index.setdefault(doc.get("parentId"), []).append(doc["id"])
    return index


def descendant_ids(documents: List[dict], document_id: int) -> Set[int]:
    children = _children_index(documents)
    found: Set[int] = set()
    stack = [document_id]
    while stack:
        for child in children.get(stack.pop(), []):
            if child not in found:
                found.add(child)
                stack.append(child)
    return found


def can_move(documents: List[dict], dragged_id: int, target_id: Optional[int]) -> bool:
    """A document may be dropped on the root (None) or on a folder outside its own subtree."""
    if target_id is None:
        return True
    if target_id == dragged_id:
        return False
    target = next((d for d in documents if d["id"] == target_id), None)
    if target is None or not is_folder(target):
        return False
    return target_id not in descendant_ids(documents, dragged_id)


def move_targets(documents: List[dict], dragged_id: int) -> List[Optional[int]]:
    """Every valid drop target for `dragged_id`, root first."""
    folders = [d["id"] for d in sorted(documents, key=_sort_key) if is_folder(d)]
    return [None] + [f for f in folders if can_move(documents, dragged_id, f)]


@dataclass
class TreeState:
    """Transient UI state of the sidebar tree. Never sent to the server."""
    selected_id: Optional[int] = None
    expanded: Set[int] = field(default_factory=set)
    drag_source: Optional[int] = None
    drag_target: Optional[int] = None

    def toggle(self, folder_id: int) -> None:
        if folder_id in self.expanded:
            self.expanded.discard(folder_id)
        else:
            self.expanded.add(folder_id)

    def start_drag(self, document_id: int) -> None:
        self.drag_source = document_id
        self.drag_target = None

    def clear_drag(self) -> None:
        self.drag_source = None
        self.drag_target = None

    def forget(self, document_id: int) -> None:
        """Drop references to a deleted document."""
        if self.selected_id == document_id:
            self.selected_id = None
        self.expanded.discard(document_id)
        if self.drag_source == document_id:
            self.clear_drag()

    def to_dict(self) -> dict:
        return {
            "selected_id": self.selected_id,
            "expanded": sorted(self.expanded),
            "drag_source": self.drag_source,
            "drag_target": self.drag_target,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TreeState":
        return cls(
            selected_id=data.get("selected_id"),
            expanded=set(data.get("expanded", [])),
            drag_source=data.get("drag_source"),
            drag_target=data.get("drag_target"),
        )


def move_document(api, dragged_id: int, target_id: Optional[int]) -> dict:
    """
    Issue the single update for a drop. The caller re-fetches the list
    afterwards; nothing is changed locally.
    """
    return api.update_document(dragged_id, parentId=target_id)
