"""Ontology DAG with id-based edges and memoized closures.

Nodes live in an arena (a list indexed by integer position). Parent and
child edges are plain lists of arena indices in both directions, so no
node holds a reference to another. Ancestor and descendant closures are
computed on demand and cached per node.
"""

import threading
from collections import deque
from typing import Iterable, Protocol

import polars as pl
import structlog

from termfinder.ontology.models import Aspect, Category

logger = structlog.get_logger(__name__)


class OntologyProvider(Protocol):
    """Operations the enrichment core needs from an ontology."""

    @property
    def root(self) -> Category: ...

    def root_children(self) -> list[Category]: ...

    def aspect_branch(self, aspect: Aspect) -> Category | None: ...

    def get(self, category_id: str) -> Category | None: ...

    def __contains__(self, category_id: object) -> bool: ...

    def children(self, category_id: str) -> list[Category]: ...

    def parents(self, category_id: str) -> list[Category]: ...

    def ancestors(self, category_id: str) -> frozenset[str]: ...


class OntologyGraph:
    """In-memory ontology DAG.

    Multiple parents per node are allowed. Construction rejects edges to
    unknown ids and cycles.
    """

    def __init__(
        self,
        categories: Iterable[Category],
        edges: Iterable[tuple[str, str]],
        root_id: str | None = None,
    ):
        """Build the graph.

        Args:
            categories: All nodes of the ontology
            edges: (child_id, parent_id) pairs
            root_id: Id of the root node. Inferred as the single node
                without parents when omitted.

        Raises:
            ValueError: On duplicate ids, unknown edge endpoints, a missing
                or ambiguous root, or a cycle
        """
        self._nodes: list[Category] = []
        self._index: dict[str, int] = {}

        for category in categories:
            if category.category_id in self._index:
                raise ValueError(f"Duplicate category id: {category.category_id}")
            self._index[category.category_id] = len(self._nodes)
            self._nodes.append(category)

        self._parents: list[list[int]] = [[] for _ in self._nodes]
        self._children: list[list[int]] = [[] for _ in self._nodes]

        for child_id, parent_id in edges:
            for endpoint in (child_id, parent_id):
                if endpoint not in self._index:
                    raise ValueError(f"Edge references unknown category: {endpoint}")
            child = self._index[child_id]
            parent = self._index[parent_id]
            if parent in self._parents[child]:
                continue
            self._parents[child].append(parent)
            self._children[parent].append(child)

        if root_id is None:
            roots = [i for i, parents in enumerate(self._parents) if not parents]
            if len(roots) != 1:
                raise ValueError(
                    f"Cannot infer root: found {len(roots)} nodes without parents"
                )
            self._root = roots[0]
        else:
            if root_id not in self._index:
                raise ValueError(f"Root category not in ontology: {root_id}")
            self._root = self._index[root_id]

        self._check_acyclic()

        self._ancestor_cache: dict[int, frozenset[str]] = {}
        self._descendant_cache: dict[int, frozenset[str]] = {}
        self._lock = threading.Lock()

        logger.info(
            "ontology_graph_built",
            node_count=len(self._nodes),
            root=self.root.category_id,
        )

    @classmethod
    def from_frames(
        cls,
        terms: pl.DataFrame,
        edges: pl.DataFrame,
        root_id: str | None = None,
    ) -> "OntologyGraph":
        """Build a graph from polars frames.

        Args:
            terms: Columns category_id, name, aspect (P/F/C or NULL)
            edges: Columns child_id, parent_id
            root_id: Optional explicit root id

        Returns:
            OntologyGraph instance
        """
        categories = [
            Category(
                category_id=row["category_id"],
                name=row["name"],
                aspect=Aspect(row["aspect"]) if row["aspect"] else None,
            )
            for row in terms.iter_rows(named=True)
        ]
        edge_pairs = [
            (row["child_id"], row["parent_id"])
            for row in edges.iter_rows(named=True)
        ]
        return cls(categories, edge_pairs, root_id=root_id)

    def _check_acyclic(self) -> None:
        """Kahn's algorithm over child->parent edges."""
        remaining = [len(children) for children in self._children]
        queue = deque(i for i, count in enumerate(remaining) if count == 0)
        visited = 0
        while queue:
            node = queue.popleft()
            visited += 1
            for parent in self._parents[node]:
                remaining[parent] -= 1
                if remaining[parent] == 0:
                    queue.append(parent)
        if visited != len(self._nodes):
            raise ValueError("Ontology contains a cycle")

    def _position(self, category_id: str) -> int:
        try:
            return self._index[category_id]
        except KeyError:
            raise KeyError(f"Category not in ontology: {category_id}") from None

    def _closure(self, start: int, edges: list[list[int]]) -> frozenset[str]:
        seen: set[int] = set()
        stack = list(edges[start])
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(edges[current])
        return frozenset(self._nodes[i].category_id for i in seen)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._index

    @property
    def root(self) -> Category:
        return self._nodes[self._root]

    def root_children(self) -> list[Category]:
        return [self._nodes[i] for i in self._children[self._root]]

    def aspect_branch(self, aspect: Aspect) -> Category | None:
        """Return the root child heading the given aspect, if any."""
        for child in self.root_children():
            if child.aspect == aspect:
                return child
        return None

    def get(self, category_id: str) -> Category | None:
        position = self._index.get(category_id)
        return None if position is None else self._nodes[position]

    def children(self, category_id: str) -> list[Category]:
        return [self._nodes[i] for i in self._children[self._position(category_id)]]

    def parents(self, category_id: str) -> list[Category]:
        return [self._nodes[i] for i in self._parents[self._position(category_id)]]

    def ancestors(self, category_id: str) -> frozenset[str]:
        """All ids reachable through parent edges, excluding the node itself."""
        position = self._position(category_id)
        cached = self._ancestor_cache.get(position)
        if cached is None:
            cached = self._closure(position, self._parents)
            with self._lock:
                self._ancestor_cache[position] = cached
        return cached

    def descendants(self, category_id: str) -> frozenset[str]:
        """All ids reachable through child edges, excluding the node itself."""
        position = self._position(category_id)
        cached = self._descendant_cache.get(position)
        if cached is None:
            cached = self._closure(position, self._children)
            with self._lock:
                self._descendant_cache[position] = cached
        return cached

    def is_ancestor_of(self, category_id: str, other_id: str) -> bool:
        """True if category_id is a (strict) ancestor of other_id."""
        return category_id in self.ancestors(other_id)

    def is_descendant_of(self, category_id: str, other_id: str) -> bool:
        """True if category_id is a (strict) descendant of other_id."""
        return category_id in self.descendants(other_id)

    def paths_to_root(self, category_id: str) -> list[tuple[str, ...]]:
        """Every parent-edge path from the node up to the root.

        Each path starts with category_id and ends with the root id.
        Paths are returned in lexical order.
        """
        start = self._position(category_id)
        paths: list[tuple[str, ...]] = []
        stack: list[tuple[int, tuple[str, ...]]] = [
            (start, (self._nodes[start].category_id,))
        ]
        while stack:
            node, path = stack.pop()
            if node == self._root:
                paths.append(path)
                continue
            for parent in self._parents[node]:
                stack.append((parent, path + (self._nodes[parent].category_id,)))
        return sorted(paths)
