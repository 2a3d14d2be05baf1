"""Contact network topology provider.

Wraps a networkx graph as read-only adjacency: node count plus a
neighbour array per node, with node labels mapped to 0..N-1. Infection
state lives in EpidemicState, never on the graph.

Topology generation is delegated to networkx:
  - lattice:   2-D square grid (lx × ly), no periodic boundary
  - random:    Erdős–Rényi G(n, p), no self-loops
  - regular:   random k-regular graph on n nodes
  - complete:  K_n
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, TYPE_CHECKING

import networkx as nx
import numpy as np

from seasonal_sis.types import EmptyNetwork, InvalidParameter

if TYPE_CHECKING:
    from seasonal_sis.config import NetworkSection


NETWORK_KINDS = ("lattice", "random", "regular", "complete")


class ContactNetwork:
    """Immutable adjacency of an undirected contact network.

    Args:
        adjacency: One sequence of neighbour ids per node, ids in 0..N-1.
        name: Human-readable description (for summaries only).
    """

    def __init__(self, adjacency: Sequence[Sequence[int]], name: str = ""):
        self._neighbors: List[np.ndarray] = [
            np.asarray(nbrs, dtype=np.int64) for nbrs in adjacency
        ]
        for arr in self._neighbors:
            arr.setflags(write=False)
        self.name = name

    @classmethod
    def from_graph(cls, graph: nx.Graph, name: Optional[str] = None) -> "ContactNetwork":
        """Build from a networkx graph, relabelling nodes in iteration order."""
        index: Dict = {label: i for i, label in enumerate(graph.nodes())}
        adjacency = [
            [index[nbr] for nbr in graph.neighbors(label) if nbr != label]
            for label in graph.nodes()
        ]
        return cls(adjacency, name=name if name is not None else str(graph))

    @property
    def n_nodes(self) -> int:
        return len(self._neighbors)

    @property
    def n_edges(self) -> int:
        return int(sum(len(n) for n in self._neighbors)) // 2

    def neighbors(self, node: int) -> np.ndarray:
        return self._neighbors[node]

    def degree(self, node: int) -> int:
        return len(self._neighbors[node])

    def degrees(self) -> np.ndarray:
        return np.array([len(n) for n in self._neighbors], dtype=np.int64)

    def summary(self) -> str:
        deg = self.degrees()
        mean_k = float(deg.mean()) if deg.size else 0.0
        return (
            f"ContactNetwork {self.name!r}: {self.n_nodes} nodes, "
            f"{self.n_edges} edges, <k>={mean_k:.2f}"
        )


# ═══════════════════════════════════════════════════════════════════════
# BUILDERS
# ═══════════════════════════════════════════════════════════════════════

def lattice(lx: int, ly: int) -> ContactNetwork:
    """2-D square lattice with lx × ly nodes."""
    return ContactNetwork.from_graph(
        nx.grid_2d_graph(lx, ly), name=f"lattice {lx}x{ly}"
    )


def random_graph(n: int, p: float, seed: Optional[int] = None) -> ContactNetwork:
    """Erdős–Rényi G(n, p)."""
    return ContactNetwork.from_graph(
        nx.gnp_random_graph(n, p, seed=seed), name=f"G({n}, {p})"
    )


def regular_graph(n: int, k: int, seed: Optional[int] = None) -> ContactNetwork:
    """Random k-regular graph (n * k must be even)."""
    if (n * k) % 2 != 0:
        raise InvalidParameter(f"n * k must be even for a regular graph, got {n}*{k}")
    return ContactNetwork.from_graph(
        nx.random_regular_graph(k, n, seed=seed), name=f"{k}-regular({n})"
    )


def complete_graph(n: int) -> ContactNetwork:
    """Complete graph K_n."""
    return ContactNetwork.from_graph(nx.complete_graph(n), name=f"K_{n}")


def build_network(section: "NetworkSection",
                  seed: Optional[int] = None) -> ContactNetwork:
    """Build the network selected by a NetworkSection.

    Raises:
        InvalidParameter: Unknown kind.
        EmptyNetwork: The resulting network has no nodes.
    """
    kind = section.kind
    if kind == "lattice":
        network = lattice(section.lx, section.ly)
    elif kind == "random":
        network = random_graph(section.n, section.p, seed=seed)
    elif kind == "regular":
        network = regular_graph(section.n, section.k, seed=seed)
    elif kind == "complete":
        network = complete_graph(section.n)
    else:
        raise InvalidParameter(
            f"network.kind must be one of {NETWORK_KINDS}, got '{kind}'"
        )
    if network.n_nodes == 0:
        raise EmptyNetwork(f"network '{network.name}' has no nodes")
    return network
