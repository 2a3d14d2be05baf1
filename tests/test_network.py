"""Tests for seasonal_sis.network — topology provider and builders."""

import networkx as nx
import numpy as np
import pytest

from seasonal_sis.config import NetworkSection
from seasonal_sis.network import (
    ContactNetwork,
    build_network,
    complete_graph,
    lattice,
    random_graph,
    regular_graph,
)
from seasonal_sis.types import EmptyNetwork, InvalidParameter


class TestContactNetwork:
    def test_from_adjacency(self):
        net = ContactNetwork([[1], [0, 2], [1]], name="path")
        assert net.n_nodes == 3
        assert net.n_edges == 2
        np.testing.assert_array_equal(net.neighbors(1), [0, 2])
        assert net.degree(0) == 1

    def test_from_graph_relabels(self):
        g = nx.Graph()
        g.add_edges_from([("a", "b"), ("b", "c")])
        net = ContactNetwork.from_graph(g)
        assert net.n_nodes == 3
        np.testing.assert_array_equal(net.degrees(), [1, 2, 1])
        np.testing.assert_array_equal(np.sort(net.neighbors(1)), [0, 2])

    def test_self_loops_dropped(self):
        g = nx.Graph()
        g.add_edges_from([(0, 0), (0, 1)])
        net = ContactNetwork.from_graph(g)
        np.testing.assert_array_equal(net.neighbors(0), [1])

    def test_neighbors_read_only(self):
        net = complete_graph(3)
        with pytest.raises(ValueError):
            net.neighbors(0)[0] = 2

    def test_summary(self):
        assert "4 nodes" in complete_graph(4).summary()


class TestBuilders:
    def test_complete(self):
        net = complete_graph(4)
        assert net.n_nodes == 4
        assert net.n_edges == 6
        np.testing.assert_array_equal(net.degrees(), [3, 3, 3, 3])

    def test_lattice(self):
        net = lattice(3, 3)
        assert net.n_nodes == 9
        assert net.n_edges == 12
        assert sorted(net.degrees()) == [2, 2, 2, 2, 3, 3, 3, 3, 4]

    def test_random_graph_empty_and_full(self):
        assert random_graph(20, 0.0, seed=1).n_edges == 0
        assert random_graph(20, 1.0, seed=1).n_edges == 190

    def test_random_graph_seeded(self):
        a = random_graph(50, 0.1, seed=3)
        b = random_graph(50, 0.1, seed=3)
        np.testing.assert_array_equal(a.degrees(), b.degrees())

    def test_regular(self):
        net = regular_graph(10, 3, seed=0)
        np.testing.assert_array_equal(net.degrees(), np.full(10, 3))

    def test_regular_odd_product_rejected(self):
        with pytest.raises(InvalidParameter):
            regular_graph(5, 3)


class TestBuildNetwork:
    @pytest.mark.parametrize("section, n_nodes", [
        (NetworkSection(kind="complete", n=7), 7),
        (NetworkSection(kind="lattice", lx=4, ly=5), 20),
        (NetworkSection(kind="random", n=30, p=0.2), 30),
        (NetworkSection(kind="regular", n=12, k=4), 12),
    ])
    def test_dispatch(self, section, n_nodes):
        assert build_network(section, seed=1).n_nodes == n_nodes

    def test_unknown_kind(self):
        with pytest.raises(InvalidParameter):
            build_network(NetworkSection(kind="scale_free"))

    def test_empty_network(self):
        with pytest.raises(EmptyNetwork):
            build_network(NetworkSection(kind="complete", n=0))
