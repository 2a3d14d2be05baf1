"""Tests for seasonal_sis.trial — seeding and the single-trial loop."""

import io

import numpy as np
import pytest

from seasonal_sis.engine import EventEngine
from seasonal_sis.network import ContactNetwork, complete_graph, lattice
from seasonal_sis.snapshots import MemorySink, TabularSink
from seasonal_sis.state import EpidemicState
from seasonal_sis.transmissibility import TransmissibilitySchedule
from seasonal_sis.trial import (
    infect_random_node,
    run_single_trial,
    seed_count,
    seed_infection,
)
from seasonal_sis.types import EmptyNetwork, InvalidParameter


def _engine(infection_weight=0.5):
    return EventEngine(TransmissibilitySchedule(10, 20, 2.0, 0.0),
                       infection_weight=infection_weight)


# ── Seeding ───────────────────────────────────────────────────────────

class TestSeedCount:
    @pytest.mark.parametrize("f, n, expected", [
        (0.0, 10, 1),
        (-1.0, 10, 1),
        (0.5, 10, 5),
        (1.0, 10, 10),
        (0.26, 10, 3),
        (0.01, 10, 1),    # rounds to zero; at least one node is seeded
    ])
    def test_counts(self, f, n, expected):
        assert seed_count(f, n) == expected

    def test_fraction_above_one_rejected(self):
        with pytest.raises(InvalidParameter):
            seed_count(1.5, 10)


class TestSeedInfection:
    def test_distinct_nodes(self):
        state = EpidemicState(20)
        k = seed_infection(state, 0.5, np.random.default_rng(0))
        assert k == 10
        assert state.infected_count() == 10
        assert state.scan_infected() == 10

    def test_single_node_for_nonpositive_fraction(self):
        state = EpidemicState(20)
        assert seed_infection(state, 0.0, np.random.default_rng(0)) == 1
        assert state.infected_count() == 1

    def test_seeding_is_uniform(self):
        counts = np.zeros(5)
        rng = np.random.default_rng(4)
        state = EpidemicState(5)
        for _ in range(5000):
            state.reset()
            seed_infection(state, 0.0, rng)
            counts += state.infected
        np.testing.assert_allclose(counts / 5000, 0.2, atol=0.03)

    def test_infect_random_node_picks_susceptible(self):
        state = EpidemicState(3)
        state.set_infected(0, True)
        state.set_infected(2, True)
        assert infect_random_node(state, np.random.default_rng(0)) == 1
        assert state.infected_count() == 3

    def test_infect_random_node_when_all_infected(self):
        state = EpidemicState(2)
        state.set_infected(0, True)
        state.set_infected(1, True)
        with pytest.raises(InvalidParameter):
            infect_random_node(state, np.random.default_rng(0))


# ── Trial loop ────────────────────────────────────────────────────────

class TestRunSingleTrial:
    def test_single_node_network(self):
        """One seeded node, no contacts: a single recovery ends the trial."""
        net = ContactNetwork([[]])
        result = run_single_trial(_engine(), net, 1.0, 100.0,
                                  np.random.default_rng(0))
        assert result.n_steps == 1
        assert result.final_infected == 0
        assert result.extinct
        assert result.final_time > 0.0

    def test_zero_horizon_takes_no_step(self):
        result = run_single_trial(_engine(), complete_graph(10), 0.5, 0.0,
                                  np.random.default_rng(0))
        assert result.n_steps == 0
        assert result.final_infected == 5
        assert result.n_seeded == 5

    def test_stops_at_horizon_or_extinction(self):
        net = lattice(6, 6)
        for seed in range(5):
            result = run_single_trial(_engine(1.5), net, 0.2, 5.0,
                                      np.random.default_rng(seed))
            assert result.extinct or result.final_time >= 5.0

    def test_snapshot_every_step(self):
        sink = MemorySink()
        result = run_single_trial(_engine(), complete_graph(10), 0.3, 3.0,
                                  np.random.default_rng(1), sink=sink,
                                  label="Cont", snapshot_interval=1)
        assert len(sink) == result.n_steps
        assert sink.records[0].time == 0.0
        assert all(r.label == "Cont" for r in sink.records)
        assert np.all(np.diff(sink.times()) > 0)
        fractions = sink.fractions()
        assert np.all((fractions >= 0.0) & (fractions <= 1.0))
        assert fractions[-1] == pytest.approx(result.final_prevalence)

    def test_snapshot_interval(self):
        sink = MemorySink()
        result = run_single_trial(_engine(), complete_graph(10), 0.5, 20.0,
                                  np.random.default_rng(2), sink=sink,
                                  snapshot_interval=7)
        assert len(sink) == -(-result.n_steps // 7)

    def test_progress_callback(self):
        calls = []
        result = run_single_trial(
            _engine(), complete_graph(8), 0.5, 2.0, np.random.default_rng(3),
            snapshot_interval=2,
            progress_callback=lambda t, n: calls.append((t, n)),
        )
        assert len(calls) == -(-result.n_steps // 2)

    def test_tabular_output(self):
        buf = io.StringIO()
        sink = TabularSink(buf)
        run_single_trial(_engine(), complete_graph(10), 1.0, 1.0,
                         np.random.default_rng(0), sink=sink, label="Osci",
                         snapshot_interval=1)
        lines = buf.getvalue().splitlines()
        assert lines[0] == "model\ttime\ti"
        assert lines[1] == "Osci\t0.000\t0.90000"
        assert len(lines) == sink.n_written + 1

    def test_reproducible(self):
        net = complete_graph(15)
        a = run_single_trial(_engine(), net, 0.2, 10.0, np.random.default_rng(8))
        b = run_single_trial(_engine(), net, 0.2, 10.0, np.random.default_rng(8))
        assert a == b

    def test_reuses_state(self):
        net = complete_graph(6)
        state = EpidemicState(6)
        state.advance(50.0)
        result = run_single_trial(_engine(), net, 0.5, 1.0,
                                  np.random.default_rng(0), state=state)
        assert state.t == result.final_time
        assert state.infected_count() == result.final_infected

    def test_empty_network(self):
        with pytest.raises(EmptyNetwork):
            run_single_trial(_engine(), ContactNetwork([]), 0.5, 1.0,
                             np.random.default_rng(0))

    def test_invalid_arguments(self):
        net = complete_graph(4)
        with pytest.raises(InvalidParameter):
            run_single_trial(_engine(), net, 0.5, -1.0, np.random.default_rng(0))
        with pytest.raises(InvalidParameter):
            run_single_trial(_engine(), net, 0.5, 1.0, np.random.default_rng(0),
                             snapshot_interval=0)
        with pytest.raises(InvalidParameter):
            run_single_trial(_engine(), net, 2.0, 1.0, np.random.default_rng(0))
