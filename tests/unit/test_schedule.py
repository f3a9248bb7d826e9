"""Tests for dependency-wave scheduling."""

import itertools
from dataclasses import replace

from brandkit.extractors.base import ExtractorDefinition
from brandkit.extractors.registry import EXTRACTORS, definitions
from brandkit.models.common import ExtractorId
from brandkit.orchestration.schedule import build_schedule

B, C, P = ExtractorId.basics, ExtractorId.customer, ExtractorId.products


def with_deps(eid: ExtractorId, *deps: ExtractorId) -> ExtractorDefinition:
    definition = EXTRACTORS[eid]
    return replace(definition, config=replace(definition.config, depends_on=tuple(deps)))


def assert_valid_order(defs: list[ExtractorDefinition]) -> None:
    schedule = build_schedule(defs)
    wave_of = {eid: i for i, wave in enumerate(schedule.waves) for eid in wave}

    assert sorted(schedule.ordered) == sorted(d.id for d in defs)
    assert len(set(schedule.ordered)) == len(defs)
    for d in defs:
        for dep in d.depends_on:
            assert wave_of[dep] < wave_of[d.id]


class TestBuildSchedule:
    """Test build_schedule."""

    def test_registered_extractors_form_one_wave(self) -> None:
        """Independent extractors all run together, in registration order."""
        schedule = build_schedule(definitions())

        assert schedule.waves == [[B, C, P]]
        assert schedule.unscheduled == []

    def test_chain_produces_one_wave_per_step(self) -> None:
        schedule = build_schedule([with_deps(P, C), with_deps(C, B), with_deps(B)])

        assert schedule.waves == [[B], [C], [P]]

    def test_diamond_groups_siblings(self) -> None:
        schedule = build_schedule([with_deps(B), with_deps(C, B), with_deps(P, B)])

        assert schedule.waves == [[B], [C, P]]

    def test_every_acyclic_graph_yields_a_valid_permutation(self) -> None:
        """Waves concatenate to a permutation and prerequisites come first."""
        ids = [B, C, P]
        # Acyclic graphs over a fixed topological order, all input orders
        for topo in itertools.permutations(ids):
            pairs = [(topo[i], topo[j]) for i in range(3) for j in range(i + 1, 3)]
            for mask in range(2 ** len(pairs)):
                deps: dict[ExtractorId, list[ExtractorId]] = {eid: [] for eid in ids}
                for bit, (before, after) in enumerate(pairs):
                    if mask & (1 << bit):
                        deps[after].append(before)
                for order in itertools.permutations(ids):
                    assert_valid_order([with_deps(eid, *deps[eid]) for eid in order])

    def test_cycle_is_left_unscheduled(self) -> None:
        """A cycle stops scheduling; the independent part still runs."""
        schedule = build_schedule([with_deps(B), with_deps(C, P), with_deps(P, C)])

        assert schedule.waves == [[B]]
        assert schedule.unscheduled == [C, P]

    def test_unknown_prerequisite_is_left_unscheduled(self) -> None:
        schedule = build_schedule([with_deps(B), with_deps(C, P)])

        assert schedule.waves == [[B]]
        assert schedule.unscheduled == [C]

    def test_empty_input(self) -> None:
        schedule = build_schedule([])

        assert schedule.waves == []
        assert schedule.ordered == []
