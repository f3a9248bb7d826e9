"""Dependency-ordered scheduling of extractors into waves."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from brandkit.extractors.base import ExtractorDefinition
from brandkit.models.common import ExtractorId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Schedule:
    """Waves of extractors plus anything that could not be scheduled.

    Every extractor's prerequisites sit in strictly earlier waves.
    Extractors in ``unscheduled`` are part of a cycle or depend on one
    (or on an unknown id) and are never run.
    """

    waves: list[list[ExtractorId]]
    unscheduled: list[ExtractorId] = field(default_factory=list)

    @property
    def ordered(self) -> list[ExtractorId]:
        return [eid for wave in self.waves for eid in wave]


def build_schedule(definitions: Iterable[ExtractorDefinition]) -> Schedule:
    """Group extractors into waves from their depends_on graph.

    Within a wave, definition order is preserved. When no further wave
    can be formed, scheduling stops and the remainder is reported.

    Args:
        definitions: Extractor definitions to schedule

    Returns:
        Schedule with waves and unscheduled ids
    """
    ordered = list(definitions)
    deps = {d.id: set(d.depends_on) for d in ordered}
    remaining = [d.id for d in ordered]
    done: set[ExtractorId] = set()
    waves: list[list[ExtractorId]] = []

    while remaining:
        wave = [eid for eid in remaining if deps[eid] <= done]
        if not wave:
            logger.error(
                "Dependency cycle or unknown prerequisite, not scheduling: "
                f"{[e.value for e in remaining]}"
            )
            break
        waves.append(wave)
        done.update(wave)
        remaining = [eid for eid in remaining if eid not in done]

    return Schedule(waves=waves, unscheduled=remaining)
