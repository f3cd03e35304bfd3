"""Pass registry — normalization passes register themselves with a decorator.

Usage:
    @normalization_pass(id="N2.01", stage=Stage.DEFINITIONS, dependencies=["N1.02"])
    def purge_definitions(ctx: NormalizeContext) -> None:
        purge_defs(ctx.document)

Passes run stage by stage. Inside a stage, declared dependencies decide the
order and the pass id breaks ties. A dependency may point at the same or an
earlier stage, never a later one.
"""

from __future__ import annotations

import enum
import graphlib
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from svgnorm.engine.context import NormalizeContext

logger = logging.getLogger(__name__)

PassFn = Callable[["NormalizeContext"], None]


class Stage(enum.IntEnum):
    GEOMETRY = 0
    REFERENCES = 1
    DEFINITIONS = 2
    OUTPUT = 3


@dataclass
class PassSpec:
    id: str
    stage: Stage
    fn: PassFn
    dependencies: list[str] = field(default_factory=list)
    description: str = ""

    @property
    def sort_key(self) -> tuple[int, str]:
        return (int(self.stage), self.id)


class PassRegistry:
    """Normalization passes by id."""

    def __init__(self) -> None:
        self._passes: dict[str, PassSpec] = {}

    def register(self, spec: PassSpec) -> None:
        if spec.id in self._passes:
            raise ValueError(f"Duplicate pass ID: {spec.id}")
        self._passes[spec.id] = spec
        logger.debug("Registered pass %s (%s)", spec.id, spec.stage.name)

    def get(self, pass_id: str) -> PassSpec:
        return self._passes[pass_id]

    def all(self) -> list[PassSpec]:
        return sorted(self._passes.values(), key=lambda s: s.sort_key)

    def resolve_order(self, requested_ids: set[str] | None = None) -> list[PassSpec]:
        """Order the requested passes (all of them when None).

        Dependencies outside the request are not pulled in: a pass skipped
        on purpose stays skipped, and its dependents run against the tree
        as it stands.
        """
        if requested_ids is None:
            pool = dict(self._passes)
        else:
            unknown = requested_ids - set(self._passes)
            if unknown:
                raise ValueError(f"Unknown pass IDs: {sorted(unknown)}")
            pool = {pid: self._passes[pid] for pid in requested_ids}

        sorter: graphlib.TopologicalSorter[str] = graphlib.TopologicalSorter()
        for spec in pool.values():
            deps = [dep for dep in spec.dependencies if dep in pool]
            for dep in deps:
                if pool[dep].stage > spec.stage:
                    raise ValueError(
                        f"Pass {spec.id} ({spec.stage.name}) depends on {dep} "
                        f"from the later stage {pool[dep].stage.name}"
                    )
            sorter.add(spec.id, *deps)

        try:
            sorter.prepare()
        except graphlib.CycleError as e:
            raise ValueError(f"Circular dependency detected among: {set(e.args[1])}") from e

        ordered: list[PassSpec] = []
        ready: list[PassSpec] = []
        while sorter.is_active():
            ready.extend(pool[pid] for pid in sorter.get_ready())
            ready.sort(key=lambda s: s.sort_key)
            spec = ready.pop(0)
            ordered.append(spec)
            sorter.done(spec.id)
        return ordered

    @property
    def count(self) -> int:
        return len(self._passes)


_registry = PassRegistry()


def get_registry() -> PassRegistry:
    return _registry


def normalization_pass(
    *,
    id: str,
    stage: Stage,
    dependencies: list[str] | None = None,
    description: str = "",
):
    """Register the decorated function as a normalization pass."""

    def decorator(fn: PassFn) -> PassFn:
        _registry.register(
            PassSpec(id=id, stage=stage, fn=fn, dependencies=dependencies or [], description=description)
        )
        return fn

    return decorator
