"""Pipeline orchestrator — runs passes in dependency order with config gating."""

from __future__ import annotations

import importlib
import logging
import pkgutil
import time

from svgnorm.engine.config import NormalizeConfig
from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.registry import PassRegistry, PassSpec, get_registry
from svgnorm.svg.document import SvgDocument

logger = logging.getLogger(__name__)

ROUND_PASS_ID = "N3.01"


def load_passes() -> None:
    """Import all pass modules so @normalization_pass decorators fire."""
    package = importlib.import_module("svgnorm.engine.passes")
    for _, module_name, _ in pkgutil.iter_modules(package.__path__):
        importlib.import_module(f"svgnorm.engine.passes.{module_name}")


class Pipeline:
    """Orchestrates the normalization passes."""

    def __init__(
        self,
        registry: PassRegistry | None = None,
        config: NormalizeConfig | None = None,
    ) -> None:
        self.registry = registry or get_registry()
        self.config = config or NormalizeConfig()

    def run(self, ctx: NormalizeContext, pass_ids: set[str] | None = None) -> NormalizeContext:
        """Run every pass (or only ``pass_ids``) on the given context."""
        start = time.perf_counter()

        skip_ids = self._gate(ctx)
        if pass_ids is None:
            pass_ids = {s.id for s in self.registry.all()}
        ordered = self.registry.resolve_order(pass_ids - skip_ids)

        logger.info(
            "Pipeline: %d passes queued (%d skipped)",
            len(ordered),
            len(pass_ids & skip_ids),
        )

        for spec in ordered:
            self._run_spec(ctx, spec)

        total = (time.perf_counter() - start) * 1000
        logger.info(
            "Pipeline complete: %d/%d passes in %.0fms, %d diagnostics",
            len(ctx.completed_passes),
            len(ordered),
            total,
            len(ctx.diagnostics),
        )
        return ctx

    def _run_spec(self, ctx: NormalizeContext, spec: PassSpec) -> None:
        t0 = time.perf_counter()
        try:
            spec.fn(ctx)
            ctx.completed_passes.append(spec.id)
            elapsed = (time.perf_counter() - t0) * 1000
            logger.debug("  %s completed in %.1fms", spec.id, elapsed)
        except Exception as e:
            ctx.errors[spec.id] = str(e)
            logger.warning("  %s FAILED: %s", spec.id, e)

    def _gate(self, ctx: NormalizeContext) -> set[str]:
        """Passes to leave out: explicit skips, and rounding when no precision is set."""
        skip = set(self.config.skip_passes) | set(ctx.config.skip_passes)
        if ctx.config.precision is None:
            skip.add(ROUND_PASS_ID)
        return skip


def create_pipeline(config: NormalizeConfig | None = None) -> Pipeline:
    """Factory function for creating a pipeline with every pass loaded."""
    load_passes()
    return Pipeline(config=config)


def cleanup(document: SvgDocument, config: NormalizeConfig | None = None) -> NormalizeContext:
    """Run the full fixed-order normalization on a loaded document."""
    config = config or NormalizeConfig()
    ctx = NormalizeContext(document=document, config=config)
    return create_pipeline(config).run(ctx)
