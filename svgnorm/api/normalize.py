"""POST /api/normalize — run the normalization pipeline on one document."""

from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException

from svgnorm.config import Settings
from svgnorm.dependencies import get_settings
from svgnorm.engine.config import NormalizeConfig
from svgnorm.engine.context import NormalizeContext
from svgnorm.engine.pipeline import create_pipeline
from svgnorm.errors import SvgParseError
from svgnorm.models.requests import NormalizeRequest
from svgnorm.models.responses import NormalizeResponse
from svgnorm.svg.parser import load_svg
from svgnorm.svg.serializer import serialize_svg

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/normalize", response_model=NormalizeResponse)
async def normalize(
    req: NormalizeRequest,
    settings: Settings = Depends(get_settings),
) -> NormalizeResponse:
    start = time.perf_counter()

    try:
        document = load_svg(req.svg)
    except SvgParseError as e:
        logger.warning("Rejected SVG: %s", e)
        raise HTTPException(status_code=400, detail=str(e)) from e

    precision = req.precision if "precision" in req.model_fields_set else settings.default_precision
    config = NormalizeConfig(precision=precision, scale_stroke_width=req.scale_stroke_width)
    ctx = NormalizeContext(document=document, config=config)

    pipeline = create_pipeline(config)
    try:
        ctx = pipeline.run(ctx, set(req.passes) if req.passes is not None else None)
    except ValueError as e:
        # Unknown pass ids
        raise HTTPException(status_code=400, detail=str(e)) from e

    elapsed = (time.perf_counter() - start) * 1000

    return NormalizeResponse(
        svg=serialize_svg(ctx.document),
        diagnostics=ctx.diagnostics,
        passes_completed=ctx.completed_passes,
        errors=ctx.errors,
        processing_time_ms=round(elapsed, 1),
    )
