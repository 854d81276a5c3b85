"""Decode and translate routes for the diffhelper API."""

import logging
from typing import Any, Dict

from fastapi import APIRouter

from ..models import DecodeRequest, TranslateRequest
from ..service import TranslateService

router = APIRouter(tags=["translate"])

logger = logging.getLogger(__name__)

translate_service = TranslateService()


@router.post("/decode")
def decode(request: DecodeRequest) -> Dict[str, Any]:
    """Decode raw change lines into structured events."""
    logger.info("Received decode request", extra={"lines": len(request.lines)})
    return translate_service.decode_lines(request.lines)


@router.post("/translate")
def translate(request: TranslateRequest) -> Dict[str, Any]:
    """Translate a raw change stream into rendered diff output."""
    logger.info(
        "Received translate request",
        extra={"bytes": len(request.input), "rename_mode": request.rename_mode},
    )
    return translate_service.translate(
        request.input,
        nul_terminated=request.nul_terminated,
        reverse=request.reverse,
        rename_mode=request.rename_mode,
        score=request.score,
        patch=request.patch,
        pickaxe=request.pickaxe,
        paths=request.paths,
    )
