"""API route registration for diffhelper."""

from fastapi import APIRouter

from . import meta, translate

router = APIRouter()
router.include_router(meta.router)
router.include_router(translate.router)

__all__ = ["router"]
