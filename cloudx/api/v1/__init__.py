"""API v1 router."""

from fastapi import APIRouter

from cloudx.api.v1.buckets import router as buckets_router
from cloudx.api.v1.keys import router as keys_router
from cloudx.api.v1.objects import router as objects_router

router = APIRouter()

# Include sub-routers
router.include_router(keys_router, prefix="/auth", tags=["auth"])
router.include_router(buckets_router, prefix="/storage", tags=["buckets"])
router.include_router(objects_router, prefix="/storage", tags=["objects"])
