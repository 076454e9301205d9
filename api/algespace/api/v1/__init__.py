"""
API v1 router aggregation.
"""
from fastapi import APIRouter
from algespace.api.v1.endpoints import (
    equalization, flexibility_training, flexibility_study, ck_study
)

api_router = APIRouter()

# Include all endpoint routers
# Note: Each router already defines its own prefix, so we don't add another one here
api_router.include_router(equalization.router)
api_router.include_router(flexibility_training.router)
api_router.include_router(flexibility_study.router)
api_router.include_router(ck_study.router)
