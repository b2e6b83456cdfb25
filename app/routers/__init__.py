from fastapi import APIRouter

from . import (
    files,
    health,
    products,
)


def get_api_router() -> APIRouter:
    router = APIRouter()
    router.include_router(health.router)
    router.include_router(products.router)
    router.include_router(files.router)
    return router
