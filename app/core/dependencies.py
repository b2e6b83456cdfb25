from fastapi import Depends, Request
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.db import get_db_session
from app.core.storage import StorageService
from app.services import ProductService


def get_db() -> Session:
    yield from get_db_session()


def get_storage(request: Request) -> StorageService:
    return request.app.state.storage


def get_locale(request: Request) -> str:
    return getattr(request.state, "locale", None) or get_settings().DEFAULT_LOCALE


def get_product_service(
    db: Session = Depends(get_db),
    storage: StorageService = Depends(get_storage),
) -> ProductService:
    return ProductService(db, storage, folder=get_settings().PRODUCTS_FOLDER)
