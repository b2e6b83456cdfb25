from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from app.core.dependencies import get_locale, get_product_service
from app.core.localization import localize_message
from app.core.storage import StoredFile
from app.schemas import MessageResponse, ProductListResponse, ProductRead
from app.services import ProductService
from app.services import exceptions as service_exceptions
from app.services.product_service import DEFAULT_LIMIT, resolve_offset

PRODUCT_FORM_FIELDS = ("name", "description", "price", "category", "image")

router = APIRouter(prefix="/products", tags=["products"])


def _http_error(exc: service_exceptions.ServiceError, locale: str) -> HTTPException:
    if isinstance(exc, service_exceptions.ValidationError):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(exc, service_exceptions.NotFoundError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=localize_message(str(exc), locale))


async def _read_product_form(request: Request) -> dict[str, Any]:
    form = await request.form()
    data: dict[str, Any] = {}
    for key in PRODUCT_FORM_FIELDS:
        value = form.get(key)
        if isinstance(value, UploadFile):
            content = await value.read()
            if not value.filename and not content:
                continue
            value = StoredFile(filename=value.filename or "", content_type=value.content_type, content=content)
        if value is not None:
            data[key] = value
    return data


@router.get("", response_model=ProductListResponse)
def list_products(
    search: Optional[str] = Query(default=None),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1),
    offset: Optional[int] = Query(default=None, ge=0),
    page: Optional[int] = Query(default=None, ge=1),
    service: ProductService = Depends(get_product_service),
    locale: str = Depends(get_locale),
):
    try:
        return service.list_products(search=search, limit=limit, offset=resolve_offset(limit, offset, page))
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc, locale) from exc


@router.get("/{product_id}", response_model=ProductRead)
def get_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
    locale: str = Depends(get_locale),
):
    try:
        return service.get_product(product_id)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc, locale) from exc


@router.post("", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
async def create_product(
    request: Request,
    service: ProductService = Depends(get_product_service),
    locale: str = Depends(get_locale),
):
    form = await _read_product_form(request)
    try:
        return await run_in_threadpool(service.create_product, form)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc, locale) from exc


@router.put("/{product_id}", response_model=ProductRead)
async def update_product(
    product_id: str,
    request: Request,
    service: ProductService = Depends(get_product_service),
    locale: str = Depends(get_locale),
):
    form = await _read_product_form(request)
    try:
        return await run_in_threadpool(service.update_product, product_id, form)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc, locale) from exc


@router.delete("/{product_id}", response_model=MessageResponse)
def delete_product(
    product_id: str,
    service: ProductService = Depends(get_product_service),
    locale: str = Depends(get_locale),
):
    try:
        service.delete_product(product_id)
    except service_exceptions.ServiceError as exc:
        raise _http_error(exc, locale) from exc
    return MessageResponse(message=localize_message("Product deleted successfully", locale))
