from starlette.middleware.base import BaseHTTPMiddleware

from .config import get_settings
from .localization import normalize_locale


class LocaleMiddleware(BaseHTTPMiddleware):
    """Resolve the response language once per request from Accept-Language."""

    async def dispatch(self, request, call_next):
        locale = normalize_locale(
            request.headers.get("accept-language"),
            default=get_settings().DEFAULT_LOCALE,
        )
        request.state.locale = locale
        response = await call_next(request)
        response.headers.setdefault("Content-Language", locale)
        return response
