import threading

import httpx
import pytest

from app.client import (
    ActionResult,
    Debouncer,
    FormValidationError,
    ProductActions,
    ProductFeed,
    ProductFormValues,
    ProductsApi,
    ProductsApiError,
    QueryCache,
    validate_product_form,
)
from app.client.forms import MAX_IMAGE_BYTES
from app.core.storage import StoredFile

PNG = StoredFile(filename="chair.png", content_type="image/png", content=b"png-bytes")
CHAIR = {"name": "Chair", "description": "Oak chair", "price": "49.99", "category": "Furniture"}


class FakeProductsServer:
    """Serves /products from a list, recording every request it sees."""

    def __init__(self, count: int = 0):
        self.products = [
            {"id": str(index), "name": f"Product {index}", "price": 10.0 + index} for index in range(count)
        ]
        self.requests: list[httpx.Request] = []
        self.fail_writes = False

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if request.method == "GET" and path == "/products":
            page = int(request.url.params["page"])
            limit = int(request.url.params["limit"])
            search = request.url.params.get("search", "")
            matches = [p for p in self.products if search.lower() in p["name"].lower()]
            start = (page - 1) * limit
            return httpx.Response(
                200,
                json={
                    "data": matches[start : start + limit],
                    "total": len(matches),
                    "page": page,
                    "limit": limit,
                    "totalPages": -(-len(matches) // limit),
                },
            )
        if self.fail_writes and request.method in {"POST", "PUT", "DELETE"}:
            return httpx.Response(500, json={"error": "Error al crear el producto"})
        if request.method == "GET":
            product_id = path.rsplit("/", 1)[1]
            for product in self.products:
                if product["id"] == product_id:
                    return httpx.Response(200, json=product)
            return httpx.Response(404, json={"error": "Producto no encontrado"})
        if request.method == "POST":
            return httpx.Response(201, json={"id": "new", "name": "Chair"})
        if request.method == "PUT":
            return httpx.Response(200, json={"id": path.rsplit("/", 1)[1], "name": "Stool"})
        if request.method == "DELETE":
            return httpx.Response(200, json={"message": "Producto eliminado correctamente"})
        return httpx.Response(405)

    def list_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == "GET" and r.url.path == "/products"]


@pytest.fixture()
def server():
    return FakeProductsServer(count=12)


@pytest.fixture()
def api(server):
    with ProductsApi("http://api.test", transport=httpx.MockTransport(server)) as products_api:
        yield products_api


@pytest.fixture()
def query_cache():
    return QueryCache(stale_seconds=60)


# form validation


def test_form_accepts_complete_create_values():
    form = validate_product_form({**CHAIR, "image": PNG})

    assert form.price == 49.99
    assert form.image is PNG


def test_form_reports_every_missing_field_in_order():
    with pytest.raises(FormValidationError) as exc_info:
        validate_product_form({})

    assert exc_info.value.issues == [
        "Name is required",
        "Description is required",
        "Category is required",
        "Image is required",
    ]


@pytest.mark.parametrize(
    "price, message",
    [("abc", "Price must be a number"), ("nan", "Price must be a number"), ("-1", "Price must be positive")],
)
def test_form_price_rules(price, message):
    with pytest.raises(FormValidationError) as exc_info:
        validate_product_form({**CHAIR, "price": price, "image": PNG})

    assert exc_info.value.issues == [message]


def test_form_blank_price_is_zero():
    assert validate_product_form({**CHAIR, "price": "", "image": PNG}).price == 0


@pytest.mark.parametrize(
    "image",
    [
        StoredFile(filename="anim.gif", content_type="image/gif", content=b"gif"),
        StoredFile(filename="huge.png", content_type="image/png", content=b"x" * (MAX_IMAGE_BYTES + 1)),
    ],
)
def test_form_rejects_unsupported_images(image):
    with pytest.raises(FormValidationError) as exc_info:
        validate_product_form({**CHAIR, "image": image})

    assert exc_info.value.issues == ["Unsupported image format or size exceeded"]


def test_form_image_exactly_at_limit_is_accepted():
    image = StoredFile(filename="edge.webp", content_type="image/webp", content=b"x" * MAX_IMAGE_BYTES)

    assert validate_product_form({**CHAIR, "image": image}).image is image


def test_edit_form_image_is_optional_but_typed():
    assert validate_product_form(CHAIR, editing=True).image is None
    assert validate_product_form({**CHAIR, "image": "https://cdn/x.png"}, editing=True).image == "https://cdn/x.png"

    with pytest.raises(FormValidationError) as exc_info:
        validate_product_form({**CHAIR, "image": 42}, editing=True)
    assert exc_info.value.issues == ["Image must be a file or an existing URL"]


def test_to_multipart_splits_files_from_fields():
    data, files = validate_product_form({**CHAIR, "price": "10", "image": PNG}).to_multipart()

    assert data == {"name": "Chair", "description": "Oak chair", "price": "10", "category": "Furniture"}
    assert files == {"image": ("chair.png", b"png-bytes", "image/png")}

    data, files = validate_product_form({**CHAIR, "image": "https://cdn/x.png"}, editing=True).to_multipart()
    assert data["price"] == "49.99"
    assert data["image"] == "https://cdn/x.png"
    assert files == {}


def test_initial_values_leave_image_empty():
    values = ProductFormValues.initial_values(
        {"id": "1", "name": "Chair", "description": "Oak", "price": 49.99, "category": "Furniture", "image": "u"}
    )

    assert values == {"name": "Chair", "description": "Oak", "price": 49.99, "category": "Furniture"}


# api


def test_api_sends_paging_and_locale(api, server):
    api.set_locale("en")
    body = api.get_products(page=2, limit=5, search="product 1")

    request = server.requests[-1]
    assert request.url.params["page"] == "2"
    assert request.url.params["limit"] == "5"
    assert request.url.params["search"] == "product 1"
    assert request.headers["Accept-Language"] == "en"
    assert body["total"] == 3


def test_api_maps_error_body(api):
    with pytest.raises(ProductsApiError) as exc_info:
        api.get_product("missing")

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Producto no encontrado"


def test_api_falls_back_to_reason_phrase():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))
    with ProductsApi("http://api.test", transport=transport) as products_api:
        with pytest.raises(ProductsApiError) as exc_info:
            products_api.get_products()

    assert exc_info.value.status_code == 502
    assert exc_info.value.message == "Bad Gateway"


def test_api_wraps_transport_errors():
    def _refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    with ProductsApi("http://api.test", transport=httpx.MockTransport(_refuse)) as products_api:
        with pytest.raises(ProductsApiError) as exc_info:
            products_api.delete_product("1")

    assert exc_info.value.status_code is None


def test_api_create_posts_multipart(api, server):
    api.create_product(validate_product_form({**CHAIR, "image": PNG}))

    request = server.requests[-1]
    assert request.method == "POST"
    assert request.headers["Content-Type"].startswith("multipart/form-data")
    content = request.read()
    assert b'name="image"; filename="chair.png"' in content
    assert b"png-bytes" in content


# feed


def test_feed_loads_pages_until_exhausted(api, query_cache, server):
    feed = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)

    assert feed.has_next_page
    feed.on_sentinel_visible()
    feed.on_sentinel_visible()
    assert len(feed.products) == 10
    assert feed.has_next_page

    feed.on_sentinel_visible()
    assert len(feed.products) == 12
    assert not feed.has_next_page

    feed.on_sentinel_visible()
    assert len(server.list_requests()) == 3
    feed.close()


def test_feed_search_resets_pages(api, query_cache, server):
    feed = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)
    feed.fetch_next_page()
    feed.fetch_next_page()

    feed.set_search("product 1")

    assert feed.search == "product 1"
    assert len(feed.pages) == 1
    assert [p["name"] for p in feed.products] == ["Product 1", "Product 10", "Product 11"]
    assert not feed.has_next_page

    feed.set_search("product 1")
    assert len(server.list_requests()) == 3
    feed.close()


def test_feed_search_is_debounced(api, query_cache, server):
    feed = ProductFeed(api, query_cache, page_size=5, debounce_seconds=60)

    feed.handle_search("p")
    feed.handle_search("pr")
    feed.handle_search("product 11")
    assert server.list_requests() == []
    assert feed.handle_search.pending

    feed.handle_search.flush()

    requests = server.list_requests()
    assert len(requests) == 1
    assert requests[0].url.params["search"] == "product 11"
    assert [p["name"] for p in feed.products] == ["Product 11"]
    feed.close()


def test_feed_reuses_cached_pages(api, query_cache, server):
    first = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)
    first.fetch_next_page()
    second = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)
    second.fetch_next_page()

    assert len(server.list_requests()) == 1
    assert second.products == first.products
    first.close()
    second.close()


def test_feed_refetches_loaded_pages_on_invalidation(api, query_cache, server):
    feed = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)
    feed.fetch_next_page()
    feed.fetch_next_page()
    server.products.insert(0, {"id": "new", "name": "Newest", "price": 1.0})

    query_cache.invalidate("products")

    assert len(feed.pages) == 2
    assert feed.products[0]["name"] == "Newest"
    assert len(server.list_requests()) == 4

    feed.close()
    query_cache.invalidate("products")
    assert len(server.list_requests()) == 4


def test_feed_does_not_load_on_invalidation_before_first_page(api, query_cache, server):
    feed = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)

    query_cache.invalidate("products")

    assert server.list_requests() == []
    feed.close()


# actions


def test_create_action_success_invalidates_feed(api, query_cache, server):
    feed = ProductFeed(api, query_cache, page_size=5, debounce_seconds=0)
    feed.fetch_next_page()
    actions = ProductActions(api, query_cache, locale="es")

    result = actions.create_product_action({**CHAIR, "image": PNG})

    assert result == ActionResult(True, "Producto creado correctamente", {"id": "new", "name": "Chair"})
    assert len(server.list_requests()) == 2
    feed.close()


def test_create_action_returns_first_validation_issue(api, query_cache, server):
    actions = ProductActions(api, query_cache, locale="es")

    result = actions.create_product_action({"price": "5"})

    assert result == ActionResult(False, "El nombre es obligatorio")
    assert server.requests == []


def test_create_action_reports_api_failure(api, query_cache, server):
    server.fail_writes = True
    actions = ProductActions(api, query_cache, locale="en")

    result = actions.create_product_action({**CHAIR, "image": PNG})

    assert result == ActionResult(False, "Failed to create product")


def test_update_action_invalidates_product_detail(api, query_cache, server):
    actions = ProductActions(api, query_cache, locale="en")
    assert actions.load_product("3")["name"] == "Product 3"
    actions.load_product("3")
    assert len(server.requests) == 1

    result = actions.update_product_action("3", {**CHAIR, "name": "Stool"})

    assert result.success
    assert result.message == "Product updated successfully"
    actions.load_product("3")
    assert len(server.requests) == 3


def test_edit_form_defaults(api, query_cache):
    actions = ProductActions(api, query_cache)

    assert actions.edit_form_defaults("2") == {
        "name": "Product 2",
        "description": "",
        "price": 12.0,
        "category": "",
    }


def test_delete_action(api, query_cache, server):
    actions = ProductActions(api, query_cache, locale="en")

    assert actions.delete_product_action("1") == ActionResult(True, "Product deleted successfully")

    server.fail_writes = True
    assert actions.delete_product_action("1") == ActionResult(False, "Failed to delete product")


def test_toggle_language_switches_request_header(api, query_cache, server):
    actions = ProductActions(api, query_cache, locale="es")

    assert actions.toggle_language() == "en"
    api.get_products()
    assert server.requests[-1].headers["Accept-Language"] == "en"

    assert actions.toggle_language() == "es"
    api.get_products(page=2)
    assert server.requests[-1].headers["Accept-Language"] == "es"


# debouncer


def test_debouncer_fires_once_with_last_arguments():
    calls = []
    fired = threading.Event()

    def _callback(value):
        calls.append(value)
        fired.set()

    debouncer = Debouncer(_callback, wait=0.05)
    for value in ("a", "ab", "abc"):
        debouncer(value)

    assert fired.wait(2)
    assert calls == ["abc"]
    assert not debouncer.pending


def test_debouncer_cancel_drops_pending_call():
    calls = []
    debouncer = Debouncer(calls.append, wait=60)

    debouncer("x")
    debouncer.cancel()
    debouncer.flush()

    assert calls == []
