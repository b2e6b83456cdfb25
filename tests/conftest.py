import os
import sys
from pathlib import Path
from uuid import uuid4

import pytest
import anyio
import httpx
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

BASE_DIR = Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", "sqlite:///" + str(BASE_DIR / "test.db"))
os.environ.setdefault("STORAGE_BACKEND", "cloudinary")
os.environ.setdefault("DEFAULT_LOCALE", "es")

from app.core.config import get_settings
from app.core import db as db_module
from app.core.db import engine_options
from app.core.dependencies import get_db, get_storage
from app.core.storage import StorageError, StoredFile
from app.models import Base, Product
from app.main import app

get_settings.cache_clear()

db_module._engine = None
db_module._SessionLocal = None
_db_path = BASE_DIR / "test.db"


class RecordingStorage:
    """In-memory stand-in for the object store that records every call."""

    def __init__(self) -> None:
        self.objects: dict[str, StoredFile] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_upload = False

    @property
    def uploaded(self) -> list[str]:
        return [url for op, url in self.calls if op == "upload"]

    @property
    def deleted(self) -> list[str]:
        return [url for op, url in self.calls if op == "delete"]

    def upload(self, file: StoredFile, folder: str) -> str:
        if self.fail_upload:
            self.calls.append(("upload-failed", file.filename))
            raise StorageError("upload rejected")
        url = f"https://res.cloudinary.com/demo/image/upload/v1700000000/{folder}/{uuid4().hex}.png"
        self.objects[url] = file
        self.calls.append(("upload", url))
        return url

    def delete(self, url: str) -> None:
        self.calls.append(("delete", url))
        self.objects.pop(url, None)


def _create_engine():
    database_url = get_settings().DATABASE_URL
    return create_engine(database_url, **engine_options(database_url))


def _create_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture(scope="session")
def engine():
    engine = _create_engine()
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if _db_path.exists():
        _db_path.unlink()


@pytest.fixture(scope="session")
def session_factory(engine):
    return _create_session_factory(engine)


@pytest.fixture(autouse=True)
def _clean_state(session_factory):
    session = session_factory()
    try:
        session.query(Product).delete()
        session.commit()
    finally:
        session.close()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def storage():
    return RecordingStorage()


@pytest.fixture()
def client(session_factory, storage):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    app.dependency_overrides[get_storage] = lambda: storage

    class _SyncASGIClient:
        def __init__(self, fastapi_app):
            self._client = httpx.AsyncClient(
                transport=httpx.ASGITransport(app=fastapi_app),
                base_url="http://testserver",
            )

        def request(self, method: str, url: str, **kwargs):
            async def _do_request():
                return await self._client.request(method, url, **kwargs)

            return anyio.run(_do_request)

        def get(self, url: str, **kwargs):
            return self.request("GET", url, **kwargs)

        def post(self, url: str, **kwargs):
            return self.request("POST", url, **kwargs)

        def put(self, url: str, **kwargs):
            return self.request("PUT", url, **kwargs)

        def delete(self, url: str, **kwargs):
            return self.request("DELETE", url, **kwargs)

        def close(self):
            async def _do_close():
                await self._client.aclose()

            anyio.run(_do_close)

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            self.close()

    with _SyncASGIClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
