"""
==============================================================================
Pytest Configuration and Fixtures
==============================================================================

Provides the test database and registry client for the FastAPI service, and
a scriptable fake registry for the scan engine.

==============================================================================
"""

import json
import os
from typing import Dict, Generator, List, Optional, Set, Tuple

# Keep the registry database in memory for every test run
os.environ.setdefault("DATABASE_URL", "sqlite://")

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from halalscan.client import (
    ConnectivityState,
    JsonFileStore,
    LocalProductCache,
    PendingWriteQueue,
    RegistryClient,
    ScanSession,
)
from halalscan.db.database import Base, get_db
from halalscan.main import app
from halalscan.schemas import HalalStatus, ProductCategory, ProductRecord


# ============================================================================
# DATABASE FIXTURES
# ============================================================================

SQLALCHEMY_TEST_DATABASE_URL = "sqlite://"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db() -> Generator[Session, None, None]:
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def override_db(db: Session) -> Generator[Session, None, None]:
    """Route the registry's get_db dependency to the test session."""
    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    yield db
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(override_db: Session) -> Generator[TestClient, None, None]:
    """Create test client with database override."""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# FAKE REGISTRY
# ============================================================================

class FakeRegistry:
    """
    Scriptable stand-in for the remote registry.

    Flip ``unreachable`` / ``timeout`` to simulate network failures,
    ``server_error_status`` to answer every request with an error, and add
    barcodes to ``rejected_barcodes`` to fail only their add-product calls.
    """

    def __init__(self) -> None:
        self.products: Dict[str, dict] = {}
        self.calls: List[Tuple[str, str]] = []
        self.added: List[dict] = []
        self.unreachable = False
        self.timeout = False
        self.server_error_status: Optional[int] = None
        self.rejected_barcodes: Set[str] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.calls.append((request.method, path))

        if self.timeout:
            raise httpx.ReadTimeout("timed out", request=request)
        if self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if self.server_error_status:
            return httpx.Response(
                self.server_error_status,
                json={"success": False, "error": {"code": "X", "message": "boom"}},
            )

        if path == "/":
            return httpx.Response(200, json={"status": "ok"})

        body = json.loads(request.content or b"{}")

        if path == "/scan-product":
            product = self.products.get(body.get("barcode"))
            if product is None:
                return httpx.Response(200, json={"status": "Product Not Available"})
            return httpx.Response(200, json=product)

        if path == "/add-product":
            if body.get("barcode") in self.rejected_barcodes:
                return httpx.Response(503, json={"error": {"message": "try later"}})
            self.products[body["barcode"]] = body
            self.added.append(body)
            return httpx.Response(200, json={"success": True, "message": "Product added"})

        return httpx.Response(404)

    def count(self, path: str) -> int:
        return sum(1 for _, p in self.calls if p == path)


@pytest.fixture
def registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def remote(registry: FakeRegistry) -> RegistryClient:
    return RegistryClient(
        "http://registry.test",
        timeout_seconds=0.5,
        probe_timeout_seconds=0.5,
        transport=httpx.MockTransport(registry.handler),
    )


@pytest.fixture
def store(tmp_path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "client")


@pytest.fixture
def cache(store: JsonFileStore) -> LocalProductCache:
    return LocalProductCache(store)


@pytest.fixture
def queue(store: JsonFileStore) -> PendingWriteQueue:
    return PendingWriteQueue(store)


@pytest.fixture
def connectivity() -> ConnectivityState:
    return ConnectivityState(server_error_threshold=3)


@pytest.fixture
def session(remote: RegistryClient, store: JsonFileStore) -> ScanSession:
    return ScanSession(remote, store, cool_down_ms=3000)


# ============================================================================
# RECORD FIXTURES
# ============================================================================

def make_record(
    barcode: str,
    name: str = "Test Product",
    status: HalalStatus = HalalStatus.HALAL,
    ingredients: Optional[List[str]] = None,
) -> ProductRecord:
    """Build a food product record."""
    return ProductRecord(
        barcode=barcode,
        name=name,
        category=ProductCategory.FOOD,
        ingredients=ingredients if ingredients is not None else ["sugar"],
        status=status,
    )


@pytest.fixture
def record_factory():
    """Factory for food product records."""
    return make_record


@pytest.fixture
def dates_record() -> ProductRecord:
    return make_record("5000112", "Medjool Dates", HalalStatus.HALAL, ["dates"])
