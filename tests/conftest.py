import copy
import uuid
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from google.api_core.exceptions import NotFound, ServiceUnavailable
from google.cloud import firestore

import dependencies
import main
from config import SESSION_COOKIE_NAME
from services.firestore import FirestoreDB
from services.posts import PostService
from services.s3 import S3Service

TOKENS = {
    "alice-token": {"uid": "uid-alice", "email": "alice@example.com", "name": "Alice"},
    "nameless-token": {"uid": "uid-nameless", "email": "nameless@example.com"},
}


class _FakeSnapshot:
    def __init__(self, doc_id: str, data: Optional[Dict[str, Any]]):
        self.id = doc_id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> Optional[Dict[str, Any]]:
        return copy.deepcopy(self._data)


class _FakeDocumentRef:
    def __init__(self, docs: Dict[str, Dict[str, Any]], doc_id: str):
        self._docs = docs
        self.id = doc_id

    def get(self, transaction: Any = None) -> _FakeSnapshot:
        return _FakeSnapshot(self.id, self._docs.get(self.id))

    def set(self, data: Dict[str, Any]) -> None:
        self._docs[self.id] = copy.deepcopy(data)

    def update(self, data: Dict[str, Any]) -> None:
        if self.id not in self._docs:
            raise NotFound(f"No document to update: {self.id}")

        doc = self._docs[self.id]
        for field, value in data.items():
            if isinstance(value, firestore.Increment):
                doc[field] = doc.get(field, 0) + value.value
            elif isinstance(value, firestore.ArrayUnion):
                existing = doc.get(field, [])
                doc[field] = existing + [copy.deepcopy(v) for v in value.values if v not in existing]
            else:
                doc[field] = copy.deepcopy(value)


class _FakeQuery:
    def __init__(self, docs: Dict[str, Dict[str, Any]], order: Optional[tuple] = None):
        self._docs = docs
        self._order = order

    def order_by(self, field: str, direction: str = firestore.Query.ASCENDING) -> "_FakeQuery":
        return _FakeQuery(self._docs, (field, direction))

    def stream(self):
        items = list(self._docs.items())
        if self._order is not None:
            field, direction = self._order
            # Firestore leaves out documents that lack the ordered field
            items = [item for item in items if field in item[1]]
            items.sort(key=lambda item: item[1][field], reverse=direction == firestore.Query.DESCENDING)
        for doc_id, data in items:
            yield _FakeSnapshot(doc_id, copy.deepcopy(data))


class _FakeCollection(_FakeQuery):
    def document(self, doc_id: Optional[str] = None) -> _FakeDocumentRef:
        return _FakeDocumentRef(self._docs, doc_id or uuid.uuid4().hex[:20])


class _FakeTransaction:
    def update(self, ref: _FakeDocumentRef, data: Dict[str, Any]) -> None:
        ref.update(data)


class FakeFirestoreClient:
    """In-memory stand-in for the subset of google.cloud.firestore.Client we use"""

    def __init__(self) -> None:
        self.collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.closed = False

    def collection(self, name: str) -> _FakeCollection:
        return _FakeCollection(self.collections.setdefault(name, {}))

    def transaction(self) -> _FakeTransaction:
        return _FakeTransaction()

    def close(self) -> None:
        self.closed = True

    def docs(self, name: str = "posts") -> Dict[str, Dict[str, Any]]:
        return self.collections.setdefault(name, {})


class FakeS3Client:
    def __init__(self, error: Optional[Exception] = None) -> None:
        self.error = error
        self.objects: List[Dict[str, Any]] = []

    def put_object(self, **kwargs: Any) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        self.objects.append(kwargs)
        return {"ETag": '"fake"'}


def _fake_verify_session_cookie(session_cookie: str, **kwargs: Any) -> Dict[str, Any]:
    if session_cookie not in TOKENS:
        raise ValueError("Invalid session cookie")
    return TOKENS[session_cookie]


@pytest.fixture(autouse=True)
def _run_transactions_inline(monkeypatch):
    # The fake transaction has no begin/commit protocol to drive
    monkeypatch.setattr(firestore, "transactional", lambda to_wrap: to_wrap)


@pytest.fixture
def fake_client() -> FakeFirestoreClient:
    return FakeFirestoreClient()


@pytest.fixture
def post_service(fake_client) -> PostService:
    return PostService(FirestoreDB(fake_client))


@pytest.fixture
def fake_s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def app(monkeypatch, post_service, fake_s3):
    monkeypatch.setattr(dependencies, "verify_session_cookie", _fake_verify_session_cookie)
    monkeypatch.setattr(main.app.state, "post_service", post_service, raising=False)
    monkeypatch.setattr(
        main.app.state, "s3_service", S3Service("test-bucket", fake_s3, "us-east-2"), raising=False
    )
    return main.app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


@pytest.fixture
def alice_client(app) -> TestClient:
    return TestClient(app, cookies={SESSION_COOKIE_NAME: "alice-token"})


class _BrokenQuery:
    def order_by(self, *args: Any, **kwargs: Any) -> "_BrokenQuery":
        return self

    def stream(self):
        raise ServiceUnavailable("connection refused")

    def document(self, doc_id: Optional[str] = None):
        raise ServiceUnavailable("connection refused")


class BrokenFirestoreClient:
    def collection(self, name: str) -> _BrokenQuery:
        return _BrokenQuery()


@pytest.fixture
def broken_service() -> PostService:
    return PostService(FirestoreDB(BrokenFirestoreClient()))


@pytest.fixture
def seed(fake_client):
    def _seed(doc_id: str, **fields: Any) -> None:
        post = {"title": doc_id, "description": "", "author": "Seed", "likes": 0, "comments": []}
        post.update(fields)
        fake_client.docs()[doc_id] = post
    return _seed


@pytest.fixture
def install_s3(app, monkeypatch):
    def _install(bucket_name: Optional[str] = "test-bucket", error: Optional[Exception] = None) -> FakeS3Client:
        fake = FakeS3Client(error)
        monkeypatch.setattr(app.state, "s3_service", S3Service(bucket_name, fake, "us-east-2"))
        return fake
    return _install
