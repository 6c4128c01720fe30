"""Fixtures for killmail API tests."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient

from killmail_api.api import get_store
from killmail_api.app import create_app
from killmail_api.database import KillmailStore

# =============================================================================
# In-memory collection
# =============================================================================


def _resolve(document: dict, path: str) -> list:
    """Collect every value at a dotted path, descending through arrays."""
    current = [document]
    for part in path.split("."):
        found = []
        for value in current:
            for item in value if isinstance(value, list) else [value]:
                if isinstance(item, dict) and part in item:
                    found.append(item[part])
        current = found
    values = []
    for value in current:
        values.extend(value if isinstance(value, list) else [value])
    return values


def matches(document: dict, filter_doc: dict) -> bool:
    """Evaluate the subset of MongoDB query operators the service emits."""
    for key, condition in filter_doc.items():
        if key == "$or":
            if not any(matches(document, clause) for clause in condition):
                return False
        elif key == "$and":
            if not all(matches(document, clause) for clause in condition):
                return False
        elif isinstance(condition, dict) and "$exists" in condition:
            present = key in document if "." not in key else bool(_resolve(document, key))
            if present != condition["$exists"]:
                return False
        elif condition not in _resolve(document, key):
            return False
    return True


class FakeCursor:
    """Cursor double that records how often it was closed."""

    def __init__(self, documents: list[dict], fail_after: int | None = None, error=None):
        self.documents = documents
        self.fail_after = fail_after
        self.error = error
        self.close_count = 0

    def __iter__(self):
        for index, document in enumerate(self.documents):
            if self.fail_after is not None and index >= self.fail_after:
                raise self.error
            yield document
        if self.fail_after is not None and self.fail_after >= len(self.documents):
            raise self.error

    def close(self) -> None:
        self.close_count += 1

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class FakeCollection:
    """In-memory stand-in for a pymongo Collection."""

    def __init__(self, documents: list[dict] | None = None):
        self.documents = list(documents or [])
        self.cursors: list[FakeCursor] = []
        self.queries: list[dict[str, Any]] = []
        self.find_error: Exception | None = None
        self.find_one_error: Exception | None = None
        self.iteration_error: Exception | None = None
        self.fail_after: int | None = None

    def find_one(self, filter_doc: dict) -> dict | None:
        if self.find_one_error is not None:
            raise self.find_one_error
        for document in self.documents:
            if matches(document, filter_doc):
                return document
        return None

    def find(self, filter_doc: dict, skip: int = 0, limit: int = 0, sort=None) -> FakeCursor:
        self.queries.append({"filter": filter_doc, "skip": skip, "limit": limit, "sort": sort})
        if self.find_error is not None:
            raise self.find_error
        found = [document for document in self.documents if matches(document, filter_doc)]
        for field, direction in reversed(sort or []):
            found.sort(key=lambda document: document[field], reverse=direction < 0)
        found = found[skip:]
        if limit:
            found = found[:limit]
        cursor = FakeCursor(found, fail_after=self.fail_after, error=self.iteration_error)
        self.cursors.append(cursor)
        return cursor


# =============================================================================
# Documents
# =============================================================================


def make_killmail(
    kill_id: int,
    axiom: bool = True,
    attackers: list[dict] | None = None,
    victim: dict | None = None,
    solar_system_id: int = 30000142,
) -> dict:
    """Build a raw killmail document as stored in MongoDB."""
    document = {
        "_id": kill_id,
        "killmail": {
            "attackers": attackers
            if attackers is not None
            else [
                {
                    "character_id": 90000001,
                    "corporation_id": 98000001,
                    "damage_done": 1500,
                    "final_blow": True,
                    "security_status": -2.5,
                    "ship_type_id": 587,  # Rifter
                    "weapon_type_id": 2873,
                }
            ],
            "killmail_id": kill_id,
            "killmail_time": datetime(2026, 1, 26, 12, 0, 0, tzinfo=timezone.utc),
            "solar_system_id": solar_system_id,
            "victim": victim
            if victim is not None
            else {
                "character_id": 90000002,
                "corporation_id": 98000002,
                "damage_taken": 1500,
                "items": [
                    {"flag": 27, "item_type_id": 3831, "quantity_dropped": 1, "singleton": 0},
                    {"flag": 5, "item_type_id": 215, "quantity_destroyed": 200, "singleton": 0},
                ],
                "position": {"x": 1.5, "y": -2.0, "z": 3.25},
                "ship_type_id": 670,  # Capsule
            },
        },
    }
    if axiom:
        document["axiom"] = {"ship": {"hp": 1200.0, "dps": 85.5}, "drones": [{"dps": 12.0}]}
    return document


@pytest.fixture
def sample_killmail() -> dict:
    return make_killmail(123456789)


@pytest.fixture
def scenario_documents() -> list[dict]:
    """Killmails 1..250, all processed; killmail 5 has character 42 attacking."""
    documents = [make_killmail(kill_id) for kill_id in range(1, 251)]
    documents[4]["killmail"]["attackers"].append(
        {
            "character_id": 42,
            "corporation_id": 98000042,
            "alliance_id": 99000042,
            "damage_done": 10,
            "final_blow": False,
            "security_status": 5.0,
            "ship_type_id": 602,
            "weapon_type_id": 2185,
        }
    )
    return documents


@pytest.fixture
def collection(scenario_documents: list[dict]) -> FakeCollection:
    return FakeCollection(scenario_documents)


@pytest.fixture
def store(collection: FakeCollection) -> KillmailStore:
    return KillmailStore(collection, timeout=10)


# =============================================================================
# HTTP
# =============================================================================


@pytest.fixture
def app():
    return create_app()


@pytest.fixture
def client(app, store: KillmailStore) -> TestClient:
    """Test client wired to the in-memory store; lifespan is not run."""
    app.dependency_overrides[get_store] = lambda: store
    return TestClient(app)
