# ==============================================
# Pytest Configuration and Fixtures
# ==============================================
#
# Shared fixtures for all tests.
#
# FIXTURES:
# ---------
# - fresh_config (autouse)  → no cached AppConfig leaks between tests
# - sample_document         → one nested document with arrays and nulls
# - sample_documents        → a small batch with optional and drifting fields
# - make_stats              → build a FieldStats from counts directly
#
# ==============================================

import pytest

from jsondrift.analysis import FieldStats
from jsondrift.config import reset_config
from jsondrift.walking import ValueTypeTag


@pytest.fixture(autouse=True)
def fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sample_document() -> dict:
    """Return a sample JSON document for testing."""
    return {
        "username": "alice",
        "age": 30,
        "active": True,
        "nickname": None,
        "profile": {"email": "alice@example.com", "tags": ["a", "b"]},
        "addresses": [
            {"city": "Berlin", "zip": "10115"},
            {"city": "Paris"},
        ],
    }


@pytest.fixture
def sample_documents() -> list:
    """Return ten documents: 'age' drifts to a string once, 'bio' is sparse."""
    docs = []
    for i in range(10):
        doc = {"id": i, "age": 20 + i, "name": f"user{i}"}
        if i == 3:
            doc["age"] = "twenty-three"
        if i % 2 == 0:
            doc["bio"] = "hello"
        docs.append(doc)
    return docs


@pytest.fixture
def make_stats():
    """Factory: make_stats(path, occurrences, {ValueTypeTag: count})."""

    def _make(path, occurrence_count, types=None):
        types = types if types is not None else {ValueTypeTag.STRING: occurrence_count}
        return FieldStats(
            path=path,
            occurrence_count=occurrence_count,
            type_distribution=dict(types),
            null_count=types.get(ValueTypeTag.NULL, 0),
        )

    return _make
