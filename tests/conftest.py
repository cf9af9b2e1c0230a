"""Fixtures shared by the test suite.

Every test gets a fresh in-memory document store with migrations
applied, so tests never see each other's posts.
"""

import pytest
from fastapi.testclient import TestClient

from blog_api.app.core.config import Settings
from blog_api.app.core.db import DocumentStore, init_db
from blog_api.app.main import create_app
from blog_api.app.schemas.post import PostRead
from blog_api.app.services.post_service import PostService

SAMPLE_POSTS = [
    {"title": "Learning Redux", "author": "Naa Gyamfi", "tags": ["redux"]},
    {"title": "Learn React Hooks", "author": "Naa Gyamfi", "tags": ["react"]},
    {
        "title": "Full-Stack React Projects",
        "author": "Naa Gyamfi",
        "tags": ["react", "nodejs"],
    },
    {"title": "Guide to TypeScript"},
]


@pytest.fixture
def settings():
    return Settings(database_url=":memory:", cors_origins=["http://localhost:5173"])


@pytest.fixture
def store():
    with DocumentStore(":memory:") as store:
        init_db(store)
        yield store


@pytest.fixture
def posts(store):
    """The raw ``posts`` collection, bypassing the service."""
    return store.collection("posts", timestamps=True)


@pytest.fixture
def service(store):
    return PostService(store)


@pytest.fixture
def sample_posts(posts):
    """Insert the sample posts straight into the store, in order."""
    return [PostRead.model_validate(posts.insert_one(post)) for post in SAMPLE_POSTS]


@pytest.fixture
def client(settings):
    app = create_app(settings=settings)
    with TestClient(app) as test_client:
        yield test_client
