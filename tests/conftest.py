"""Pytest configuration."""

import uuid
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from touchheat.events import Project, TouchEvent
from touchheat.ingest.errors import StorageFailure
from touchheat.store import stamp


class MemoryStore:
    """In-process stand-in for the Redis store."""

    def __init__(self):
        self.projects: Dict[str, Project] = {}
        self.events: Dict[str, List[Dict]] = {}
        self.fail_writes = False

    def ping(self) -> bool:
        return True

    def save_project(self, project: Project) -> None:
        self.projects[project.id] = project

    def lookup_project(self, project_id: str) -> Optional[Project]:
        return self.projects.get(project_id)

    def persist_events(self, project_id: str, events: List[TouchEvent]) -> List[Dict]:
        if self.fail_writes:
            raise StorageFailure()
        rows = stamp(project_id, events)
        self.events.setdefault(project_id, []).extend(rows)
        return rows

    def fetch_events(self, project_id: str, url: Optional[str] = None) -> List[Dict]:
        rows = self.events.get(project_id, [])
        return [r for r in rows if url is None or r["url"] == url]


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def project(store):
    p = Project(id=str(uuid.uuid4()), name="demo")
    store.save_project(p)
    return p


@pytest.fixture
def client(store):
    from touchheat.app import app, get_store

    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_event(**overrides) -> Dict:
    ev = {
        "x": 100,
        "y": 200,
        "viewport_w": 375,
        "viewport_h": 667,
        "thumb_zone": "center",
        "mis_tap": False,
        "pressure": None,
        "selector": None,
        "url": "https://www.example.com/page",
    }
    ev.update(overrides)
    return ev
