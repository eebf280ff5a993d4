"""
Redis persistence for projects and touch events.

Keys:
  touchheat:project:<id>  JSON project record
  touchheat:events:<id>   list of JSON events, append-only
"""
import json
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

import redis

from .core.logging import get_logger
from .events import Project, StoredEvent, TouchEvent
from .ingest.errors import StorageFailure

logger = get_logger(__name__)

PROJECT_KEY = "touchheat:project:{}"
EVENTS_KEY = "touchheat:events:{}"


class EventStore(Protocol):
    def lookup_project(self, project_id: str) -> Optional[Project]: ...

    def persist_events(self, project_id: str, events: List[TouchEvent]) -> List[Dict]: ...

    def fetch_events(self, project_id: str, url: Optional[str] = None) -> List[Dict]: ...


def stamp(project_id: str, events: List[TouchEvent]) -> List[Dict]:
    ts = datetime.now(timezone.utc).isoformat()
    return [StoredEvent(**ev.model_dump(), project_id=project_id, ts=ts).model_dump() for ev in events]


class RedisStore:
    def __init__(self, client: redis.Redis):
        self.r = client

    @classmethod
    def from_url(cls, url: str) -> "RedisStore":
        return cls(redis.Redis.from_url(url, decode_responses=False))

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except redis.RedisError:
            return False

    def save_project(self, project: Project) -> None:
        self.r.set(PROJECT_KEY.format(project.id), project.model_dump_json())

    def lookup_project(self, project_id: str) -> Optional[Project]:
        try:
            raw = self.r.get(PROJECT_KEY.format(project_id))
        except redis.RedisError as e:
            raise StorageFailure("Failed to look up project") from e
        if raw is None:
            return None
        return Project.model_validate_json(raw)

    def persist_events(self, project_id: str, events: List[TouchEvent]) -> List[Dict]:
        """Append the whole batch in one MULTI/EXEC; nothing lands on error."""
        rows = stamp(project_id, events)
        if not rows:
            return rows
        try:
            pipe = self.r.pipeline(transaction=True)
            pipe.rpush(EVENTS_KEY.format(project_id), *[json.dumps(row) for row in rows])
            pipe.execute()
        except redis.RedisError as e:
            raise StorageFailure() from e
        return rows

    def fetch_events(self, project_id: str, url: Optional[str] = None) -> List[Dict]:
        try:
            raw = self.r.lrange(EVENTS_KEY.format(project_id), 0, -1)
        except redis.RedisError as e:
            raise StorageFailure("Failed to fetch events") from e
        out = []
        for item in raw:
            try:
                ev = json.loads(item)
            except ValueError as e:
                logger.warning(f"skip bad event json: {e}")
                continue
            if url is None or ev.get("url") == url:
                out.append(ev)
        return out
