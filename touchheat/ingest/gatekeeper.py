"""
Ingestion gatekeeper: schema check, project lookup, domain allowlist,
then one all-or-nothing write of the batch.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from urllib.parse import urlsplit

from pydantic import ValidationError

from ..core.logging import get_logger
from ..events import IngestBatch, Project
from ..store import EventStore
from .errors import DomainRejected, IngestError, InvalidSchema, Unauthorized

logger = get_logger(__name__)


def hostname_of(url: Optional[str]) -> Optional[str]:
    if not url:
        return None
    try:
        host = urlsplit(url).hostname
    except ValueError:
        return None
    return host or None


def request_domain(origin: Optional[str], events: List[Any]) -> Optional[str]:
    """Origin header first, then the url of the first event in the batch."""
    domain = hostname_of(origin)
    if domain is None and events:
        domain = hostname_of(events[0].url)
    return domain


def domain_allowed(domain: str, allowed_domains: List[str]) -> bool:
    # exact match, or a subdomain of an allowed domain (dot required)
    domain = domain.lower()
    for allowed in allowed_domains:
        allowed = allowed.strip().lower()
        if not allowed:
            continue
        if domain == allowed or domain.endswith("." + allowed):
            return True
    return False


def _schema_details(err: ValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]}
        for e in err.errors()
    ]


class Gatekeeper:
    def __init__(self, store: EventStore):
        self.store = store

    def validate(self, payload: Any) -> IngestBatch:
        try:
            return IngestBatch.model_validate(payload)
        except ValidationError as e:
            raise InvalidSchema(_schema_details(e)) from e

    def authorize(self, project_id: str) -> Project:
        project = self.store.lookup_project(project_id)
        if project is None:
            raise Unauthorized()
        return project

    def check_domain(self, project: Project, origin: Optional[str], batch: IngestBatch) -> None:
        if not project.allowed_domains:
            return
        domain = request_domain(origin, batch.events)
        if domain is None:
            raise DomainRejected("Unable to verify domain")
        if not domain_allowed(domain, project.allowed_domains):
            raise DomainRejected()

    def ingest(self, payload: Any, origin: Optional[str] = None) -> Dict[str, Any]:
        """
        Accept `{project_id, events}` from a snippet.

        Raises InvalidSchema, Unauthorized, DomainRejected or StorageFailure;
        on success every event is stored with one server timestamp.
        """
        try:
            batch = self.validate(payload)
            project_id = str(batch.project_id)
            project = self.authorize(project_id)
            self.check_domain(project, origin, batch)
            self.store.persist_events(project_id, batch.events)
        except IngestError as e:
            logger.warning(
                f"ingest rejected: {e.message}",
                extra={"event_type": "ingest_rejected", "status_code": e.status_code},
            )
            raise
        logger.debug(f"ingested {len(batch.events)} events for {project_id}")
        return {"ok": True}
