from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit

INGEST_PATH = "/api/ingest"


def endpoint_from_script_src(src: Optional[str]) -> str:
    """Ingest URL on the same origin that served the snippet script."""
    if not src:
        return INGEST_PATH
    try:
        parts = urlsplit(src)
    except ValueError:
        return INGEST_PATH
    if not parts.scheme or not parts.netloc:
        return INGEST_PATH
    return f"{parts.scheme}://{parts.netloc}{INGEST_PATH}"


@dataclass(frozen=True)
class SnippetConfig:
    project_id: str
    endpoint: str = INGEST_PATH
    throttle_ms: int = 100
    mis_tap_window_ms: int = 150
    flush_threshold: int = 10
    max_batch: int = 50

    @classmethod
    def from_script(cls, project_id: str, script_src: Optional[str]) -> "SnippetConfig":
        return cls(project_id=project_id, endpoint=endpoint_from_script_src(script_src))
