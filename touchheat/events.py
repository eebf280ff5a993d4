from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from uuid import UUID

ThumbZone = Literal["left", "center", "right", "unknown"]
THUMB_ZONES = ("left", "right", "center", "unknown")


class TouchEvent(BaseModel):
    # what a snippet sends; ts and project_id are assigned server-side
    x: int = Field(..., ge=0, strict=True, description="tap x in CSS pixels")
    y: int = Field(..., ge=0, strict=True, description="tap y in CSS pixels")
    viewport_w: int = Field(..., gt=0, strict=True)
    viewport_h: int = Field(..., gt=0, strict=True)
    thumb_zone: ThumbZone
    mis_tap: bool = Field(..., strict=True)
    pressure: Optional[float] = Field(None, ge=0.0, le=1.0, strict=True)
    selector: Optional[str] = Field(None, description="short CSS path of the tapped element")
    url: str


class IngestBatch(BaseModel):
    project_id: UUID
    events: List[TouchEvent]


class StoredEvent(TouchEvent):
    project_id: str
    ts: str = Field(..., description="server capture time, ISO-8601 UTC")


class Project(BaseModel):
    id: str
    name: Optional[str] = None
    allowed_domains: Optional[List[str]] = None
