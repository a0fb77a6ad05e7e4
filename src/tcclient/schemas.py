from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

# -------------------- Wire schemas --------------------

class PropertyModel(BaseModel):
    name: str
    value: str = ""
    inherited: Optional[bool] = None

class PropertiesModel(BaseModel):
    count: Optional[int] = None
    property: list[PropertyModel] = Field(default_factory=list)

class StepEnvelope(BaseModel):
    """Outer JSON object the server exchanges for a build step."""
    id: str = ""
    name: str = ""
    type: str = ""
    properties: Optional[PropertiesModel] = None
