from typing import Any, Dict, Optional

from pydantic import BaseModel

from safira.contexts.rendering.service import DEFAULT_TEMPLATE


class RenderRequest(BaseModel):
    """Body of POST /cv/generate and POST /cv/preview."""

    template: Optional[str] = DEFAULT_TEMPLATE
    # Wire format from the mobile wizard; validated by the intake context, not here
    cvData: Optional[Dict[str, Any]] = None


class TemplateListResponse(BaseModel):
    success: bool = True
    templates: list = []


class SampleResponse(BaseModel):
    success: bool = True
    sampleCV: Dict[str, Any]
    usage: Dict[str, str] = {}
