"""
Summarize schemas.

WHAT: Request/response for POST /summarize.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class SummarizeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    raw_description: str = Field(..., min_length=1, max_length=5000, alias="rawDescription")
    model: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Ollama model override",
    )


class SummarizeResponse(BaseModel):
    success: bool = True
    summary: str
    model: str
