"""
Line item summarization endpoint.

WHAT: Turns a raw work note into a short invoice line description using
a local Ollama model.
"""

from fastapi import APIRouter, Depends

from app.core.deps import get_summarize_service
from app.schemas.summarize import SummarizeRequest, SummarizeResponse
from app.services.summarize_service import SummarizeService


router = APIRouter(tags=["summarize"])


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    summary="Summarize a line item description",
)
async def summarize_description(
    data: SummarizeRequest,
    service: SummarizeService = Depends(get_summarize_service),
) -> SummarizeResponse:
    """
    Raises:
        AIConnectionError (503): Ollama unreachable
        AIServiceError (502): Model failure or empty answer
    """
    result = await service.summarize(data.raw_description, model=data.model)
    return SummarizeResponse(summary=result.summary, model=result.model)
