"""Stateless analysis endpoints: keyword extraction and ATS scoring."""

import logging

from fastapi import APIRouter, Depends

from jobos.routers.deps import get_llm_client, http_error_for
from jobos.schemas.analysis import (
    ATSAnalysis,
    ATSScoreRequest,
    KeywordExtractionRequest,
    KeywordExtractionResponse,
)
from jobos.services.analysis import calculate_ats_score, extract_keywords
from jobos.services.job_lifecycle import merge_keywords
from jobos.services.llm_client import LLMError, OpenRouterClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/analysis", tags=["analysis"])


@router.post(
    "/keywords",
    response_model=KeywordExtractionResponse,
    summary="Extract keywords from a job description"
)
async def extract_job_keywords(
    request: KeywordExtractionRequest,
    llm: OpenRouterClient = Depends(get_llm_client)
) -> KeywordExtractionResponse:
    """Extract hard skills and technologies from a job description.

    Raises:
        HTTPException 400: API key not configured
        HTTPException 502: Model request failed
    """
    try:
        extracted = await extract_keywords(llm, request.job_description)
    except LLMError as e:
        logger.error(f"Keyword extraction failed: {e}")
        raise http_error_for(e)

    return KeywordExtractionResponse(keywords=merge_keywords([], extracted))


@router.post(
    "/ats-score",
    response_model=ATSAnalysis,
    summary="Score a resume against a job description"
)
async def score_resume(
    request: ATSScoreRequest,
    llm: OpenRouterClient = Depends(get_llm_client)
) -> ATSAnalysis:
    """ATS match score. Model failures come back as a zero score with feedback.

    Raises:
        HTTPException 400: API key not configured
    """
    try:
        llm.require_api_key()
    except LLMError as e:
        raise http_error_for(e)

    return await calculate_ats_score(llm, request.resume_text, request.job_description)
