"""Keyword extraction and ATS scoring.

Both operations are a single low-temperature JSON-mode completion followed
by normalization in ``jobos.services.response_normalizer``.
"""

import logging

from jobos.schemas.analysis import ATSAnalysis
from jobos.services.llm_client import LLMError, OpenRouterClient
from jobos.services.prompts import build_ats_score_prompt, build_keyword_extraction_prompt
from jobos.services.response_normalizer import parse_ats_analysis, parse_keywords

logger = logging.getLogger(__name__)


async def extract_keywords(llm: OpenRouterClient, job_description: str) -> list:
    """Extract skill/technology keywords from a job description.

    Args:
        llm: Gateway client
        job_description: Raw job posting text

    Returns:
        Keywords as returned by the model (empty list when unparsable)

    Raises:
        ConfigurationError: API key missing
        LLMRequestError: Gateway failure
    """
    prompt = build_keyword_extraction_prompt(job_description)
    content = await llm.complete(
        prompt.messages,
        temperature=prompt.temperature,
        json_mode=prompt.json_mode,
    )
    keywords = parse_keywords(content)
    logger.info(f"Extracted {len(keywords)} keywords from job description")
    return keywords


async def calculate_ats_score(
    llm: OpenRouterClient,
    resume_text: str,
    job_description: str,
) -> ATSAnalysis:
    """Score a resume against a job description.

    Never raises: gateway failures and malformed output both come back as a
    zero score with the failure in ``feedback``.
    """
    prompt = build_ats_score_prompt(resume_text, job_description)
    try:
        content = await llm.complete(
            prompt.messages,
            temperature=prompt.temperature,
            json_mode=prompt.json_mode,
        )
    except LLMError as e:
        logger.error(f"ATS scoring failed: {e}")
        return ATSAnalysis(score=0, feedback=f"Analysis failed: {e}", missing_keywords=[])

    analysis = parse_ats_analysis(content)
    logger.info(f"ATS score {analysis.score} ({len(analysis.missing_keywords)} missing keywords)")
    return analysis
