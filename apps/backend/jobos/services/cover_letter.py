"""Cover letter generation, streamed with a buffered fallback."""

import logging
from collections.abc import AsyncIterator
from datetime import date

import httpx

from jobos.schemas.profile import ProfileBase
from jobos.services.llm_client import LLMRequestError, OpenRouterClient
from jobos.services.prompts import build_cover_letter_prompt

logger = logging.getLogger(__name__)

FALLBACK_FAILURE_TEXT = "Failed to generate cover letter."


async def generate_cover_letter(
    llm: OpenRouterClient,
    profile: ProfileBase,
    company: str,
    role: str,
    description: str,
    today: date | None = None,
) -> str:
    """Generate a cover letter with one buffered completion."""
    prompt = build_cover_letter_prompt(profile, company, role, description, today or date.today())
    return await llm.complete(prompt.messages, temperature=prompt.temperature)


async def stream_cover_letter(
    llm: OpenRouterClient,
    profile: ProfileBase,
    company: str,
    role: str,
    description: str,
    today: date | None = None,
) -> AsyncIterator[str]:
    """Yield cover letter fragments as they arrive.

    If the stream fails, or ends, before producing any text, a single
    buffered completion is made and its text is yielded as one fragment
    (or a failure notice when it is empty too). A failure after partial
    output is re-raised; the caller keeps what it already received.

    Raises:
        ConfigurationError: API key missing (no fallback attempted)
        LLMRequestError: Stream failed after partial output, or the
            fallback call failed
    """
    prompt = build_cover_letter_prompt(profile, company, role, description, today or date.today())
    received = False

    try:
        async for fragment in llm.stream(prompt.messages, temperature=prompt.temperature):
            received = True
            yield fragment
    except (LLMRequestError, httpx.HTTPError) as e:
        if received:
            logger.error(f"Cover letter stream failed after partial output: {e}")
            raise
        logger.warning(f"Cover letter stream failed, retrying without streaming: {e}")

    if received:
        return

    logger.info("Cover letter stream produced no text, using buffered completion")
    content = await llm.complete(prompt.messages, temperature=prompt.temperature)
    yield content or FALLBACK_FAILURE_TEXT
