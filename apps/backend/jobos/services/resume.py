"""Resume drafting, refinement and import, plus export helpers."""

import logging
import re

from jobos.schemas.profile import ProfileBase, ProfileCreate
from jobos.services.llm_client import OpenRouterClient
from jobos.services.prompts import (
    build_resume_draft_prompt,
    build_resume_import_prompt,
    build_resume_refine_prompt,
)
from jobos.services.response_normalizer import clean_resume_markdown, parse_profile_import

logger = logging.getLogger(__name__)

HEADER_SEPARATOR = " ◇ "


async def generate_resume_draft(
    llm: OpenRouterClient,
    profile: ProfileBase,
    company: str,
    role: str,
    description: str,
    keywords: list[str] | None = None,
) -> str:
    """Draft a tailored resume and return the cleaned markdown.

    Raises:
        ConfigurationError: API key missing
        LLMRequestError: Gateway failure
    """
    prompt = build_resume_draft_prompt(profile, company, role, description, keywords)
    content = await llm.complete(prompt.messages, temperature=prompt.temperature)
    resume = clean_resume_markdown(content)
    logger.info(f"Drafted resume for {role!r} at {company!r} ({len(resume)} chars)")
    return resume


async def refine_resume(llm: OpenRouterClient, current_resume: str, instructions: str) -> str:
    """Apply free-form instructions to a resume and return the cleaned markdown."""
    prompt = build_resume_refine_prompt(current_resume, instructions)
    content = await llm.complete(prompt.messages, temperature=prompt.temperature)
    return clean_resume_markdown(content)


async def import_profile_from_resume(llm: OpenRouterClient, resume_text: str) -> ProfileCreate:
    """Turn pasted resume text into an unsaved profile.

    Raises:
        ConfigurationError: API key missing
        LLMRequestError: Gateway failure
        ValueError: Model output held no JSON object
    """
    prompt = build_resume_import_prompt(resume_text)
    content = await llm.complete(
        prompt.messages,
        temperature=prompt.temperature,
        json_mode=prompt.json_mode,
    )
    profile = parse_profile_import(content)
    logger.info(
        f"Imported profile {profile.name!r}: {len(profile.experience)} experience, "
        f"{len(profile.skills)} skills"
    )
    return profile


def build_resume_plain_text(resume: str, profile: ProfileBase | None = None) -> str:
    """Plain-text copy of a resume, prefixed with the profile's contact header.

    Examples:
        >>> build_resume_plain_text("## Skills", None)
        '## Skills'
    """
    if profile is None:
        return resume

    contact = profile.contact_info
    hr = profile.hr_data
    lines = [
        profile.name.upper(),
        HEADER_SEPARATOR.join(
            item
            for item in (
                contact.phone,
                contact.email,
                contact.location,
                f"Open to {hr.work_preference}" if hr.work_preference else "",
            )
            if item
        ),
        HEADER_SEPARATOR.join(
            item
            for item in (
                "LinkedIn" if contact.linkedin else "",
                "GitHub" if contact.github else "",
                f"Available in {hr.notice_period}" if hr.notice_period else "",
            )
            if item
        ),
    ]
    header = "\n".join(line for line in lines if line)
    return f"{header}\n\n{resume}"


def resume_filename(profile: ProfileBase | None, company: str = "", role: str = "") -> str:
    """PDF filename for an exported resume."""
    if profile is not None:
        safe_name = re.sub(r"\s+", "_", profile.name.strip())
        return f"{safe_name}_resume.pdf"
    return f"{company or 'Resume'}_{role or 'Job'}_resume.pdf"


def cover_letter_filename(company: str = "") -> str:
    """PDF filename for an exported cover letter."""
    return f"{company or 'Company'}_CoverLetter.pdf"
