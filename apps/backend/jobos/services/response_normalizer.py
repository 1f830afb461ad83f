"""Normalization of raw model output.

Models wrap JSON in prose or code fences and add conversational preambles
and outros to markdown documents. The helpers here turn that text into the
shape each caller expects. Keyword, ATS and markdown helpers never raise on
malformed output; they fall back to safe defaults (empty list, zero score,
best-effort text).
"""

import json
import logging
import math
import re
from typing import Any

from jobos.schemas.analysis import ATSAnalysis
from jobos.schemas.profile import (
    CertificationEntry,
    ContactInfo,
    EducationEntry,
    ExperienceEntry,
    HRData,
    ProfileCreate,
    ProjectEntry,
)

logger = logging.getLogger(__name__)

NO_FEEDBACK = "No feedback provided."

RESUME_HEADING_PATTERN = re.compile(
    r"^#+\s*(Professional Summary|Summary|Skills|Experience)",
    re.IGNORECASE | re.MULTILINE,
)

FLUFF_PATTERNS = [
    re.compile(r"This resume aligns (closely|well) with", re.IGNORECASE),
    re.compile(r"This resume has been (tailored|optimized) for", re.IGNORECASE),
    re.compile(r"I have highlighted (the|your)", re.IGNORECASE),
    re.compile(r"The above resume", re.IGNORECASE),
    re.compile(r"Please let me know if", re.IGNORECASE),
    re.compile(r"\bHope this helps", re.IGNORECASE),
    re.compile(r"Good luck with your application", re.IGNORECASE),
]
FLUFF_SCAN_LINES = 10


def extract_json_from_response(response: str) -> Any:
    """Extract JSON from a model response using multiple strategies.

    Models may wrap JSON in markdown code blocks or add commentary.
    This function tries multiple parsing strategies to extract valid JSON.

    Args:
        response: Raw model response text

    Returns:
        Parsed JSON value (object or array)

    Raises:
        ValueError: If no valid JSON can be extracted
    """
    # Strategy 1: Direct JSON parse
    try:
        return json.loads(response)
    except json.JSONDecodeError:
        pass

    # Strategy 2: Extract from markdown code block
    code_block_match = re.search(
        r'```(?:json)?\s*([\[{].*?[\]}])\s*```',
        response,
        re.DOTALL
    )
    if code_block_match:
        try:
            return json.loads(code_block_match.group(1))
        except json.JSONDecodeError:
            pass

    # Strategy 3: First '{' to last '}' (handles commentary before/after)
    for opener, closer in (("{", "}"), ("[", "]")):
        start = response.find(opener)
        end = response.rfind(closer)
        if start != -1 and end > start:
            try:
                return json.loads(response[start:end + 1])
            except json.JSONDecodeError:
                pass

    # If all strategies fail, raise descriptive error
    raise ValueError(
        f"Could not extract valid JSON from model response. "
        f"Response preview: {response[:200]}"
    )


def parse_keywords(content: str) -> list:
    """Decode a keyword-extraction response.

    A JSON array is returned unchanged. An object with a ``keywords`` or
    ``skills`` array returns that array. Any other shape, or unparsable text,
    returns an empty list.
    """
    if not content or not content.strip():
        return []

    try:
        parsed = extract_json_from_response(content)
    except ValueError as e:
        logger.warning(f"Keyword response was not JSON: {e}")
        return []

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict):
        for field in ("keywords", "skills"):
            if isinstance(parsed.get(field), list):
                return parsed[field]

    logger.warning(f"Keyword response had an unexpected shape: {type(parsed).__name__}")
    return []


def _coerce_score(value: Any) -> int:
    """Number-like score clamped to 0-100; anything else becomes 0."""
    if isinstance(value, bool) or value is None:
        return 0
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return 0
    if not isinstance(value, (int, float)) or math.isnan(value) or math.isinf(value):
        return 0
    return max(0, min(100, int(round(value))))


def parse_ats_analysis(content: str) -> ATSAnalysis:
    """Decode an ATS scoring response with per-field defaults.

    The text between the first ``{`` and the last ``}`` is parsed. ``score``
    falls back to 0, ``feedback`` to a placeholder and ``missingKeywords`` to
    an empty list. A longer keyword list is passed through as-is. When nothing
    can be parsed the result is a zero score carrying the error as feedback.
    """
    try:
        start = content.find("{")
        end = content.rfind("}")
        if start != -1 and end != -1:
            content = content[start:end + 1]

        parsed = json.loads(content)
        if not isinstance(parsed, dict):
            raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    except (ValueError, TypeError, AttributeError) as e:
        logger.error(f"ATS analysis parse failed: {e}")
        return ATSAnalysis(score=0, feedback=f"Analysis failed: {e}", missing_keywords=[])

    feedback = parsed.get("feedback")
    if not isinstance(feedback, str) or not feedback.strip():
        feedback = NO_FEEDBACK

    missing = parsed.get("missingKeywords", parsed.get("missing_keywords"))
    if isinstance(missing, list):
        missing_keywords = [str(item) for item in missing if isinstance(item, (str, int, float))]
    else:
        missing_keywords = []

    return ATSAnalysis(
        score=_coerce_score(parsed.get("score")),
        feedback=feedback,
        missing_keywords=missing_keywords,
    )


def _strip_code_fences(content: str) -> str:
    content = re.sub(r"^\s*```markdown\s*", "", content, flags=re.IGNORECASE)
    content = re.sub(r"^\s*```\s*", "", content)
    return re.sub(r"\s*```\s*$", "", content)


def _drop_preamble(content: str) -> str:
    match = RESUME_HEADING_PATTERN.search(content)
    if match and match.start() > 0:
        return content[match.start():]
    return content


def _drop_fluff(content: str) -> str:
    """Cut at the bottom-most closing remark among the last 10 lines.

    Lines are scanned from the end upwards and the first match wins, so a
    single pass removes only the last remark and what follows it. Remarks
    stacked above it are removed by the repeated passes in
    ``clean_resume_markdown``.
    """
    lines = content.split("\n")
    for index in range(len(lines) - 1, max(0, len(lines) - FLUFF_SCAN_LINES) - 1, -1):
        if any(pattern.search(lines[index]) for pattern in FLUFF_PATTERNS):
            return "\n".join(lines[:index])
    return content


def clean_resume_markdown(content: str) -> str:
    """Clean a generated resume down to the markdown document itself.

    Removes code fences, any text before the first recognised section
    heading, and closing remarks found in the last 10 lines. Passes repeat
    until the text stops changing, so cleaning already-clean text is a no-op.
    """
    previous = None
    while content != previous:
        previous = content
        content = _strip_code_fences(content)
        content = _drop_preamble(content)
        content = _drop_fluff(content)
        content = content.strip()
    return content


def _pick(data: dict[str, Any], *keys: str, default: Any = "") -> Any:
    """First non-empty value among camelCase / snake_case spellings."""
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return default


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _records(data: dict[str, Any], key: str) -> list[dict[str, Any]]:
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _work_preference(value: Any) -> str | None:
    normalized = _text(value).lower().replace("-", "").replace(" ", "")
    return {"remote": "Remote", "onsite": "On-Site", "hybrid": "Hybrid"}.get(normalized)


def parse_profile_import(content: str) -> ProfileCreate:
    """Build an unsaved profile from a resume-import response.

    Missing fields get defaults and every nested entry gets a fresh UUID.

    Raises:
        ValueError: If the response holds no JSON object
    """
    data = extract_json_from_response(content)
    if not isinstance(data, dict):
        raise ValueError("Resume import response was not a JSON object")

    contact = data.get("contactInfo") or data.get("contact_info") or {}
    hr = data.get("hrData") or data.get("hr_data") or {}
    if not isinstance(contact, dict):
        contact = {}
    if not isinstance(hr, dict):
        hr = {}

    skills = data.get("skills")
    skills = [str(s) for s in skills if isinstance(s, (str, int, float))] if isinstance(skills, list) else []

    return ProfileCreate(
        name=_text(data.get("name")) or "Unknown Candidate",
        target_role=_text(_pick(data, "targetRole", "target_role")) or "Job Seeker",
        intro=_text(data.get("intro")),
        skills=skills,
        contact_info=ContactInfo(
            **{field: _text(contact.get(field)) or None for field in ContactInfo.model_fields}
        ),
        hr_data=HRData(
            work_preference=_work_preference(_pick(hr, "workPreference", "work_preference")),
            notice_period=_text(_pick(hr, "noticePeriod", "notice_period")) or None,
        ),
        experience=[
            ExperienceEntry(
                company=_text(e.get("company")) or "Unknown",
                role=_text(e.get("role")) or "Unknown",
                start_date=_text(_pick(e, "startDate", "start_date")),
                end_date=_text(_pick(e, "endDate", "end_date")),
                current=bool(e.get("current")),
                description=_text(e.get("description")),
            )
            for e in _records(data, "experience")
        ],
        projects=[
            ProjectEntry(
                name=_text(p.get("name")) or "Unnamed Project",
                description=_text(p.get("description")),
                url=_text(p.get("url")) or None,
            )
            for p in _records(data, "projects")
        ],
        education=[
            EducationEntry(
                institution=_text(e.get("institution")),
                degree=_text(e.get("degree")),
                start_date=_text(_pick(e, "startDate", "start_date")),
                end_date=_text(_pick(e, "endDate", "end_date")),
            )
            for e in _records(data, "education")
        ],
        certifications=[
            CertificationEntry(
                name=_text(c.get("name")),
                issuer=_text(c.get("issuer")),
                year=_text(str(c.get("year") or "")),
            )
            for c in _records(data, "certifications")
            if _text(c.get("name"))
        ],
    )
