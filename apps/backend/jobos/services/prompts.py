"""Prompt templates for every LLM task.

Each builder is a pure function of its inputs and returns a ``PromptSpec``
holding the (system, user) message pair, the sampling temperature and
whether a JSON object response is requested. Extraction and scoring run
cold (0.1); prose generation runs warmer (0.5-0.7).
"""

import json
from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel

KEYWORD_TEMPERATURE = 0.1
ATS_TEMPERATURE = 0.1
IMPORT_TEMPERATURE = 0.1
RESUME_DRAFT_TEMPERATURE = 0.7
RESUME_REFINE_TEMPERATURE = 0.5
COVER_LETTER_TEMPERATURE = 0.7

# Fields never sent to the model
_PROFILE_PROMPT_EXCLUDE = {"id", "photo", "created_at", "updated_at"}


@dataclass(frozen=True)
class PromptSpec:
    """Messages and sampling options for one LLM call."""

    system: str
    user: str
    temperature: float
    json_mode: bool = False

    @property
    def messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def profile_for_prompt(profile: BaseModel) -> str:
    """Serialize a profile for prompt embedding (no photo, no db metadata)."""
    data = profile.model_dump(mode="json", exclude=_PROFILE_PROMPT_EXCLUDE)
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_letter_date(day: date) -> str:
    """Long US date used on cover letters, e.g. "October 18, 2026"."""
    return f"{day:%B} {day.day}, {day.year}"


KEYWORD_SYSTEM_PROMPT = """You are an expert ATS optimizer. Extract the most critical hard skills, technologies, and keywords from the following Job Description as individual items.

Return ONLY a JSON array of strings, where each string is a single keyword or skill.
Avoid grouping keywords together. Do NOT include category names.

Example Output:
[
    "Node.js",
    "Python",
    "PHP",
    "AWS",
    "React.js",
    "TypeScript",
    "Docker",
    "Kubernetes"
]

Ensure you cover all major technical areas mentioned in the JD.
"""


def build_keyword_extraction_prompt(job_description: str) -> PromptSpec:
    """Prompt for extracting individual skill/technology keywords."""
    return PromptSpec(
        system=KEYWORD_SYSTEM_PROMPT,
        user=job_description,
        temperature=KEYWORD_TEMPERATURE,
        json_mode=True,
    )


ATS_SYSTEM_PROMPT = """You are an expert ATS (Applicant Tracking System) analyzer with deep knowledge of recruitment algorithms.

Your Task:
Perform a comprehensive analysis of the Resume against the Job Description and calculate a precise ATS Match Score (0-100).

Return the result as a valid JSON object with exactly these fields:
{
  "score": integer between 0 and 100,
  "feedback": "concise summary (max 2 sentences) explaining the score",
  "missingKeywords": ["up to 5 critical keywords from the JD missing in the resume"]
}

DETAILED SCORING CRITERIA:

1. HARD SKILLS & KEYWORD MATCHING (45 points):
   - Exact matches for required technologies, tools, frameworks (20 pts)
   - Skill variations and synonyms (e.g., "JS" vs "JavaScript") (10 pts)
   - Certifications and qualifications mentioned in JD (10 pts)
   - Industry-specific terminology and jargon (5 pts)

2. EXPERIENCE ALIGNMENT (25 points):
   - Years of experience match (10 pts)
   - Relevant job titles and roles (8 pts)
   - Domain/industry experience (7 pts)

3. CONTEXTUAL RELEVANCE (15 points):
   - Project descriptions align with job requirements (8 pts)
   - Quantifiable achievements related to JD needs (7 pts)

4. SOFT SKILLS & COMPETENCIES (10 points):
   - Leadership, teamwork, communication skills mentioned in JD (5 pts)
   - Problem-solving and analytical abilities (5 pts)

5. RESUME QUALITY (5 points):
   - Clear structure and readability (3 pts)
   - Professional formatting (2 pts)

SCORING GUIDELINES:
- 90-100: Exceptional match, candidate exceeds requirements
- 75-89: Strong match, candidate meets most/all requirements
- 60-74: Good match, candidate meets core requirements with some gaps
- 40-59: Moderate match, significant gaps in key areas
- 0-39: Poor match, major misalignment

MISSING KEYWORDS IDENTIFICATION:
- Prioritize HARD SKILLS and TECHNOLOGIES that are explicitly required in the JD
- Focus on must-have requirements, not nice-to-haves
- Use exact terminology from the JD (e.g., "React.js" not "React")
- Limit to 5 most critical gaps that would impact hiring decision

Be strict and realistic in your scoring. A perfect 100 should be rare and only for candidates who clearly exceed all requirements.
"""


def build_ats_score_prompt(resume_text: str, job_description: str) -> PromptSpec:
    """Prompt for scoring a resume against a job description."""
    user = (
        f"JOB DESCRIPTION:\n{job_description}\n\n"
        f"RESUME CONTENT:\n{resume_text}\n\n"
        "Return the analysis in JSON format."
    )
    return PromptSpec(
        system=ATS_SYSTEM_PROMPT,
        user=user,
        temperature=ATS_TEMPERATURE,
        json_mode=True,
    )


_LOCKED_FORMAT_RULES = """**EXPERIENCE FORMAT** (Strictly follow this structure):
   ### Role Title | Start Date - End Date
   **Company Name**
   *   Bullet point starts here...
   *   Another bullet point...

**PROJECTS FORMAT** (Strictly follow this structure):
   ### Project Name
   *   Bullet point describing the project, tech stack, or achievement...

**EDUCATION FORMAT**:
   ### Degree Name | Start Date - End Date
   **Institution Name**"""

RESUME_DRAFT_SYSTEM_PROMPT = f"""You are an expert resume writer. Your goal is to tailor a candidate's profile to a specific job description using a STRICT, LOCKED-IN FORMAT.

You will be given:
1. The Candidate's Profile (JSON)
2. The Job Details (Company, Role, Description)
3. Keywords that must appear in the resume

Output:
A complete, plain-text resume formatted in Markdown.

**CRITICAL FORMATTING RULES (DO NOT DEVIATE):**

1. **NO HEADER**: Start immediately with "## PROFESSIONAL SUMMARY". Do NOT output Name, Phone, Email, Links.
   - **CONSTRAINT**: The Professional Summary MUST NOT exceed 400 characters.
2. **SECTION HEADERS**: Use H2 (##) and UPPERCASE, in exactly this order:
   - ## PROFESSIONAL SUMMARY
   - ## SKILLS
   - ## EXPERIENCE
   - ## PROJECTS
   - ## EDUCATION
3. **SKILLS FORMAT**:
   **Category Name**: Skill 1, Skill 2, Skill 3
4. Every experience entry MUST have at least 3 bullets.

{_LOCKED_FORMAT_RULES}

**CONTENT RULES**:
- **NO FLUFF**: Do not add "Additional Information", "References", or conversational outros like "Hope this helps".
- **NO CODE BLOCKS**: Return raw markdown text.
- **Tone**: Professional, action-oriented, quantifiable results.
"""


def build_resume_draft_prompt(
    profile: BaseModel,
    company: str,
    role: str,
    description: str,
    keywords: list[str] | None = None,
) -> PromptSpec:
    """Prompt for drafting a tailored resume from a profile and a job."""
    keyword_line = (
        ", ".join(keywords)
        if keywords
        else "None specified. Extract relevant keywords from the description."
    )
    user = (
        f"PROFILE:\n{profile_for_prompt(profile)}\n\n"
        f"JOB DETAILS:\n"
        f"Company: {company}\n"
        f"Role: {role}\n"
        f"Description:\n{description}\n\n"
        f"MANDATORY KEYWORDS TO INTEGRATE:\n{keyword_line}\n"
    )
    return PromptSpec(
        system=RESUME_DRAFT_SYSTEM_PROMPT,
        user=user,
        temperature=RESUME_DRAFT_TEMPERATURE,
    )


RESUME_REFINE_SYSTEM_PROMPT = f"""You are an expert resume editor. You will refine an existing resume draft based on specific user instructions while maintaining a STRICT LOCKED-IN FORMAT.

**CRITICAL FORMATTING RULES (DO NOT DEVIATE):**

1. **NO HEADER**: Start immediately with the first section (e.g., ## PROFESSIONAL SUMMARY). Do NOT add Name/Contact headers.
2. **HEADINGS**: Use H2 (##) and UPPERCASE for all main sections, keeping the order PROFESSIONAL SUMMARY, SKILLS, EXPERIENCE, PROJECTS, EDUCATION.
3. The Professional Summary MUST NOT exceed 400 characters and every experience entry keeps at least 3 bullets.

{_LOCKED_FORMAT_RULES}

**NO FLUFF**: Do not add conversational text, "Here is the updated resume", or code blocks. Just the raw markdown.

**INSTRUCTIONS**: Apply the user instructions below to the resume content without changing the locked format.
"""


def build_resume_refine_prompt(current_resume: str, instructions: str) -> PromptSpec:
    """Prompt for applying free-form edits to an existing resume."""
    user = f"CURRENT RESUME:\n{current_resume}\n\nINSTRUCTIONS:\n{instructions}\n"
    return PromptSpec(
        system=RESUME_REFINE_SYSTEM_PROMPT,
        user=user,
        temperature=RESUME_REFINE_TEMPERATURE,
    )


def build_cover_letter_prompt(
    profile: BaseModel,
    company: str,
    role: str,
    description: str,
    today: date,
) -> PromptSpec:
    """Prompt for a single-page business cover letter."""
    letter_date = format_letter_date(today)
    contact = getattr(profile, "contact_info", None)
    signature_lines = "\n".join(
        f"    {value}"
        for value in (
            getattr(profile, "name", ""),
            getattr(contact, "email", None),
            getattr(contact, "phone", None),
            getattr(contact, "linkedin", None),
        )
        if value
    )

    system = f"""You are an expert career coach and professional writer. Your goal is to write a compelling, tailored cover letter for a job application.

Format Guidelines:
- **Date**: Use "{letter_date}" at the top.
- **Structure**: Standard business letter.
- **Text Style**: logical paragraphs. DO NOT indent the first line of paragraphs. DO NOT use code blocks.
- **Length**: STRICTLY keep the total length under 300 words. It MUST fit on a single A4 page with margins.
- **Formatting**: Use single spacing.
- **Signature**:
    Sincerely,
{signature_lines}
    (DO NOT include Location/Address)

Content Structure:
1. **Date**: "{letter_date}"
2. **Salutation**: Dear Hiring Manager,
3. **Opening**: Hook the reader, mention role/company (2-3 sentences max).
4. **Body**: 1-2 concise paragraphs focusing ONLY on the most relevant experience. Match the JD. Avoid fluff.
5. **Closing**: Reiterate interest and call to action (1-2 sentences).
6. **Sign-off**: Sincerely, Name + Contact.
"""
    user = (
        f"CANDIDATE PROFILE:\n{profile_for_prompt(profile)}\n\n"
        f"JOB DETAILS:\n"
        f"Company: {company}\n"
        f"Role: {role}\n"
        f"Description:\n{description}\n"
    )
    return PromptSpec(system=system, user=user, temperature=COVER_LETTER_TEMPERATURE)


RESUME_IMPORT_SYSTEM_PROMPT = """You are an expert resume parser. Your job is to extract structured data from a raw resume text and return it as a JSON object.

Return ONLY valid JSON. No markdown formatting, no code blocks.

The structure must strictly follow this shape (IDs are generated by the application, do not include them):
{
  "name": "string",
  "targetRole": "string",
  "intro": "string",
  "skills": ["string"],
  "contactInfo": {
    "email": "string", "phone": "string", "location": "string",
    "linkedin": "string", "github": "string", "website": "string"
  },
  "hrData": {
    "noticePeriod": "e.g. Immediate, 2 weeks, 3 months",
    "workPreference": "Remote, Hybrid or On-Site (infer if possible)"
  },
  "experience": [{"company": "", "role": "", "startDate": "", "endDate": "", "current": false, "description": ""}],
  "projects": [{"name": "", "description": "", "url": ""}],
  "education": [{"institution": "", "degree": "", "startDate": "", "endDate": ""}],
  "certifications": [{"name": "", "issuer": "", "year": ""}]
}

If any field is missing, use empty strings or empty arrays. Do not invent data.
"""


def build_resume_import_prompt(resume_text: str) -> PromptSpec:
    """Prompt for turning raw resume text into profile JSON."""
    return PromptSpec(
        system=RESUME_IMPORT_SYSTEM_PROMPT,
        user=resume_text,
        temperature=IMPORT_TEMPERATURE,
        json_mode=True,
    )
