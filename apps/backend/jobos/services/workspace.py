"""Job form workspace: the state machine behind drafting an application.

A ``JobWorkspace`` wraps a ``DraftState`` and applies user actions to it:
keyword extraction and edits, resume drafting and refinement, manual edits
of either document, cover letter streaming, ATS rescoring and the final
save. Validation failures raise ``WorkspaceValidationError`` with a message
meant for the user and happen before any network call.

Each resume text change (draft, refine, saved manual edit) triggers a
rescore when the description is non-empty. Cover letter changes never do.
"""

import logging
from collections.abc import AsyncIterator
from datetime import date, datetime, timezone

from jobos.models import Job
from jobos.schemas.draft import DocumentKind, DocumentState, DraftState
from jobos.schemas.job import JobCreate
from jobos.schemas.profile import ProfileBase
from jobos.services import analysis, cover_letter, resume
from jobos.services.job_lifecycle import merge_keywords
from jobos.services.llm_client import LLMError, OpenRouterClient

logger = logging.getLogger(__name__)

# Pasted descriptions longer than this trigger keyword extraction
PASTE_EXTRACTION_MIN_LENGTH = 50

SELECT_PROFILE_MESSAGE = "Please select a profile first."
RESUME_DESCRIPTION_MESSAGE = "Please provide a job description in the Job Details tab."
DESCRIPTION_MESSAGE = "Please provide a job description."
REQUIRED_FIELDS_MESSAGE = "Company and Role are required."


class WorkspaceValidationError(ValueError):
    """User-facing precondition failure for a workspace action."""


def state_from_job(job: Job) -> DraftState:
    """Draft state for editing an existing job."""
    return DraftState(
        company=job.company,
        role=job.role,
        location=job.location,
        status=job.status,
        date_applied=job.date_applied,
        source=job.source,
        profile_id=job.profile_id,
        description=job.description,
        notes=job.notes,
        keywords=list(job.keywords or []),
        resume=DocumentState(
            text=job.resume_snapshot,
            stage="saved" if job.resume_snapshot else "empty",
        ),
        cover_letter=DocumentState(
            text=job.cover_letter_snapshot,
            stage="saved" if job.cover_letter_snapshot else "empty",
        ),
    )


class JobWorkspace:
    """Applies form actions to a draft's state."""

    def __init__(self, state: DraftState, llm: OpenRouterClient, today: date | None = None):
        self.state = state
        self.llm = llm
        self.today = today

    def document(self, kind: DocumentKind) -> DocumentState:
        return self.state.resume if kind == "resume" else self.state.cover_letter

    def _require_generation_inputs(self, profile: ProfileBase | None, description_message: str) -> None:
        if profile is None:
            raise WorkspaceValidationError(SELECT_PROFILE_MESSAGE)
        if not self.state.description.strip():
            raise WorkspaceValidationError(description_message)

    # Keywords

    async def extract_keywords(self) -> list[str]:
        """Extract keywords from the description and merge them in.

        Raises:
            WorkspaceValidationError: Description is empty
            ConfigurationError: API key missing
            LLMRequestError: Gateway failure
        """
        if not self.state.description.strip():
            raise WorkspaceValidationError(DESCRIPTION_MESSAGE)
        extracted = await analysis.extract_keywords(self.llm, self.state.description)
        self.state.keywords = merge_keywords(self.state.keywords, extracted)
        return self.state.keywords

    async def handle_description_paste(self, text: str) -> list[str]:
        """Set the description from pasted text, extracting keywords when useful.

        Extraction runs only when no keywords exist yet and the pasted text
        is longer than 50 characters. Gateway failures are logged; the paste
        itself always succeeds.
        """
        self.state.description = text
        if self.state.keywords or len(text) <= PASTE_EXTRACTION_MIN_LENGTH:
            return self.state.keywords

        try:
            extracted = await analysis.extract_keywords(self.llm, text)
        except LLMError as e:
            logger.warning(f"Keyword extraction on paste failed: {e}")
            return self.state.keywords

        self.state.keywords = merge_keywords(self.state.keywords, extracted)
        return self.state.keywords

    def add_keyword(self, keyword: str) -> list[str]:
        self.state.keywords = merge_keywords(self.state.keywords, [keyword])
        return self.state.keywords

    def remove_keyword(self, keyword: str) -> list[str]:
        self.state.keywords = [k for k in self.state.keywords if k != keyword]
        return self.state.keywords

    # ATS scoring

    async def rescore(self) -> None:
        """Recompute the ATS analysis when both resume and description exist."""
        if not self.state.resume.text.strip() or not self.state.description.strip():
            return
        self.state.ats_analysis = await analysis.calculate_ats_score(
            self.llm, self.state.resume.text, self.state.description
        )

    # Resume

    async def update_resume(self, text: str, profile_id: int | None = None) -> None:
        """Replace the resume text, record the profile used, then rescore."""
        self.state.resume.text = text
        if profile_id is not None:
            self.state.profile_id = profile_id
        await self.rescore()

    async def generate_resume(self, profile: ProfileBase | None) -> str:
        """Draft a resume tailored to this job from the given profile.

        Raises:
            WorkspaceValidationError: No profile or no description
            ConfigurationError: API key missing
            LLMRequestError: Gateway failure
        """
        self._require_generation_inputs(profile, RESUME_DESCRIPTION_MESSAGE)

        text = await resume.generate_resume_draft(
            self.llm,
            profile,
            self.state.company,
            self.state.role,
            self.state.description,
            self.state.keywords,
        )
        self.state.resume.stage = "drafted"
        await self.update_resume(text, getattr(profile, "id", None))
        return text

    async def refine_resume(self, instructions: str) -> str:
        """Apply free-form instructions to the current resume.

        Raises:
            WorkspaceValidationError: No resume yet or blank instructions
        """
        if not self.state.resume.text.strip():
            raise WorkspaceValidationError("Generate a resume before refining it.")
        if not instructions.strip():
            raise WorkspaceValidationError("Please enter refinement instructions.")

        text = await resume.refine_resume(self.llm, self.state.resume.text, instructions)
        self.state.resume.stage = "refined"
        await self.update_resume(text)
        return text

    # Manual edits

    def begin_edit(self, kind: DocumentKind) -> DocumentState:
        doc = self.document(kind)
        doc.edit_buffer = doc.text
        doc.is_editing = True
        return doc

    def update_edit(self, kind: DocumentKind, text: str) -> DocumentState:
        doc = self.document(kind)
        if not doc.is_editing:
            raise WorkspaceValidationError("This document is not being edited.")
        doc.edit_buffer = text
        return doc

    async def save_edit(self, kind: DocumentKind) -> DocumentState:
        """Commit the edit buffer to the document text."""
        doc = self.document(kind)
        if not doc.is_editing:
            raise WorkspaceValidationError("This document is not being edited.")

        text = doc.edit_buffer
        doc.is_editing = False
        doc.edit_buffer = ""
        if doc.stage == "empty" and text:
            doc.stage = "drafted"

        if kind == "resume":
            await self.update_resume(text)
        else:
            doc.text = text
        return doc

    def cancel_edit(self, kind: DocumentKind) -> DocumentState:
        doc = self.document(kind)
        doc.is_editing = False
        doc.edit_buffer = ""
        return doc

    # Cover letter

    def check_cover_letter_inputs(self, profile: ProfileBase | None) -> None:
        """Fail fast before a cover letter stream is opened.

        Raises:
            WorkspaceValidationError: No profile or no description
            ConfigurationError: API key missing
        """
        self._require_generation_inputs(profile, DESCRIPTION_MESSAGE)
        self.llm.require_api_key()

    async def stream_cover_letter(self, profile: ProfileBase | None) -> AsyncIterator[str]:
        """Stream a cover letter into the draft, fragment by fragment.

        The letter text is cleared first, then each fragment is appended to
        the state before it is yielded. If the consumer stops iterating, no
        later fragment is written. A failure after partial output keeps the
        partial text and re-raises.

        Raises:
            WorkspaceValidationError: No profile or no description
        """
        self.check_cover_letter_inputs(profile)

        letter = self.state.cover_letter
        letter.text = ""
        letter.stage = "drafted"
        fragments = cover_letter.stream_cover_letter(
            self.llm,
            profile,
            self.state.company,
            self.state.role,
            self.state.description,
            self.today,
        )
        async for fragment in fragments:
            letter.text += fragment
            yield fragment

    # Save

    def save(self) -> JobCreate:
        """Validate the form and produce the job payload to persist.

        Raises:
            WorkspaceValidationError: Company or role missing
        """
        if not self.state.company.strip() or not self.state.role.strip():
            raise WorkspaceValidationError(REQUIRED_FIELDS_MESSAGE)

        payload = JobCreate(
            company=self.state.company,
            role=self.state.role,
            location=self.state.location,
            status=self.state.status,
            date_applied=self.state.date_applied or datetime.now(timezone.utc),
            source=self.state.source,
            profile_id=self.state.profile_id,
            description=self.state.description,
            resume_snapshot=self.state.resume.text,
            cover_letter_snapshot=self.state.cover_letter.text,
            keywords=self.state.keywords,
            notes=self.state.notes,
        )
        for doc in (self.state.resume, self.state.cover_letter):
            if doc.text:
                doc.stage = "saved"
        return payload
