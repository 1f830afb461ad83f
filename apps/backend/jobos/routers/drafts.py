"""Drafts API router: the job form between opening and saving.

Every action loads the draft's state into a ``JobWorkspace``, applies the
action and writes the state back. Saving a draft creates the job (or
updates the job it was opened from) and deletes the draft.
"""

import logging
from collections.abc import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jobos.database import get_db, get_session_factory
from jobos.models import Job, JobDraft, Profile
from jobos.routers.deps import get_llm_client, http_error_for, not_found
from jobos.routers.jobs import job_values
from jobos.schemas.draft import (
    DocumentKind,
    DraftCreate,
    DraftFieldsUpdate,
    DraftResponse,
    DraftState,
    EditTextRequest,
    GenerateDocumentRequest,
    KeywordRequest,
    PasteRequest,
    RefineRequest,
)
from jobos.schemas.job import JobResponse
from jobos.schemas.profile import ProfileResponse
from jobos.services.llm_client import LLMError, OpenRouterClient
from jobos.services.profile_editor import to_profile_schema
from jobos.services.workspace import JobWorkspace, WorkspaceValidationError, state_from_job

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/drafts", tags=["drafts"])

# Ends a cover letter body that failed part-way; the error message follows
STREAM_ERROR_MARKER = "\n\n[stream-error] "


async def _get_draft_or_404(db: AsyncSession, draft_id: int) -> JobDraft:
    draft = await db.get(JobDraft, draft_id)
    if not draft:
        raise not_found("Draft", draft_id)
    return draft


def _workspace(draft: JobDraft, llm: OpenRouterClient | None = None) -> JobWorkspace:
    return JobWorkspace(DraftState.model_validate(draft.state or {}), llm)


async def _persist(db: AsyncSession, draft: JobDraft, workspace: JobWorkspace) -> DraftResponse:
    draft.state = workspace.state.model_dump(mode="json")
    await db.commit()
    await db.refresh(draft)
    return DraftResponse.model_validate(draft)


async def _resolve_profile(
    db: AsyncSession,
    request: GenerateDocumentRequest,
    workspace: JobWorkspace,
) -> ProfileResponse | None:
    """Requested profile, else the one already selected on the draft."""
    profile_id = request.profile_id or workspace.state.profile_id
    if profile_id is None:
        return None
    row = await db.get(Profile, profile_id)
    if not row:
        raise not_found("Profile", profile_id)
    return to_profile_schema(row)


@router.post(
    "",
    response_model=DraftResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Open a job form"
)
async def create_draft(
    request: DraftCreate,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    """Start a blank draft, or one pre-filled from an existing job.

    Raises:
        HTTPException 404: Job not found
    """
    state = DraftState()
    if request.job_id is not None:
        job = await db.get(Job, request.job_id)
        if not job:
            raise not_found("Job", request.job_id)
        state = state_from_job(job)

    draft = JobDraft(job_id=request.job_id, state=state.model_dump(mode="json"))
    db.add(draft)
    await db.commit()
    await db.refresh(draft)

    logger.info(f"Opened draft {draft.id} (job {request.job_id})")
    return DraftResponse.model_validate(draft)


@router.get(
    "/{draft_id}",
    response_model=DraftResponse,
    summary="Get draft"
)
async def get_draft(
    draft_id: int,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    draft = await _get_draft_or_404(db, draft_id)
    return DraftResponse.model_validate(draft)


@router.delete(
    "/{draft_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Discard draft"
)
async def discard_draft(
    draft_id: int,
    db: AsyncSession = Depends(get_db)
) -> None:
    draft = await _get_draft_or_404(db, draft_id)
    await db.delete(draft)
    await db.commit()
    logger.info(f"Discarded draft {draft_id}")


@router.patch(
    "/{draft_id}",
    response_model=DraftResponse,
    summary="Edit form fields"
)
async def update_draft_fields(
    draft_id: int,
    changes: DraftFieldsUpdate,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    """Update plain form fields. Only provided fields are changed."""
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)

    for field, value in changes.model_dump(exclude_unset=True).items():
        if value is None and field not in ("profile_id", "date_applied"):
            continue
        setattr(workspace.state, field, value)

    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/description/paste",
    response_model=DraftResponse,
    summary="Paste a job description"
)
async def paste_description(
    draft_id: int,
    request: PasteRequest,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client)
) -> DraftResponse:
    """Set the description; extracts keywords when none exist yet."""
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)
    await workspace.handle_description_paste(request.text)
    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/keywords/extract",
    response_model=DraftResponse,
    summary="Extract keywords from the description"
)
async def extract_draft_keywords(
    draft_id: int,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client)
) -> DraftResponse:
    """Merge keywords extracted from the description into the draft.

    Raises:
        HTTPException 400: API key not configured
        HTTPException 422: Description empty
        HTTPException 502: Model request failed
    """
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)

    try:
        await workspace.extract_keywords()
    except (LLMError, WorkspaceValidationError) as e:
        logger.error(f"Keyword extraction failed for draft {draft_id}: {e}")
        raise http_error_for(e)

    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/keywords",
    response_model=DraftResponse,
    summary="Add a keyword"
)
async def add_draft_keyword(
    draft_id: int,
    request: KeywordRequest,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)
    workspace.add_keyword(request.keyword)
    return await _persist(db, draft, workspace)


@router.delete(
    "/{draft_id}/keywords/{keyword:path}",
    response_model=DraftResponse,
    summary="Remove a keyword"
)
async def remove_draft_keyword(
    draft_id: int,
    keyword: str,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)
    workspace.remove_keyword(keyword)
    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/resume/generate",
    response_model=DraftResponse,
    summary="Draft a tailored resume"
)
async def generate_draft_resume(
    draft_id: int,
    request: GenerateDocumentRequest,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client)
) -> DraftResponse:
    """Generate a resume from a profile, then rescore it.

    Raises:
        HTTPException 400: API key not configured
        HTTPException 404: Profile not found
        HTTPException 422: No profile selected or description empty
        HTTPException 502: Model request failed
    """
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)
    profile = await _resolve_profile(db, request, workspace)

    try:
        await workspace.generate_resume(profile)
    except (LLMError, WorkspaceValidationError) as e:
        logger.error(f"Resume generation failed for draft {draft_id}: {e}")
        raise http_error_for(e)

    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/resume/refine",
    response_model=DraftResponse,
    summary="Refine the resume"
)
async def refine_draft_resume(
    draft_id: int,
    request: RefineRequest,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client)
) -> DraftResponse:
    """Apply free-form instructions to the resume, then rescore it.

    Raises:
        HTTPException 422: No resume yet or blank instructions
        HTTPException 502: Model request failed
    """
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)

    try:
        await workspace.refine_resume(request.instructions)
    except (LLMError, WorkspaceValidationError) as e:
        logger.error(f"Resume refinement failed for draft {draft_id}: {e}")
        raise http_error_for(e)

    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/ats-score",
    response_model=DraftResponse,
    summary="Recalculate the ATS score"
)
async def rescore_draft(
    draft_id: int,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client)
) -> DraftResponse:
    """Rescore the current resume. A no-op without resume or description."""
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)
    await workspace.rescore()
    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/{kind}/edit",
    response_model=DraftResponse,
    summary="Start editing a document"
)
async def begin_document_edit(
    draft_id: int,
    kind: DocumentKind,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)
    workspace.begin_edit(kind)
    return await _persist(db, draft, workspace)


@router.put(
    "/{draft_id}/{kind}/edit",
    response_model=DraftResponse,
    summary="Change the edit buffer"
)
async def update_document_edit(
    draft_id: int,
    kind: DocumentKind,
    request: EditTextRequest,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)

    try:
        workspace.update_edit(kind, request.text)
    except WorkspaceValidationError as e:
        raise http_error_for(e)

    return await _persist(db, draft, workspace)


@router.post(
    "/{draft_id}/{kind}/edit/save",
    response_model=DraftResponse,
    summary="Save the edit buffer"
)
async def save_document_edit(
    draft_id: int,
    kind: DocumentKind,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client)
) -> DraftResponse:
    """Commit the edit buffer. Saving a resume edit triggers a rescore."""
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)

    try:
        await workspace.save_edit(kind)
    except WorkspaceValidationError as e:
        raise http_error_for(e)

    return await _persist(db, draft, workspace)


@router.delete(
    "/{draft_id}/{kind}/edit",
    response_model=DraftResponse,
    summary="Cancel editing"
)
async def cancel_document_edit(
    draft_id: int,
    kind: DocumentKind,
    db: AsyncSession = Depends(get_db)
) -> DraftResponse:
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)
    workspace.cancel_edit(kind)
    return await _persist(db, draft, workspace)


async def _stream_and_store(
    first: str,
    fragments: AsyncIterator[str],
    workspace: JobWorkspace,
    draft_id: int,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncIterator[str]:
    """Relay cover letter fragments, then store the final text.

    The text is stored when the stream completes or fails part-way. A
    part-way failure ends the body with ``STREAM_ERROR_MARKER`` followed by
    the error message and a newline. If the client disconnects, nothing is
    stored.
    """
    try:
        yield first
        async for fragment in fragments:
            yield fragment
    except LLMError as e:
        logger.error(f"Cover letter stream for draft {draft_id} failed after partial output: {e}")
        yield f"{STREAM_ERROR_MARKER}{e}\n"

    async with session_factory() as session:
        draft = await session.get(JobDraft, draft_id)
        if draft is None:
            logger.warning(f"Draft {draft_id} was removed while its cover letter streamed")
            return
        draft.state = workspace.state.model_dump(mode="json")
        await session.commit()

    logger.info(f"Stored cover letter for draft {draft_id} ({len(workspace.state.cover_letter.text)} chars)")


@router.post(
    "/{draft_id}/cover-letter/stream",
    summary="Stream a cover letter",
    response_class=StreamingResponse
)
async def stream_draft_cover_letter(
    draft_id: int,
    request: GenerateDocumentRequest,
    db: AsyncSession = Depends(get_db),
    llm: OpenRouterClient = Depends(get_llm_client),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory)
) -> StreamingResponse:
    """Stream the cover letter as plain text fragments.

    The first fragment is awaited before the response starts, so a failure
    with no output still becomes an HTTP error and the stored draft is left
    as it was. A failure after output ends the body with
    ``STREAM_ERROR_MARKER``.

    Raises:
        HTTPException 400: API key not configured
        HTTPException 404: Draft or profile not found
        HTTPException 422: No profile selected or description empty
        HTTPException 502: Model request failed before any text arrived
    """
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft, llm)
    profile = await _resolve_profile(db, request, workspace)

    fragments = workspace.stream_cover_letter(profile)
    try:
        first = await anext(fragments, "")
    except (LLMError, WorkspaceValidationError) as e:
        logger.error(f"Cover letter stream for draft {draft_id} failed: {e}")
        raise http_error_for(e)

    return StreamingResponse(
        _stream_and_store(first, fragments, workspace, draft_id, session_factory),
        media_type="text/plain; charset=utf-8",
    )


@router.post(
    "/{draft_id}/save",
    response_model=JobResponse,
    summary="Save the job"
)
async def save_draft(
    draft_id: int,
    db: AsyncSession = Depends(get_db)
) -> JobResponse:
    """Create or update the job from the draft, then delete the draft.

    Raises:
        HTTPException 404: Draft or its source job not found
        HTTPException 422: Company or role missing
    """
    draft = await _get_draft_or_404(db, draft_id)
    workspace = _workspace(draft)

    try:
        payload = workspace.save()
    except WorkspaceValidationError as e:
        raise http_error_for(e)

    try:
        if draft.job_id is not None:
            job = await db.get(Job, draft.job_id)
            if not job:
                raise not_found("Job", draft.job_id)
            for field, value in job_values(payload).items():
                setattr(job, field, value)
        else:
            job = Job(**job_values(payload))
            db.add(job)

        await db.delete(draft)
        await db.commit()
        await db.refresh(job)

    except HTTPException:
        raise
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to save draft {draft_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save job: {str(e)}"
        )

    logger.info(f"Saved draft {draft_id} as job {job.id}")
    return JobResponse.model_validate(job)
