from datetime import date

import pytest

from conftest import ScriptedLLM
from jobos.schemas.profile import ContactInfo, HRData, ProfileCreate
from jobos.services.analysis import calculate_ats_score, extract_keywords
from jobos.services.cover_letter import FALLBACK_FAILURE_TEXT, stream_cover_letter
from jobos.services.llm_client import ConfigurationError, LLMRequestError
from jobos.services.resume import (
    build_resume_plain_text,
    cover_letter_filename,
    generate_resume_draft,
    import_profile_from_resume,
    refine_resume,
    resume_filename,
)

PROFILE = ProfileCreate(
    name="Linus Torvalds",
    target_role="Kernel Engineer",
    contact_info=ContactInfo(
        email="linus@example.com",
        phone="555-0199",
        location="Portland",
        linkedin="https://linkedin.com/in/linus",
        github="https://github.com/torvalds",
    ),
    hr_data=HRData(work_preference="Remote", notice_period="1 month"),
)


async def collect(stream) -> list[str]:
    return [fragment async for fragment in stream]


class TestAnalysis:
    async def test_extract_keywords_uses_json_mode(self):
        llm = ScriptedLLM(responses=['["Node.js", "React.js", "AWS"]'])

        keywords = await extract_keywords(
            llm, "Looking for a Node.js and React.js engineer with AWS experience,"
        )

        assert keywords == ["Node.js", "React.js", "AWS"]
        assert llm.calls[0]["json_mode"] is True
        assert llm.calls[0]["temperature"] == 0.1

    async def test_extract_keywords_propagates_gateway_errors(self):
        llm = ScriptedLLM(responses=[LLMRequestError("AI Request Failed: boom", 500)])

        with pytest.raises(LLMRequestError):
            await extract_keywords(llm, "JD")

    async def test_ats_score_is_parsed(self):
        llm = ScriptedLLM(responses=['{"score": 91, "feedback": "Great.", "missingKeywords": []}'])

        analysis = await calculate_ats_score(llm, "resume", "JD")

        assert analysis.score == 91
        assert analysis.feedback == "Great."

    async def test_ats_score_gateway_failure_becomes_zero_score(self):
        llm = ScriptedLLM(responses=[LLMRequestError("AI Request Failed: Rate limited", 429)])

        analysis = await calculate_ats_score(llm, "resume", "JD")

        assert analysis.score == 0
        assert analysis.feedback == "Analysis failed: AI Request Failed: Rate limited"


class TestResume:
    async def test_draft_is_cleaned(self):
        llm = ScriptedLLM(responses=[
            "Sure! Here's your tailored resume:\n\n## PROFESSIONAL SUMMARY\nShips kernels.\n\n"
            "I hope this helps with your application!"
        ])

        resume = await generate_resume_draft(llm, PROFILE, "Acme", "Engineer", "JD", ["C"])

        assert resume == "## PROFESSIONAL SUMMARY\nShips kernels."

    async def test_refine_is_cleaned(self):
        llm = ScriptedLLM(responses=["```markdown\n## SKILLS\nC, Git\n```"])

        assert await refine_resume(llm, "## SKILLS\nC", "add Git") == "## SKILLS\nC, Git"
        assert llm.calls[0]["temperature"] == 0.5

    async def test_import_profile(self):
        llm = ScriptedLLM(responses=['{"name": "Linus", "skills": ["C"]}'])

        profile = await import_profile_from_resume(llm, "Linus\nC programmer")

        assert profile.name == "Linus"
        assert profile.skills == ["C"]

    def test_plain_text_header(self):
        text = build_resume_plain_text("## SUMMARY\nKernels.", PROFILE)

        assert text == (
            "LINUS TORVALDS\n"
            "555-0199 ◇ linus@example.com ◇ Portland ◇ Open to Remote\n"
            "LinkedIn ◇ GitHub ◇ Available in 1 month\n"
            "\n"
            "## SUMMARY\nKernels."
        )

    def test_plain_text_header_skips_empty_lines(self):
        profile = ProfileCreate(name="Ann")
        assert build_resume_plain_text("## SKILLS", profile) == "ANN\n\n## SKILLS"

    def test_filenames(self):
        assert resume_filename(PROFILE) == "Linus_Torvalds_resume.pdf"
        assert resume_filename(None, "Acme", "Engineer") == "Acme_Engineer_resume.pdf"
        assert resume_filename(None) == "Resume_Job_resume.pdf"
        assert cover_letter_filename("Acme") == "Acme_CoverLetter.pdf"
        assert cover_letter_filename("") == "Company_CoverLetter.pdf"


class TestCoverLetterStream:
    async def test_fragments_are_yielded_in_order(self):
        llm = ScriptedLLM(stream_fragments=["Dear ", "Hiring ", "Manager,"])

        fragments = await collect(
            stream_cover_letter(llm, PROFILE, "Acme", "Engineer", "JD", date(2026, 10, 18))
        )

        assert fragments == ["Dear ", "Hiring ", "Manager,"]
        assert llm.calls_of("complete") == []

    async def test_stream_failure_before_content_falls_back_to_buffered_call(self):
        llm = ScriptedLLM(
            stream_error=LLMRequestError("AI Request Failed: stream broke"),
            responses=["Full letter."],
        )

        fragments = await collect(stream_cover_letter(llm, PROFILE, "Acme", "Engineer", "JD"))

        assert fragments == ["Full letter."]
        assert len(llm.calls_of("complete")) == 1

    async def test_empty_stream_falls_back_and_reports_empty_result(self):
        llm = ScriptedLLM(responses=[""])

        fragments = await collect(stream_cover_letter(llm, PROFILE, "Acme", "Engineer", "JD"))

        assert fragments == [FALLBACK_FAILURE_TEXT]

    async def test_failure_after_partial_content_is_raised(self):
        llm = ScriptedLLM(
            stream_fragments=["Dear "],
            stream_error=LLMRequestError("AI Request Failed: reset"),
        )

        received = []
        with pytest.raises(LLMRequestError):
            async for fragment in stream_cover_letter(llm, PROFILE, "Acme", "Engineer", "JD"):
                received.append(fragment)

        assert received == ["Dear "]
        assert llm.calls_of("complete") == []

    async def test_missing_key_does_not_fall_back(self):
        llm = ScriptedLLM(api_key=None)

        with pytest.raises(ConfigurationError):
            await collect(stream_cover_letter(llm, PROFILE, "Acme", "Engineer", "JD"))
