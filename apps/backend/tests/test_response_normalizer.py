import json

import pytest

from jobos.services.response_normalizer import (
    NO_FEEDBACK,
    _drop_fluff,
    clean_resume_markdown,
    extract_json_from_response,
    parse_ats_analysis,
    parse_keywords,
    parse_profile_import,
)


class TestParseKeywords:
    def test_array_is_returned_unchanged(self):
        assert parse_keywords('["Node.js", "React.js", "AWS"]') == ["Node.js", "React.js", "AWS"]

    def test_array_with_odd_items_is_not_filtered(self):
        assert parse_keywords('["Python", 3, ""]') == ["Python", 3, ""]

    @pytest.mark.parametrize("field", ["keywords", "skills"])
    def test_object_field_is_unwrapped(self, field):
        content = json.dumps({field: ["Docker", "Kubernetes"], "other": 1})
        assert parse_keywords(content) == ["Docker", "Kubernetes"]

    def test_fenced_json_with_prose(self):
        content = 'Here are the keywords:\n```json\n{"keywords": ["SQL"]}\n```\nEnjoy!'
        assert parse_keywords(content) == ["SQL"]

    @pytest.mark.parametrize(
        "content",
        ['{"keywords": "Python"}', '{"items": ["Python"]}', '"Python"', "42", "no json here", ""],
    )
    def test_other_shapes_give_empty_list(self, content):
        assert parse_keywords(content) == []


class TestParseATSAnalysis:
    def test_leading_prose_is_ignored(self):
        content = 'Here you go: {"score": 82, "feedback": "Strong match.", "missingKeywords": ["Docker"]}'
        analysis = parse_ats_analysis(content)

        assert analysis.score == 82
        assert analysis.feedback == "Strong match."
        assert analysis.missing_keywords == ["Docker"]

    def test_long_missing_keyword_list_is_passed_through(self):
        missing = [f"Skill{i}" for i in range(8)]
        content = json.dumps({"score": 40, "feedback": "Gaps.", "missingKeywords": missing})

        assert parse_ats_analysis(content).missing_keywords == missing

    @pytest.mark.parametrize(
        "score, expected",
        [("75", 75), (67.6, 68), ("abc", 0), (None, 0), (True, 0), (-5, 0), (130, 100), ([90], 0)],
    )
    def test_score_coercion(self, score, expected):
        content = json.dumps({"score": score, "feedback": "x", "missingKeywords": []})
        assert parse_ats_analysis(content).score == expected

    def test_missing_fields_get_defaults(self):
        analysis = parse_ats_analysis('{"missingKeywords": "Docker"}')

        assert analysis.score == 0
        assert analysis.feedback == NO_FEEDBACK
        assert analysis.missing_keywords == []

    @pytest.mark.parametrize("content", ["total garbage", "{not json}", "[1, 2]", ""])
    def test_unparsable_output_gives_zero_score_with_error(self, content):
        analysis = parse_ats_analysis(content)

        assert analysis.score == 0
        assert analysis.feedback.startswith("Analysis failed:")
        assert analysis.missing_keywords == []


class TestCleanResumeMarkdown:
    def test_conversational_preamble_is_removed(self):
        content = "Sure! Here's your tailored resume:\n\n## PROFESSIONAL SUMMARY\nBackend engineer."

        cleaned = clean_resume_markdown(content)

        assert cleaned.startswith("## PROFESSIONAL SUMMARY")
        assert cleaned.endswith("Backend engineer.")

    def test_trailing_fluff_line_is_removed(self):
        body = "## Summary\nEngineer.\n\n## Skills\nPython, SQL"
        content = body + "\n\nI hope this helps with your application!"

        assert clean_resume_markdown(content) == body

    def test_everything_from_the_fluff_line_onwards_is_dropped(self):
        body = "## Experience\n**Acme** | Engineer"
        content = body + "\n\nPlease let me know if you want changes.\nCheers!"

        assert clean_resume_markdown(content) == body

    def test_fluff_outside_the_last_ten_lines_is_kept(self):
        lines = ["## Summary", "The above resume style is classic."] + [f"- item {i}" for i in range(12)]
        content = "\n".join(lines)

        assert clean_resume_markdown(content) == content

    @pytest.mark.parametrize("heading", ["## EXPERIENCES", "## SKILLSET", "### Summary of Qualifications"])
    def test_preamble_is_cut_at_heading_prefix(self, heading):
        content = f"Sure, here it is:\n\n{heading}\n- did things"

        assert clean_resume_markdown(content) == f"{heading}\n- did things"

    def test_single_fluff_pass_cuts_at_the_last_remark(self):
        content = "## Skills\nGo\nI hope this helps\nRust\nGood luck with your application!"

        assert _drop_fluff(content) == "## Skills\nGo\nI hope this helps\nRust"

    def test_stacked_remarks_are_all_removed(self):
        content = "## Skills\nGo\nI hope this helps\nRust\nGood luck with your application!"

        assert clean_resume_markdown(content) == "## Skills\nGo"

    def test_code_fences_are_stripped(self):
        content = "```markdown\n## Skills\nGo, Rust\n```"
        assert clean_resume_markdown(content) == "## Skills\nGo, Rust"

    def test_text_without_headings_is_kept(self):
        assert clean_resume_markdown("  Just some text.  ") == "Just some text."

    @pytest.mark.parametrize(
        "content",
        [
            "Sure! Here it is:\n\n## PROFESSIONAL SUMMARY\nBuilder.\n\nGood luck with your application!",
            "```\n```markdown\n## Skills\nPython\n```\n```",
            "## Experience\nDid things.\nThis resume has been tailored for the role.",
            "",
        ],
    )
    def test_cleanup_is_idempotent(self, content):
        once = clean_resume_markdown(content)
        assert clean_resume_markdown(once) == once


class TestExtractJson:
    def test_direct_array(self):
        assert extract_json_from_response("[1, 2]") == [1, 2]

    def test_object_inside_commentary(self):
        assert extract_json_from_response('Result: {"a": 1} done') == {"a": 1}

    def test_no_json_raises(self):
        with pytest.raises(ValueError, match="Could not extract valid JSON"):
            extract_json_from_response("nothing to see")


class TestParseProfileImport:
    def test_camel_case_fields_and_fresh_ids(self):
        content = json.dumps({
            "name": "Ada Lovelace",
            "targetRole": "Software Engineer",
            "skills": ["Python", "Python", "SQL"],
            "contactInfo": {"email": "ada@example.com", "phone": ""},
            "hrData": {"workPreference": "remote", "noticePeriod": "2 weeks"},
            "experience": [
                {"company": "Analytical Engines", "role": "Engineer", "startDate": "2020", "current": True},
                {"company": "Babbage Ltd", "role": "Intern"},
            ],
            "projects": [{"name": "", "description": "Untitled"}],
            "education": [{"institution": "London", "degree": "BSc"}],
            "certifications": [{"name": "AWS SAA", "year": 2023}, {"name": ""}],
        })

        profile = parse_profile_import(content)

        assert profile.name == "Ada Lovelace"
        assert profile.target_role == "Software Engineer"
        assert profile.skills == ["Python", "SQL"]
        assert profile.contact_info.email == "ada@example.com"
        assert profile.contact_info.phone is None
        assert profile.hr_data.work_preference == "Remote"
        assert profile.hr_data.notice_period == "2 weeks"
        assert [e.company for e in profile.experience] == ["Analytical Engines", "Babbage Ltd"]
        assert profile.experience[0].start_date == "2020"
        assert profile.experience[0].current is True
        assert profile.experience[0].id != profile.experience[1].id
        assert profile.projects[0].name == "Unnamed Project"
        assert profile.education[0].institution == "London"
        assert [c.name for c in profile.certifications] == ["AWS SAA"]
        assert profile.certifications[0].year == "2023"

    def test_empty_object_gets_defaults(self):
        profile = parse_profile_import("{}")

        assert profile.name == "Unknown Candidate"
        assert profile.target_role == "Job Seeker"
        assert profile.experience == []

    def test_non_object_raises(self):
        with pytest.raises(ValueError):
            parse_profile_import('["not", "a", "profile"]')
