from datetime import date

from jobos.schemas.profile import ContactInfo, ProfileCreate
from jobos.services import prompts


def make_profile(**overrides) -> ProfileCreate:
    data = {
        "name": "Grace Hopper",
        "target_role": "Backend Engineer",
        "skills": ["COBOL", "Python"],
        "contact_info": ContactInfo(email="grace@example.com", phone="555-0100", location="Arlington"),
        "photo": "data:image/png;base64,AAAA",
    }
    data.update(overrides)
    return ProfileCreate(**data)


def test_json_tasks_use_low_temperature_and_json_mode():
    for spec in (
        prompts.build_keyword_extraction_prompt("JD"),
        prompts.build_ats_score_prompt("resume", "JD"),
        prompts.build_resume_import_prompt("raw resume"),
    ):
        assert spec.temperature == 0.1
        assert spec.json_mode is True


def test_document_tasks_use_their_temperatures():
    profile = make_profile()

    assert prompts.build_resume_draft_prompt(profile, "Acme", "Engineer", "JD").temperature == 0.7
    assert prompts.build_resume_refine_prompt("## Summary", "shorter").temperature == 0.5
    letter = prompts.build_cover_letter_prompt(profile, "Acme", "Engineer", "JD", date(2026, 10, 18))
    assert letter.temperature == 0.7
    assert letter.json_mode is False


def test_messages_are_system_then_user():
    spec = prompts.build_keyword_extraction_prompt("Looking for Go developers")

    assert [m["role"] for m in spec.messages] == ["system", "user"]
    assert spec.messages[1]["content"] == "Looking for Go developers"


def test_resume_draft_prompt_embeds_profile_without_photo_and_keywords():
    spec = prompts.build_resume_draft_prompt(
        make_profile(), "Acme", "Engineer", "Build APIs", ["Docker", "AWS"]
    )

    assert "Grace Hopper" in spec.user
    assert "data:image/png" not in spec.user
    assert "Company: Acme" in spec.user
    assert "Docker, AWS" in spec.user
    assert "## PROFESSIONAL SUMMARY" in spec.system


def test_resume_draft_prompt_without_keywords_asks_model_to_extract():
    spec = prompts.build_resume_draft_prompt(make_profile(), "Acme", "Engineer", "Build APIs")
    assert "None specified" in spec.user


def test_cover_letter_prompt_has_long_date_and_signature():
    spec = prompts.build_cover_letter_prompt(
        make_profile(), "Acme", "Engineer", "Build APIs", date(2026, 10, 8)
    )

    assert '"October 8, 2026"' in spec.system
    assert "Grace Hopper" in spec.system
    assert "grace@example.com" in spec.system
    assert "555-0100" in spec.system
    assert "Arlington" not in spec.system


def test_format_letter_date():
    assert prompts.format_letter_date(date(2026, 1, 2)) == "January 2, 2026"
