from uuid import UUID, uuid4

import pytest
from pydantic import ValidationError

from jobos.models import Profile
from jobos.schemas.profile import ProfileCreate
from jobos.services.profile_editor import (
    EntryNotFoundError,
    add_skill,
    profile_values,
    remove_entry,
    remove_skill,
    to_profile_schema,
    update_entry,
    upsert_entry,
)


def new_profile() -> Profile:
    return Profile(**profile_values(ProfileCreate(name="Margaret Hamilton", skills=["Assembly"])))


def test_skills_are_added_once_and_removed_by_exact_match():
    profile = new_profile()

    assert add_skill(profile, " Apollo ")
    assert not add_skill(profile, "Apollo")
    assert not add_skill(profile, "   ")
    assert profile.skills == ["Assembly", "Apollo"]

    assert not remove_skill(profile, "apollo")
    assert remove_skill(profile, "Apollo")
    assert profile.skills == ["Assembly"]


def test_new_entries_get_distinct_uuids():
    profile = new_profile()

    first = upsert_entry(profile, "experience", {"company": "MIT", "role": "Engineer"})
    second = upsert_entry(profile, "experience", {"company": "NASA", "role": "Lead"})

    assert UUID(first["id"]) != UUID(second["id"])
    assert [e["company"] for e in profile.experience] == ["MIT", "NASA"]


def test_upsert_with_existing_id_replaces_in_place():
    profile = new_profile()
    entry = upsert_entry(profile, "projects", {"name": "AGC"})

    upsert_entry(profile, "projects", {**entry, "name": "Apollo Guidance Computer"})

    assert len(profile.projects) == 1
    assert profile.projects[0]["name"] == "Apollo Guidance Computer"
    assert profile.projects[0]["id"] == entry["id"]


def test_update_entry_merges_fields_and_keeps_id():
    profile = new_profile()
    entry = upsert_entry(profile, "certifications", {"name": "PMP", "issuer": "PMI"})

    updated = update_entry(profile, "certifications", UUID(entry["id"]), {"year": "1999", "id": str(uuid4())})

    assert updated["id"] == entry["id"]
    assert updated["issuer"] == "PMI"
    assert updated["year"] == "1999"


def test_update_missing_entry_raises():
    with pytest.raises(EntryNotFoundError):
        update_entry(new_profile(), "education", uuid4(), {"degree": "BSc"})


def test_invalid_entry_is_rejected():
    with pytest.raises(ValidationError):
        upsert_entry(new_profile(), "experience", {"company": ""})


def test_unknown_section_is_rejected():
    with pytest.raises(ValueError, match="Unknown profile section"):
        upsert_entry(new_profile(), "hobbies", {"name": "Chess"})


def test_remove_entry_by_id():
    profile = new_profile()
    keep = upsert_entry(profile, "education", {"degree": "BA", "institution": "Earlham"})
    drop = upsert_entry(profile, "education", {"degree": "MS", "institution": "MIT"})

    assert remove_entry(profile, "education", UUID(drop["id"]))
    assert not remove_entry(profile, "education", UUID(drop["id"]))
    assert [e["id"] for e in profile.education] == [keep["id"]]


async def test_profile_round_trips_through_the_database(db):
    profile = new_profile()
    upsert_entry(profile, "experience", {"company": "MIT", "role": "Engineer"})
    db.add(profile)
    await db.commit()
    await db.refresh(profile)

    schema = to_profile_schema(profile)

    assert schema.id == profile.id
    assert schema.experience[0].company == "MIT"
    assert isinstance(schema.experience[0].id, UUID)
