from types import SimpleNamespace
import pytest
from ayurdiet.services.completeness import (
    REQUIRED_PROFILE_FIELDS, is_profile_complete, missing_profile_fields,
)


def test_absent_profile_is_incomplete():
    assert is_profile_complete(None) is False
    assert missing_profile_fields(None) == list(REQUIRED_PROFILE_FIELDS)


def test_all_required_fields_present(complete_profile):
    assert is_profile_complete(complete_profile) is True
    assert missing_profile_fields(complete_profile) == []


def test_missing_age_makes_profile_incomplete(complete_profile):
    complete_profile["age"] = None
    assert is_profile_complete(complete_profile) is False
    assert missing_profile_fields(complete_profile) == ["age"]


@pytest.mark.parametrize("field", REQUIRED_PROFILE_FIELDS)
def test_each_required_field_gates_completeness(complete_profile, field):
    del complete_profile[field]
    assert is_profile_complete(complete_profile) is False


@pytest.mark.parametrize("diseases", [[], ["Hypertension", "IBS"], None])
def test_diseases_never_affect_result(complete_profile, diseases):
    complete_profile["diseases"] = diseases
    assert is_profile_complete(complete_profile) is True

    complete_profile["current_season"] = None
    assert is_profile_complete(complete_profile) is False


def test_optional_fields_are_ignored(complete_profile):
    complete_profile.update(dosha=None, sub_cuisine_preference=None, name=None)
    assert is_profile_complete(complete_profile) is True


def test_falsy_but_present_values_count(complete_profile):
    complete_profile["age"] = 0
    assert is_profile_complete(complete_profile) is True


def test_attribute_style_records(complete_profile):
    assert is_profile_complete(SimpleNamespace(**complete_profile)) is True
    complete_profile["hair_type"] = None
    assert missing_profile_fields(SimpleNamespace(**complete_profile)) == ["hair_type"]


def test_result_tracks_mutation(complete_profile):
    complete_profile["weight_kg"] = None
    assert is_profile_complete(complete_profile) is False
    complete_profile["weight_kg"] = 70
    assert is_profile_complete(complete_profile) is True
