# tests/unit/test_education_level.py
import pytest

from uniform_stock.models.enums import EducationLevel, parse_education_level


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Kindergarten", EducationLevel.KINDERGARTEN),
        ("Preschool", EducationLevel.KINDERGARTEN),
        ("Junior Highschool", EducationLevel.JUNIOR_HIGH),
        ("  senior high school ", EducationLevel.SENIOR_HIGH),
        ("College", EducationLevel.COLLEGE),
    ],
)
def test_aliases_normalize(raw, expected):
    assert parse_education_level(raw) is expected


def test_blank_is_none():
    assert parse_education_level(None) is None
    assert parse_education_level("  ") is None


def test_unknown_raises():
    with pytest.raises(ValueError):
        parse_education_level("Graduate School")
