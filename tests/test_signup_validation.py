"""Client-side form validation."""

from __future__ import annotations

import pytest

from minara.models.enums import UserRole
from minara.models.signup_models import InstructorDetails
from minara.services.signup_validation import SignupValidator
from tests.conftest import make_instructor_request, make_student_request


@pytest.fixture
def validator(config) -> SignupValidator:
    return SignupValidator(config)


def test_complete_forms_pass(validator):
    assert validator.validate_request(make_student_request()).is_valid
    assert validator.validate_request(make_instructor_request()).is_valid


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"display_name": " "}, "Full name is required."),
        ({"display_name": "A"}, "Full name must be at least 2 characters."),
        ({"display_name": "Ada\nLovelace"}, "Full name contains invalid characters."),
        ({"email": "not-an-email"}, "Please enter a valid email address."),
        ({"email": ""}, "Email address is required."),
        (
            {"password": "short", "confirm_password": "short"},
            "Password must be at least 8 characters.",
        ),
        ({"confirm_password": "Abcdef13"}, "Passwords do not match."),
        ({"agree_to_terms": False}, "You must accept the Terms of Service to continue."),
        ({"role": UserRole.ADMIN}, "This account type cannot be created"),
    ],
)
def test_student_form_rejections(validator, overrides, message):
    result = validator.validate_request(make_student_request(**overrides))

    assert not result.is_valid
    assert result.error_message.startswith(message)


def test_password_has_no_character_class_rules(validator):
    assert validator.validate_password("aaaaaaaa", "aaaaaaaa").is_valid


@pytest.mark.parametrize(
    "details, fragment",
    [
        ({"expertise": "astrology"}, "area of expertise"),
        ({"experience": "20+"}, "years of experience"),
        ({"bio": "B" * 99}, "at least 100 characters"),
        ({"motivation": "M" * 49}, "at least 50 characters"),
    ],
)
def test_instructor_detail_rejections(validator, details, fragment):
    base = make_instructor_request().instructor.model_dump()
    base.update(details)
    request = make_instructor_request(instructor=InstructorDetails(**base))

    result = validator.validate_request(request)

    assert not result.is_valid
    assert fragment in result.error_message


def test_bio_length_ignores_surrounding_whitespace(validator):
    details = make_instructor_request().instructor.model_copy(
        update={"bio": "  " + "B" * 99 + "  "},
    )
    assert not validator.validate_instructor_details(details).is_valid


def test_instructor_without_details_is_rejected(validator):
    result = validator.validate_request(make_instructor_request(instructor=None))
    assert not result.is_valid


def test_first_failure_wins(validator):
    result = validator.validate_request(
        make_student_request(display_name="", email="bad", agree_to_terms=False),
    )
    assert result.error_message == "Full name is required."


def test_normalize_email():
    assert SignupValidator.normalize_email("  Ada@Example.COM ") == "ada@example.com"
