"""Unit tests for auth/validation.py -- student email and password rules.

Covers:
- is_valid_student_email(): '.edu' anywhere in the domain, exactly one '@'
- check_password_strength(): each of the five rules independently
- is_password_strong() never disagrees with check_password_strength()
"""

import pytest

from auth.models import PasswordStrengthReport
from auth.validation import check_password_strength, is_password_strong, is_valid_student_email


class TestStudentEmail:
    @pytest.mark.parametrize(
        "email",
        [
            "a@b.edu",
            "a@b.edu.bd",
            "student@cs.uni.edu.au",
            "  Mixed.Case@DIU.EDU.BD  ",
        ],
    )
    def test_accepts_edu_domains(self, email: str) -> None:
        assert is_valid_student_email(email) is True

    @pytest.mark.parametrize(
        "email",
        [
            "",
            "a@b.com",
            "a@@b.edu",
            "a@b@c.edu",
            "noatsign.edu",
            "edu.student@gmail.com",
        ],
    )
    def test_rejects_everything_else(self, email: str) -> None:
        assert is_valid_student_email(email) is False

    def test_edu_substring_need_not_be_suffix(self) -> None:
        """'.edu' in the middle of the domain is enough."""
        assert is_valid_student_email("x@mail.edu.example.org") is True

    def test_local_part_edu_does_not_count(self) -> None:
        assert is_valid_student_email("me.edu@example.com") is False


class TestPasswordStrength:
    def test_all_rules_pass(self) -> None:
        report = check_password_strength("Abcdef1!")
        assert report == PasswordStrengthReport(length=True, lower=True, upper=True, number=True, special=True)
        assert is_password_strong("Abcdef1!") is True

    def test_missing_upper_and_special(self) -> None:
        report = check_password_strength("abcdef12")
        assert report.length and report.lower and report.number
        assert report.upper is False
        assert report.special is False
        assert report.failing() == ["upper", "special"]
        assert is_password_strong("abcdef12") is False

    def test_short_password_fails_length_only(self) -> None:
        report = check_password_strength("Ab1!")
        assert report.failing() == ["length"]

    def test_empty_password_fails_everything(self) -> None:
        assert check_password_strength("").failing() == ["length", "lower", "upper", "number", "special"]

    def test_non_ascii_letters_count_as_special(self) -> None:
        """Only [A-Za-z0-9] are ordinary characters; 'é' satisfies the special rule."""
        report = check_password_strength("abcdefgé")
        assert report.special is True
        assert report.upper is False

    def test_space_counts_as_special(self) -> None:
        assert check_password_strength("Abc def1").special is True

    @pytest.mark.parametrize(
        "password",
        ["", "a", "Abcdef1!", "abcdef12", "ABCDEFGH", "12345678", "!!!!!!!!", "Aa1!", "Passw0rd", "Passw0rd#"],
    )
    def test_strong_matches_all_rules(self, password: str) -> None:
        report = check_password_strength(password)
        expected = report.length and report.lower and report.upper and report.number and report.special
        assert is_password_strong(password) == expected

    def test_repeat_calls_give_identical_reports(self) -> None:
        first = check_password_strength("Abcdef1!")
        second = check_password_strength("Abcdef1!")
        assert first == second
        with pytest.raises(AttributeError):
            first.length = False  # frozen dataclass
