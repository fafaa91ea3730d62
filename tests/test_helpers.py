"""
Unit tests for input helpers, token generation and share-text formatting.
"""

from datetime import date, datetime
from urllib.parse import unquote

import pytest

from tilawah.core.exceptions import ValidationError
from tilawah.utils.helpers import clean_name, normalize_contact, parse_date_input
from tilawah.utils.share_text import build_period_share_text, whatsapp_share_url
from tilawah.utils.tokens import generate_public_token


class TestParseDateInput:

    def test_iso_string(self):
        assert parse_date_input("2026-10-18") == date(2026, 10, 18)

    def test_datetime_string_truncated(self):
        assert parse_date_input("2026-10-18T08:30:00") == date(2026, 10, 18)

    def test_date_and_datetime_objects(self):
        assert parse_date_input(date(2026, 10, 18)) == date(2026, 10, 18)
        assert parse_date_input(datetime(2026, 10, 18, 23, 59)) == date(2026, 10, 18)

    @pytest.mark.parametrize("value", [None, "", 20261018])
    def test_missing_value(self, value):
        with pytest.raises(ValidationError, match="required"):
            parse_date_input(value)

    def test_garbage(self):
        with pytest.raises(ValidationError) as exc:
            parse_date_input("next sunday")
        assert exc.value.details == {"start_date": "next sunday"}


class TestNormalizeContact:

    @pytest.mark.parametrize("raw, expected", [
        ("+62 812-3456-7890", "+6281234567890"),
        ("6281234567890", "+6281234567890"),
        ("(+1) 202 555 0143", "+12025550143"),
    ])
    def test_normalised(self, raw, expected):
        assert normalize_contact(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "n/a"])
    def test_empty_clears(self, raw):
        assert normalize_contact(raw) is None

    @pytest.mark.parametrize("raw", ["12345", "+1234567890123456", "++6281234567890"])
    def test_invalid(self, raw):
        with pytest.raises(ValidationError):
            normalize_contact(raw)

    def test_non_string(self):
        with pytest.raises(ValidationError):
            normalize_contact(6281234567890)


class TestCleanName:

    def test_trims(self):
        assert clean_name("  Ruqayyah  ") == "Ruqayyah"

    def test_min_length(self):
        with pytest.raises(ValidationError, match="at least 3"):
            clean_name("ab", label="Group name", min_length=3)

    def test_max_length(self):
        with pytest.raises(ValidationError, match="at most 255"):
            clean_name("x" * 256)


class TestPublicToken:

    def test_length_and_alphabet(self):
        token = generate_public_token()
        assert len(token) == 32
        assert token.isalnum() and token.isascii()

    def test_tokens_are_random(self):
        assert len({generate_public_token() for _ in range(50)}) == 50


class TestShareText:

    ENTRIES = [
        (2, "Bilal", "completed"),
        (1, "Aminah", "pending"),
        (2, "Hamzah", "missed"),
    ]

    def test_layout(self):
        text = build_period_share_text(
            "Halaqah Subuh", 3, date(2026, 10, 18), date(2026, 10, 24), self.ENTRIES,
        )
        assert text.startswith("📖 *Tilawah Group: Halaqah Subuh*\n")
        assert "Period 3: 18 Oct 2026 - 24 Oct 2026" in text
        assert text.index("*Juz 1:*") < text.index("*Juz 2:*")
        assert "- Aminah\n" in text
        assert "- Bilal 👑" in text
        assert "- Hamzah 💔" in text
        assert "*Juz 3:*" not in text
        assert "---" not in text

    def test_custom_footer(self):
        text = build_period_share_text(
            "G", 1, date(2026, 10, 18), date(2026, 10, 24), self.ENTRIES,
            custom_message="  Jazakumullah khair  ",
        )
        assert text.endswith("\n---\nJazakumullah khair")

    def test_blank_footer_ignored(self):
        text = build_period_share_text(
            "G", 1, date(2026, 10, 18), date(2026, 10, 24), [], custom_message="   ",
        )
        assert "---" not in text

    def test_whatsapp_url(self):
        url = whatsapp_share_url("Juz 1 & 2")
        assert url.startswith("https://wa.me/?text=")
        assert unquote(url.split("?text=", 1)[1]) == "Juz 1 & 2"
        assert "&" not in url.split("?text=", 1)[1]

    def test_whatsapp_url_with_phone(self):
        assert whatsapp_share_url("hi", phone="+62 812").startswith("https://wa.me/62812?text=")
