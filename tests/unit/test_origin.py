"""Tests for origin and referer allow-list checks."""

import pytest

from dotdotdot.security.origin import check_origin

ALLOWED = ["https://app.example.com", "http://localhost:3000"]


class TestCheckOrigin:
    def test_empty_allow_list_allows_everything(self) -> None:
        assert check_origin("https://evil.example", None, []) is None

    def test_wildcard_allows_everything(self) -> None:
        assert check_origin("https://evil.example", None, ["*"]) is None

    @pytest.mark.parametrize(
        "origin",
        ["https://app.example.com", "HTTPS://APP.EXAMPLE.COM", "http://localhost:3000/"],
    )
    def test_allowed_origin(self, origin: str) -> None:
        assert check_origin(origin, None, ALLOWED) is None

    def test_origin_takes_precedence_over_referer(self) -> None:
        result = check_origin("https://evil.example", "https://app.example.com/page", ALLOWED)
        assert result == "Unauthorized origin"

    def test_referer_compared_by_origin_part(self) -> None:
        assert check_origin(None, "https://app.example.com/notes?id=1", ALLOWED) is None

    def test_bad_referer(self) -> None:
        assert check_origin(None, "https://evil.example/", ALLOWED) == "Invalid referer"

    def test_port_must_match(self) -> None:
        assert check_origin("http://localhost:4000", None, ALLOWED) == "Unauthorized origin"

    def test_missing_both(self) -> None:
        assert check_origin(None, None, ALLOWED) == "Invalid referer"
        assert check_origin("", "not a url", ALLOWED) == "Invalid referer"
