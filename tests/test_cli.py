"""Tests for main.py -- the email/password checker and account status CLI."""

import asyncio
import json

import pytest

from auth.client import AuthClient, LoginThrottle
from auth.store import AccountStore, make_engine
from main import main
from tests.fakes import STRONG_PASSWORD


def test_email_all_valid(capsys) -> None:
    assert main(["email", "a@uni.edu", "b@cs.uni.edu.bd"]) == 0
    out = capsys.readouterr().out
    assert "[ok] a@uni.edu" in out


def test_email_invalid_exit_code(capsys) -> None:
    assert main(["email", "a@uni.edu", "b@gmail.com"]) == 1
    assert "Must end with .edu" in capsys.readouterr().out


def test_email_json(capsys) -> None:
    main(["email", "a@uni.edu", "b@gmail.com", "--json"])
    assert json.loads(capsys.readouterr().out) == [
        {"email": "a@uni.edu", "valid": True},
        {"email": "b@gmail.com", "valid": False},
    ]


def test_repeated_emails_keep_order_and_count(capsys) -> None:
    main(["email", "b@gmail.com", "a@uni.edu", "b@gmail.com", "--json"])
    payload = json.loads(capsys.readouterr().out)
    assert [row["email"] for row in payload] == ["b@gmail.com", "a@uni.edu", "b@gmail.com"]

    main(["email", "a@uni.edu", "a@uni.edu"])
    assert capsys.readouterr().out.count("[ok] a@uni.edu") == 2


def test_password_reports_missing_rules(capsys) -> None:
    assert main(["password", "abcdef12"]) == 1
    out = capsys.readouterr().out
    assert "an uppercase letter" in out
    assert "a special character" in out
    assert "a digit" not in out


def test_password_json(capsys) -> None:
    assert main(["password", "--json", "Abcdef1!"]) == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == [{"length": True, "lower": True, "upper": True, "number": True, "special": True, "strong": True}]


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        main([])


class TestAccountStatus:
    @pytest.fixture
    def db_url(self, tmp_path) -> str:
        url = f"sqlite:///{tmp_path / 'accounts.db'}"
        engine = make_engine(url)
        client = AuthClient(AccountStore(engine), LoginThrottle())
        asyncio.run(client.create_user_with_password("ada@uni.edu", STRONG_PASSWORD))
        engine.dispose()
        return url

    def _is_active(self, db_url: str) -> bool:
        engine = make_engine(db_url)
        try:
            return AccountStore(engine).get_by_email("ada@uni.edu").is_active
        finally:
            engine.dispose()

    def test_disable_then_enable(self, db_url, capsys) -> None:
        assert main(["disable", "ADA@uni.edu", "--database-url", db_url]) == 0
        assert "ada@uni.edu disabled" in capsys.readouterr().out
        assert self._is_active(db_url) is False

        assert main(["enable", "ada@uni.edu", "--database-url", db_url]) == 0
        assert self._is_active(db_url) is True

    def test_unknown_account(self, db_url, capsys) -> None:
        assert main(["disable", "nobody@uni.edu", "--database-url", db_url]) == 1
        assert "no such account" in capsys.readouterr().out
