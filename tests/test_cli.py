"""
tests/test_cli.py -- Tests for the main.py operator CLI.

main() takes argv and Settings explicitly, so these run in-process and read
stdout/stderr through capsys.
"""

from __future__ import annotations

import io
import json

from conftest import STUDENT

from auth.hashing import CredentialHasher
from auth.models import Principal
from auth.tokens import TokenCodec
from main import main


def test_sign_then_verify(settings, codec: TokenCodec, capsys) -> None:
    assert main(["sign", "--id", "1", "--email", "a@b.com", "--role", "student"], settings) == 0
    token = capsys.readouterr().out.strip()
    assert codec.verify(token) == Principal(subject_id=1, email="a@b.com", role="student")

    assert main(["verify", token], settings) == 0
    assert json.loads(capsys.readouterr().out) == {"subjectId": 1, "email": "a@b.com", "role": "student"}


def test_sign_rejects_unknown_role(settings, capsys) -> None:
    assert main(["sign", "--id", "1", "--email", "a@b.com", "--role", "root"], settings) == 1
    assert "Unknown role" in capsys.readouterr().err


def test_verify_expired_exits_nonzero(settings, codec: TokenCodec, capsys) -> None:
    assert main(["verify", codec.sign(STUDENT, ttl_seconds=-1)], settings) == 1
    assert "TokenExpired" in capsys.readouterr().err


def test_inspect_does_not_verify(settings, capsys) -> None:
    foreign = TokenCodec("someone-elses-key").sign(STUDENT, ttl_seconds=-1)
    assert main(["inspect", foreign], settings) == 0
    report = json.loads(capsys.readouterr().out)
    assert report == {
        "principal": {"subjectId": 1, "email": "a@b.com", "role": "student"},
        "expired": True,
        "verified": False,
    }


def test_inspect_garbage(settings, capsys) -> None:
    assert main(["inspect", "not-a-token"], settings) == 0
    assert json.loads(capsys.readouterr().out) == {"principal": None, "expired": None, "verified": False}


def test_hash_from_stdin(settings, monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("S3cret!\n"))
    assert main(["hash", "--stdin"], settings) == 0
    hashed = capsys.readouterr().out.strip()
    assert hashed.startswith("$2b$04$")
    assert CredentialHasher(4).compare("S3cret!", hashed) is True


def test_hash_empty_secret(settings, monkeypatch, capsys) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("\n"))
    assert main(["hash", "--stdin"], settings) == 1
    assert "non-empty" in capsys.readouterr().err


def test_no_command_prints_help(settings, capsys) -> None:
    assert main([], settings) == 1
    assert "usage" in capsys.readouterr().out
