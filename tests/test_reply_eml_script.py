from __future__ import annotations

import runpy
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "reply_eml.py"


def test_offline_reply_is_written_to_stdout(tmp_path, monkeypatch, capsysbinary) -> None:
    eml = tmp_path / "question.eml"
    eml.write_bytes(b"From: a@x.com\r\nSubject: Hi\r\nMessage-ID: <9@x.com>\r\n\r\nHello?")
    monkeypatch.setattr(sys, "argv", ["reply_eml.py", str(eml)])
    monkeypatch.setenv("REPLY_TEXT", "Fixed answer.")

    runpy.run_path(str(SCRIPT), run_name="__main__")

    out = capsysbinary.readouterr().out
    assert b"Subject: Re: Hi\r\n" in out
    assert b"In-Reply-To: <9@x.com>\r\n" in out
    assert b"Fixed answer." in out


def test_guarded_message_produces_no_output(tmp_path, monkeypatch, capsysbinary) -> None:
    eml = tmp_path / "bulk.eml"
    eml.write_bytes(b"Precedence: bulk\r\nFrom: a@x.com\r\n\r\nnews")
    monkeypatch.setattr(sys, "argv", ["reply_eml.py", str(eml)])
    monkeypatch.setenv("REPLY_TEXT", "unused")

    runpy.run_path(str(SCRIPT), run_name="__main__")

    captured = capsysbinary.readouterr()
    assert captured.out == b""
    assert b"drop: precedence" in captured.err


def test_usage_error_exits_nonzero(monkeypatch) -> None:
    monkeypatch.setattr(sys, "argv", ["reply_eml.py"])
    with pytest.raises(SystemExit) as excinfo:
        runpy.run_path(str(SCRIPT), run_name="__main__")
    assert excinfo.value.code == 1
