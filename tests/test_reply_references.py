from __future__ import annotations

from dataclasses import dataclass

from autoreply.services.reply.references import (
    MAX_REFERENCES,
    MAX_REFERENCES_CHARS,
    build_references,
    extract_message_ids,
)


@dataclass
class _Thread:
    message_id: str = ""
    references: str = ""
    in_reply_to: str = ""


def test_long_chain_is_bounded_and_keeps_newest() -> None:
    ids = [f"<message-{i:03d}@mail.example.com>" for i in range(60)]
    info = build_references(
        _Thread(message_id="<own@x.com>", references=" ".join(ids), in_reply_to=ids[-1])
    )
    tokens = info.references.split(" ")

    assert len(tokens) <= MAX_REFERENCES
    assert len(info.references) <= MAX_REFERENCES_CHARS
    assert tokens[-1] == "<own@x.com>"
    # The kept ids are the newest ones, still in first-seen order.
    assert tokens[:-1] == ids[-(len(tokens) - 1) :]
    assert info.in_reply_to == "<own@x.com>"


def test_duplicates_are_dropped_in_first_seen_order() -> None:
    info = build_references(
        _Thread(message_id="<c@x>", references="<a@x> <b@x>\r\n <a@x>", in_reply_to="<b@x>")
    )
    assert info.references == "<a@x> <b@x> <c@x>"
    assert info.in_reply_to == "<c@x>"


def test_missing_message_id_leaves_in_reply_to_empty() -> None:
    info = build_references(_Thread(references="<a@x>", in_reply_to="<b@x>"))
    assert info.in_reply_to == ""
    assert info.references == "<a@x> <b@x>"


def test_first_message_of_a_thread() -> None:
    info = build_references(_Thread(message_id="<1@x.com>"))
    assert info.in_reply_to == "<1@x.com>"
    assert info.references == "<1@x.com>"


def test_malformed_tokens_are_ignored() -> None:
    assert extract_message_ids("<a b@x> junk <ok@x> <<nested@x>>") == ["<ok@x>", "<nested@x>"]
    assert build_references(_Thread()).references == ""
