from __future__ import annotations

from autoreply.services.ingest.multipart import boundary_from, split_multipart

ALTERNATIVE_BODY = "\r\n".join(
    [
        "This is a preamble.",
        "--abc",
        "Content-Type: text/plain; charset=utf-8",
        "",
        "plain body",
        "second line",
        "--abc",
        "Content-Type: text/html",
        "",
        "<p>html body</p>",
        "--abc--",
        "epilogue is ignored",
    ]
)


def test_boundary_from_quoted_and_bare_values() -> None:
    assert boundary_from('multipart/alternative; boundary="b1=_x y"') == "b1=_x y"
    assert boundary_from("multipart/mixed; BOUNDARY=simple; charset=utf-8") == "simple"
    assert boundary_from("multipart/mixed") is None
    assert boundary_from(None) is None


def test_alternative_splits_into_parts_in_order() -> None:
    parts = split_multipart(ALTERNATIVE_BODY, "abc")
    assert len(parts) == 2
    assert parts[0].headers["content-type"] == "text/plain; charset=utf-8"
    assert parts[0].body == "plain body\r\nsecond line"
    assert parts[1].headers["content-type"] == "text/html"
    assert parts[1].body == "<p>html body</p>"


def test_longer_boundary_prefix_is_not_a_delimiter() -> None:
    body = "\n".join(["--abc", "", "keep --abcdef inline", "--abcdef", "--abc--"])
    parts = split_multipart(body, "abc")
    assert len(parts) == 1
    assert parts[0].body == "keep --abcdef inline\r\n--abcdef"


def test_missing_terminator_keeps_last_part() -> None:
    body = "--b\nContent-Type: text/plain\n\nunterminated"
    parts = split_multipart(body, "b")
    assert len(parts) == 1
    assert parts[0].body == "unterminated"


def test_delimiter_with_trailing_whitespace_is_accepted() -> None:
    body = "--b  \n\nfirst\n--b--\t"
    parts = split_multipart(body, "b")
    assert [p.body for p in parts] == ["first"]
    assert len(parts[0].headers) == 0


def test_empty_inputs_yield_no_parts() -> None:
    assert split_multipart("", "abc") == []
    assert split_multipart("no delimiters here", "abc") == []
