import logging

import pytest

from mimeparts import Header, MalformedHeaderLine, Part, parse_header_block, parse_header_line, parse_params, trim

logging.getLogger().setLevel(logging.DEBUG)


@pytest.mark.parametrize(
    "value, expected",
    [
        ('"abc"', "abc"),
        ("abc", "abc"),
        ('""', ""),
        ('"', '"'),
        ('"abc', '"abc'),
        ('""abc""', '"abc"'),
    ],
)
def test_trim(value: str, expected: str):
    assert trim(value) == expected


def test_parse_header_line():
    header = parse_header_line('Content-Disposition: form-data; name="file"; filename=a.txt')
    assert header == Header(
        name="Content-Disposition",
        value="form-data",
        params={"name": "file", "filename": "a.txt"},
    )


def test_parse_header_line_without_params():
    header = parse_header_line("Content-Type: text/plain")
    assert header is not None
    assert header.params == {}


def test_parse_header_line_splits_at_first_separator():
    header = parse_header_line("X-Origin: example.com: 8080")
    assert header is not None
    assert header.name == "X-Origin"
    assert header.value == "example.com: 8080"


def test_parse_header_line_param_order_is_irrelevant():
    first = parse_header_line('Content-Disposition: form-data; name="a"; filename="b"')
    second = parse_header_line('Content-Disposition: form-data; filename="b"; name="a"')
    assert first == second


def test_parse_header_line_without_name_separator():
    defects = []
    assert parse_header_line("garbage", defects.append) is None
    assert len(defects) == 1
    assert isinstance(defects[0], MalformedHeaderLine)
    assert defects[0].line == "garbage"


def test_parse_header_line_without_callback():
    assert parse_header_line("Content-Type:text/plain") is None


def test_parse_params_without_equal_sign():
    defects = []
    assert parse_params("flag; name=x", defects.append) == {"flag": "", "name": "x"}
    assert [type(defect) for defect in defects] == [MalformedHeaderLine]


def test_parse_params_first_occurrence_wins():
    assert parse_params("a=1; a=2") == {"a": "1"}


def test_parse_params_value_with_equal_sign():
    assert parse_params('token="a=b"') == {"token": "a=b"}


def test_parse_params_ignores_empty_tokens():
    assert parse_params("") == {}
    assert parse_params("a=1; ") == {"a": "1"}


def test_parse_header_block_keeps_order_and_duplicates():
    headers = parse_header_block("X-Tag: one\r\nContent-Type: text/plain\r\nX-Tag: two\r\n")
    assert [(header.name, header.value) for header in headers] == [
        ("X-Tag", "one"),
        ("Content-Type", "text/plain"),
        ("X-Tag", "two"),
    ]


def test_parse_header_block_stops_at_blank_line():
    headers = parse_header_block("A: 1\r\n\r\nB: 2\r\n")
    assert [header.name for header in headers] == ["A"]


def test_parse_header_block_empty():
    assert parse_header_block("") == []


def test_parse_header_block_last_line_without_crlf():
    headers = parse_header_block("A: 1\r\nB: 2")
    assert [header.name for header in headers] == ["A", "B"]


def test_parse_header_block_param_counts():
    headers = parse_header_block('A: x; p=1; q="2"; r=3\r\nB: y\r\nC: z; s=4\r\n')
    assert len(headers) == 3
    assert [len(header.params) for header in headers] == [3, 0, 1]


def test_header_dump_quotes_params():
    header = Header("Content-Disposition", "form-data", {"name": "f", "filename": "a.txt"})
    assert header.dump() == 'Content-Disposition: form-data; name="f"; filename="a.txt"'


def test_header_params_are_read_only():
    header = parse_header_line('Content-Disposition: form-data; name="f"')
    assert header is not None
    with pytest.raises(TypeError):
        header.params["filename"] = "a.txt"  # type: ignore[index]
    assert header.params == {"name": "f"}


def test_header_copies_params():
    params = {"name": "f"}
    header = Header("Content-Disposition", "form-data", params)
    params["name"] = "g"
    assert header.params == {"name": "f"}


def test_parsed_part_is_hashable():
    headers = parse_header_block('Content-Disposition: form-data; name="f"\r\nX-Tag: one\r\n')
    part = Part(headers=headers, body=b"x")
    assert isinstance(part.headers, tuple)
    assert hash(part) == hash(Part(headers=tuple(headers), body=b"x"))
    assert {part, Part(headers=tuple(headers), body=b"x")} == {part}
