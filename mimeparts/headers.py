"""Header line and parameter tokenizer.

A header line looks like `Content-Disposition: form-data; name="field"; filename="a.txt"`. It is split
at the first `; ` into the primary `name: value` pair and the parameters, which are separated from one
another by `; ` and written as `key=value`, optionally quoted.

Malformed input never raises here. The tokenizer applies a fixed policy (drop the line, or keep the
parameter with an empty value) and reports a `MalformedHeaderLine` through `on_defect` when given.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from mimeparts.exceptions import MalformedHeaderLine
from mimeparts.parts import Header

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable, Iterator

    from mimeparts.exceptions import MultipartError

    OnDefect = Callable[[MultipartError], None]

logger = logging.getLogger(__name__)

CRLF = "\r\n"
PARAM_SEPARATOR = "; "
NAME_SEPARATOR = ": "


def trim(value: str, excess: str = '"') -> str:
    """Remove one layer of `excess` when it both starts and ends `value`."""
    if len(value) > 1 and value[0] == excess and value[-1] == excess:
        return value[1:-1]
    return value


def split_once(text: str, separator: str) -> tuple[str, str] | None:
    """Split `text` at the first `separator`, or return None when it is absent."""
    head, found, tail = text.partition(separator)
    if not found:
        return None
    return head, tail


def iter_lines(block: str) -> Iterator[str]:
    """Yield the CRLF separated lines of `block`, stopping at the first blank line."""
    start = 0
    while start < len(block):
        end = block.find(CRLF, start)
        if end == -1:
            end = len(block)
        line = block[start:end]
        if not line:
            return
        yield line
        start = end + len(CRLF)


def parse_params(text: str, on_defect: OnDefect | None = None) -> dict[str, str]:
    """Parse `key=value; key="value"` into a mapping. The first occurrence of a key wins."""
    params: dict[str, str] = {}
    for token in text.split(PARAM_SEPARATOR):
        if not token:
            continue
        pair = split_once(token, "=")
        if pair is None:
            if on_defect is not None:
                on_defect(MalformedHeaderLine(f"Parameter without '=': {token!r}", line=text))
            key, value = token, ""
        else:
            key, value = pair
        params.setdefault(key, trim(value))
    return params


def parse_header_line(line: str, on_defect: OnDefect | None = None) -> Header | None:
    """Parse one header line, or return None when it has no `name: value` pair."""
    main, _, rest = line.partition(PARAM_SEPARATOR)
    pair = split_once(main, NAME_SEPARATOR)
    if pair is None:
        if on_defect is not None:
            on_defect(MalformedHeaderLine(f"Header line without ': ': {line!r}", line=line))
        return None

    name, value = pair
    return Header(name=name, value=value, params=parse_params(rest, on_defect))


def parse_header_block(block: str, on_defect: OnDefect | None = None) -> list[Header]:
    """Parse a whole header block, keeping the headers in order and duplicates included."""
    headers = []
    for line in iter_lines(block):
        header = parse_header_line(line, on_defect)
        if header is None:
            continue
        logger.debug("Parsed header %r", header.name)
        headers.append(header)
    return headers
