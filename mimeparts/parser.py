from __future__ import annotations

import enum
import logging
import re
from collections import deque
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypedDict

from mimeparts.exceptions import (
    DelimiterNotFound,
    InvalidBoundary,
    MaxSizeExceeded,
    MissingBoundary,
    MissingHeaderBodySeparator,
    MultipartError,
)
from mimeparts.headers import parse_header_block, trim
from mimeparts.parts import CRLF, Header, Part

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterator

logger = logging.getLogger(__name__)

DD = b"--"
BLANK_LINE = CRLF + CRLF
# RFC 2046 allows "transport padding" between a delimiter and its line break.
LWSP = b" \t"
MAX_BOUNDARY_LENGTH = 70

_boundary_re = re.compile(r"(?:^|[;\s])boundary=", re.IGNORECASE)


class ParserConfig(TypedDict, total=False):
    MAX_BODY_SIZE: int | None
    HEADER_CHARSET: str
    STRICT: bool


DEFAULT_CONFIG: ParserConfig = {
    "MAX_BODY_SIZE": None,
    "HEADER_CHARSET": "utf-8",
    "STRICT": False,
}


class MultipartState(enum.IntEnum):
    PREAMBLE = 0
    HEADER = 1
    BODY = 2
    END = 3


class MultipartPart:
    """Events emitted by `MultipartParser.next_event`."""

    Header = Header

    @dataclass(frozen=True, slots=True)
    class Body:
        data: bytes
        done: bool = True


def discover_boundary(value: str) -> str:
    """Find the `boundary=` parameter of a `Content-Type` value.

    The value is read up to the next `;`, and one layer of surrounding double quotes is removed.
    An empty string means there is no boundary.
    """
    match = _boundary_re.search(value)
    if match is None:
        return ""
    token, _, _ = value[match.end() :].partition(";")
    return trim(token.strip())


class MultipartParser:
    """A whole-body multipart parser.

    `parse` takes the complete body, splits it into sections at every `--boundary` delimiter, splits
    each section into a header block and a body, and tokenizes the header block. The result is
    returned as a list of `Part` and is also available one item at a time through `next_part`, or as
    header and body events through `next_event`.

    The states are as follows:
    - PREAMBLE: No delimiter has been confirmed yet.
    - HEADER: Inside a part, before the blank line that ends its header block.
    - BODY: Inside a part body.
    - END: The terminal `--boundary--` delimiter was seen. Anything after it is ignored.

    After `parse` returns, `state` tells where the scan stopped. Any state other than `END` means the
    body was truncated, which is also recorded as a `DelimiterNotFound` defect.
    """

    def __init__(
        self,
        boundary: bytes | str,
        max_size: int | None = None,
        header_charset: str = "utf-8",
        strict: bool = False,
    ) -> None:
        """Create a new multipart parser instance.

        Args:
            boundary: The boundary to use for parsing, without the leading `--`.
            max_size: The maximum size of the body data. If None, no limit is enforced.
            header_charset: The charset to use for decoding header values.
            strict: Raise defects instead of recording them.
        """
        if isinstance(boundary, str):
            boundary = boundary.encode(header_charset, "surrogateescape")
        if len(boundary) > MAX_BOUNDARY_LENGTH:
            raise InvalidBoundary(f"The boundary length should not surpass {MAX_BOUNDARY_LENGTH} bytes.")

        self.logger = logging.getLogger(__name__)
        self.boundary = boundary
        self.delimiter = DD + boundary
        self.max_size = max_size
        self.header_charset = header_charset
        self.strict = strict

        self.state = MultipartState.PREAMBLE
        self.defects: list[MultipartError] = []
        self._truncated = False
        self._parts: deque[Part] = deque()
        self._events: deque[Header | MultipartPart.Body] = deque()

    @classmethod
    def from_config(cls, boundary: bytes | str, config: ParserConfig | None = None) -> MultipartParser:
        settings: ParserConfig = {**DEFAULT_CONFIG, **(config or {})}
        return cls(
            boundary,
            max_size=settings["MAX_BODY_SIZE"],
            header_charset=settings["HEADER_CHARSET"],
            strict=settings["STRICT"],
        )

    def defect(self, error: MultipartError) -> None:
        if self.strict:
            raise error
        self.logger.warning("Multipart defect: %s", error)
        self.defects.append(error)

    def _find_delimiter(self, data: bytes, start: int) -> tuple[int, int, bool] | None:
        """Find the next delimiter line at or after `start`.

        Returns the delimiter offset, the offset right after its line, and whether it is the terminal
        delimiter. A `--boundary` that is followed by anything other than `--`, or optional padding and
        CRLF, is not a delimiter and the search goes on past it.
        """
        while True:
            found = data.find(self.delimiter, start)
            if found == -1:
                return None

            cursor = found + len(self.delimiter)
            if data.startswith(DD, cursor):
                return found, cursor + len(DD), True

            while cursor < len(data) and data[cursor] in LWSP:
                cursor += 1
            if data.startswith(CRLF, cursor):
                return found, cursor + len(CRLF), False

            self.logger.debug("Skipping delimiter candidate at %d", found)
            start = found + 1

    def iter_sections(self, data: bytes) -> Iterator[bytes]:
        """Yield the raw sections of `data`, each one still holding its header block and body.

        The scan moves a cursor over `data` and never copies more than the yielded sections. Empty
        sections are dropped. A section left open at the end of the data is yielded last.
        """
        self.state = MultipartState.PREAMBLE
        self._truncated = False
        self.defects = []

        found = self._find_delimiter(data, 0)
        if found is None:
            self.defect(DelimiterNotFound("No delimiter found in the body."))
            return

        _, position, terminal = found
        while not terminal:
            self.state = MultipartState.HEADER
            found = self._find_delimiter(data, position)
            if found is None:
                remaining = data[position:]
                if remaining.startswith(CRLF) or BLANK_LINE in remaining:
                    self.state = MultipartState.BODY
                self.defect(DelimiterNotFound("The body ended before the closing delimiter."))
                if remaining:
                    self._truncated = True
                    yield remaining
                return

            end, next_position, terminal = found
            if end > position:
                yield data[position:end]
            else:
                self.logger.debug("Dropping empty section at %d", position)
            position = next_position

        self.state = MultipartState.END

    def split_section(self, section: bytes) -> tuple[bytes, bytes]:
        """Split a section at its first blank line into the header block and the body.

        The header block keeps the CRLF of its last line. The body loses the CRLF that precedes the
        next delimiter.
        """
        if section.startswith(CRLF):
            head, body = b"", section[len(CRLF) :]
        else:
            found = section.find(BLANK_LINE)
            if found == -1:
                self.defect(MissingHeaderBodySeparator("No blank line between the part headers and body."))
                return section, b""
            head, body = section[: found + len(CRLF)], section[found + len(BLANK_LINE) :]

        if body.endswith(CRLF):
            body = body[: -len(CRLF)]
        return head, body

    def parse_section(self, section: bytes) -> Part:
        head, body = self.split_section(section)
        headers = parse_header_block(head.decode(self.header_charset, "surrogateescape"), self.defect)
        return Part(headers=tuple(headers), body=body)

    def parse(self, data: bytes | str) -> list[Part]:
        """Parse a complete multipart body.

        Args:
            data: The body, from the first byte after the message headers to the end.

        Returns:
            The parts, in the order they appear in the body.
        """
        if isinstance(data, str):
            data = data.encode(self.header_charset, "surrogateescape")
        if self.max_size is not None and len(data) > self.max_size:
            raise MaxSizeExceeded(f"The body is {len(data)} bytes long, over the limit of {self.max_size} bytes.")

        self.state = MultipartState.PREAMBLE
        self.defects = []
        self._parts.clear()
        self._events.clear()

        if not self.boundary:
            self.defect(MissingBoundary("No boundary, the body cannot be split into parts."))
            return []

        parts = [self.parse_section(section) for section in self.iter_sections(data)]
        self.logger.debug("Parsed %d parts, stopped in state %s", len(parts), self.state.name)

        for index, part in enumerate(parts):
            self._events.extend(part.headers)
            done = not (self._truncated and index == len(parts) - 1)
            self._events.append(MultipartPart.Body(data=part.body, done=done))
        self._parts.extend(parts)
        return parts

    def next_part(self) -> Part | None:
        if not self._parts:
            return None
        return self._parts.popleft()

    def next_event(self) -> Header | MultipartPart.Body | None:
        if not self._events:
            return None
        return self._events.popleft()
