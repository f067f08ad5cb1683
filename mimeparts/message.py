from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Protocol
from wsgiref.headers import Headers

from mimeparts.exceptions import InvalidBoundary, PartIndexError
from mimeparts.parser import DD, DEFAULT_CONFIG, MultipartParser, discover_boundary
from mimeparts.parts import CRLF, Part

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Iterable, Iterator

    from mimeparts.exceptions import MultipartError
    from mimeparts.parser import ParserConfig

logger = logging.getLogger(__name__)


class SupportsRequest(Protocol):
    """Anything with request headers and a raw body."""

    headers: Mapping[str, str] | Iterable[tuple[str, str]]
    body: bytes | str


def _as_headers(headers: Mapping[str, str] | Iterable[tuple[str, str]] | None) -> Headers:
    if headers is None:
        return Headers()
    if isinstance(headers, (Headers, Mapping)):
        return Headers(list(headers.items()))
    return Headers(list(headers))


class Message:
    """A multipart message: the message headers, the boundary and the parts.

    Build one directly to send it, or with `Message.from_request` to read one. `dump` renders the parts
    (never the message headers) as wire text.
    """

    content_type = "multipart/form-data"

    def __init__(
        self,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        boundary: str = "",
        parts: Iterable[Part] = (),
        defects: Iterable[MultipartError] = (),
        header_charset: str = "utf-8",
    ) -> None:
        self.headers = _as_headers(headers)
        self.boundary = boundary
        self.parts = list(parts)
        self.defects = tuple(defects)
        self.header_charset = header_charset

    @classmethod
    def from_request(cls, request: SupportsRequest, config: ParserConfig | None = None) -> Message:
        """Parse the body of `request` using the boundary of its `Content-Type` header.

        Defects are recorded on the returned message. Only strict mode, an oversized body, or a
        programming error raise.
        """
        settings: ParserConfig = {**DEFAULT_CONFIG, **(config or {})}
        headers = _as_headers(request.headers)
        boundary = discover_boundary(headers.get("Content-Type", ""))
        charset = settings["HEADER_CHARSET"]

        try:
            parser = MultipartParser.from_config(boundary, settings)
        except InvalidBoundary as exc:
            if settings["STRICT"]:
                raise
            logger.warning("Multipart defect: %s", exc)
            return cls(headers, boundary, defects=(exc,), header_charset=charset)

        parts = parser.parse(request.body)
        logger.debug("Parsed a multipart message with %d parts", len(parts))
        return cls(headers, boundary, parts, defects=parser.defects, header_charset=charset)

    @property
    def boundary_missing(self) -> bool:
        return not self.boundary

    @property
    def ok(self) -> bool:
        """True when the message was built, or parsed without any defect."""
        return not self.defects

    def has_defect(self, kind: type[MultipartError]) -> bool:
        return any(isinstance(defect, kind) for defect in self.defects)

    def get_header_value(self, key: str) -> str:
        return self.headers.get(key, "")

    def get_part_by_name(self, name: str) -> Part | None:
        for part in self.parts:
            if part.name == name:
                return part
        return None

    def __len__(self) -> int:
        return len(self.parts)

    def __iter__(self) -> Iterator[Part]:
        return iter(self.parts)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Message):
            return self.boundary == other.boundary and self.parts == other.parts
        return NotImplemented

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(boundary={self.boundary!r}, parts={len(self.parts)})"

    def dump(self, index: int | None = None) -> bytes:
        """Render the whole message, or only the part at `index`, as wire text.

        Raises:
            PartIndexError: `index` does not point at a part.
        """
        if index is not None:
            if not 0 <= index < len(self.parts):
                raise PartIndexError(f"Part index {index} out of range for a message with {len(self.parts)} parts.")
            return self.parts[index].dump(self.header_charset)

        delimiter = DD + self.boundary.encode(self.header_charset, "surrogateescape")
        chunks = []
        for part in self.parts:
            chunks.append(delimiter + CRLF)
            chunks.append(part.dump(self.header_charset))
        chunks.append(delimiter + DD + CRLF)
        return b"".join(chunks)
