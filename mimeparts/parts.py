from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

CRLF = b"\r\n"


def pad(value: str, padding: str = '"') -> str:
    """Wrap `value` in `padding` on both sides."""
    return padding + value + padding


@dataclass(frozen=True, slots=True)
class Header:
    """One header line of a part.

    `name` and `value` are the primary `name: value` pair, stored exactly as they appeared. `params`
    holds the `; key=value` parameters that follow it, with one layer of quotes removed.
    """

    name: str
    value: str
    params: Mapping[str, str] = field(default_factory=dict, hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def dump(self) -> str:
        # Parameter values are always quoted on the way out, whatever they looked like on the way in.
        line = f"{self.name}: {self.value}"
        for key, value in self.params.items():
            line += f"; {key}={pad(value)}"
        return line


@dataclass(frozen=True, slots=True)
class Part:
    """One part of a multipart body: an ordered tuple of headers and the raw body.

    Duplicate header names are legal and kept. Lookups by name are queries over `headers`.
    """

    headers: tuple[Header, ...] = ()
    body: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", tuple(self.headers))

    def get_headers(self, name: str) -> list[Header]:
        name = name.lower()
        return [header for header in self.headers if header.name.lower() == name]

    def get_header(self, name: str) -> Header | None:
        for header in self.get_headers(name):
            return header
        return None

    def _disposition_param(self, key: str) -> str | None:
        header = self.get_header("Content-Disposition")
        if header is None:
            return None
        return header.params.get(key)

    @property
    def name(self) -> str | None:
        """The form field name, from the `name` parameter of `Content-Disposition`."""
        return self._disposition_param("name")

    @property
    def filename(self) -> str | None:
        return self._disposition_param("filename")

    @property
    def is_file(self) -> bool:
        return self.filename is not None

    @property
    def content_type(self) -> str:
        header = self.get_header("Content-Type")
        if header is None:
            return "text/plain"
        return header.value

    @property
    def charset(self) -> str | None:
        header = self.get_header("Content-Type")
        if header is None:
            return None
        return header.params.get("charset")

    def dump(self, header_charset: str = "utf-8") -> bytes:
        """Serialize the part: header lines, a blank line, the body and a closing CRLF."""
        lines = b"".join(header.dump().encode(header_charset, "surrogateescape") + CRLF for header in self.headers)
        return lines + CRLF + self.body + CRLF
