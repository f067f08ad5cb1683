# pyright: reportUnusedImport=false
from mimeparts.exceptions import (
    DelimiterNotFound,
    InvalidBoundary,
    MalformedHeaderLine,
    MaxSizeExceeded,
    MissingBoundary,
    MissingHeaderBodySeparator,
    MultipartError,
    PartIndexError,
)
from mimeparts.headers import parse_header_block, parse_header_line, parse_params, trim
from mimeparts.message import Message
from mimeparts.parser import MultipartParser, MultipartPart, MultipartState, ParserConfig, discover_boundary
from mimeparts.parts import Header, Part, pad


__all__ = (
    "MultipartParser",
    "MultipartState",
    "MultipartPart",
    "ParserConfig",
    "Header",
    "Part",
    "Message",
    "discover_boundary",
    "parse_header_line",
    "parse_header_block",
    "parse_params",
    "trim",
    "pad",
    "MultipartError",
    "MissingBoundary",
    "InvalidBoundary",
    "DelimiterNotFound",
    "MissingHeaderBodySeparator",
    "MalformedHeaderLine",
    "MaxSizeExceeded",
    "PartIndexError",
)
