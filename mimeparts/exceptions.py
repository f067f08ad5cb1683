class MultipartError(ValueError):
    """Base class for every error raised or recorded while handling a multipart message.

    Most subclasses describe *defects*: problems the parser can recover from. By default a defect is
    logged and recorded on the parser (and on the resulting `Message`), and parsing carries on. In
    strict mode the parser raises it instead.
    """


class MissingBoundary(MultipartError):
    """The content type carries no `boundary=` parameter, so no part can be found."""


class InvalidBoundary(MultipartError):
    """The boundary is longer than the 70 bytes allowed by RFC 2046."""


class DelimiterNotFound(MultipartError):
    """The body ended before a delimiter, or before the terminal `--boundary--` delimiter."""


class MissingHeaderBodySeparator(MultipartError):
    """A section has no blank line between its header block and its body."""


class MalformedHeaderLine(MultipartError):
    """A header line without `: `, or a parameter without `=`."""

    def __init__(self, message: str, line: str = "") -> None:
        super().__init__(message)
        self.line = line


class MaxSizeExceeded(MultipartError):
    """The body is larger than the configured maximum size. Always raised."""


class PartIndexError(MultipartError, IndexError):
    """A part index outside of the parts sequence. Always raised."""
