"""
Errors raised while reading request logs.
"""

# Longest slice of an offending line quoted back in a ParseError
_MAX_QUOTED = 100


class IngestionError(Exception):
    """Base class; catch this to handle any request log read failure."""


class ValidationError(IngestionError):
    """
    A record was parsed but cannot be turned into a request.

    Attributes:
        message: What is wrong with the record
        field: Offending field, if known
        value: Offending value, if known
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: object | None = None,
    ):
        self.message = message
        self.field = field
        self.value = value

        context = []
        if field:
            context.append(f"field='{field}'")
            if value is not None:
                context.append(f"value={value!r}")
        super().__init__(f"{message} ({', '.join(context)})" if context else message)


class ParseError(IngestionError):
    """
    The file itself is malformed.

    Attributes:
        message: What went wrong
        line_number: 1-based line the parser stopped at, if known
        line_content: Raw text of that line, if known
    """

    def __init__(
        self,
        message: str,
        line_number: int | None = None,
        line_content: str | None = None,
    ):
        self.message = message
        self.line_number = line_number
        self.line_content = line_content

        if line_number is None:
            text = message
        elif line_content:
            quoted = line_content
            if len(quoted) > _MAX_QUOTED:
                quoted = quoted[:_MAX_QUOTED] + "..."
            text = f"{message} (line {line_number}: {quoted!r})"
        else:
            text = f"{message} (line {line_number})"
        super().__init__(text)
