from datetime import datetime
from pathlib import Path

from logalert.errors import PlaceholderFormatError

PLACEHOLDER_OPEN = "{{{"
PLACEHOLDER_CLOSE = "}}}"

# Supported placeholder tokens and their strftime equivalents
DATE_FORMATS = {
    "yyyyMMdd": "%Y%m%d",
}


def resolve_file_location(file_location: str, now: datetime = None) -> str:
    """
    Substitute the date placeholder in ``file_location``.

    ``/var/log/app-{{{yyyyMMdd}}}.log`` becomes ``/var/log/app-20240131.log``.
    Locations without a placeholder are returned unchanged.

    Raises
    ------
    PlaceholderFormatError
        If the placeholder is unterminated, repeated or names an
        unsupported format.
    """
    if PLACEHOLDER_OPEN not in file_location:
        return file_location

    prefix, _, rest = file_location.partition(PLACEHOLDER_OPEN)
    token, closed, suffix = rest.partition(PLACEHOLDER_CLOSE)
    if not closed:
        raise PlaceholderFormatError(file_location, "Unterminated date placeholder")
    if PLACEHOLDER_OPEN in suffix or PLACEHOLDER_CLOSE in suffix:
        raise PlaceholderFormatError(file_location, "Only one date placeholder is supported")

    date_format = DATE_FORMATS.get(token)
    if date_format is None:
        raise PlaceholderFormatError(file_location)

    now = now or datetime.now()
    return f"{prefix}{now.strftime(date_format)}{suffix}"


def log_identity(file_path) -> str:
    """Key used for offset and pending records: the file's base name."""
    return Path(file_path).name
