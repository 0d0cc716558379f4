"""
Exception hierarchy for logalert.

Validation errors (config, term conflicts, placeholders) stop the process.
Operational errors (storage, mail) are handled per log target.
"""


class LogAlertError(Exception):
    """Base class for every error raised by logalert."""


class ConfigError(LogAlertError):
    """The config file is missing, unreadable or does not validate."""


class TermConflictError(LogAlertError):
    """A term appears in both the search and the ignore list of a target."""

    def __init__(self, file_location: str, conflicts):
        self.file_location = file_location
        self.conflicts = list(conflicts)
        super().__init__(
            f"There is an ignore term that is also in the search terms for file location: "
            f"{file_location} ({', '.join(self.conflicts)}). Check the config.json file."
        )


class PlaceholderFormatError(LogAlertError):
    """The date placeholder in a file location is malformed or unsupported."""

    def __init__(self, file_location: str, reason: str = "Improper date format"):
        self.file_location = file_location
        super().__init__(f"{reason} in config file for {file_location}.")


class StorageIOError(LogAlertError):
    """Reading or writing an offset/pending record (or the log itself) failed."""


class MailTransportError(LogAlertError):
    """The mail capability could not deliver a message."""
