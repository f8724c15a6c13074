"""
Exception types raised while generating feed fixtures.

Every failure aborts the batch: there is no retry or partial-success path,
the tool is simply rerun from scratch.
"""


class FixtureError(Exception):
    """Base class for all fixture generation failures."""


class FeedFileError(FixtureError):
    """
    A feed file could not be read or written.

    Attributes:
        file_name: Name of the feed file involved
        reason: Short description of what went wrong
    """

    def __init__(self, file_name: str, reason: str) -> None:
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"{file_name}: {reason}")


class ManifestWriteError(FixtureError):
    """
    The expectations manifest could not be written.

    Raised only after every fixture file was rewritten, so the fixtures on
    disk are valid even though the manifest is stale.
    """


class ConfigError(FixtureError):
    """Configuration file or alias table is invalid."""
