"""
Exception types raised by the harvester.
InitializationError and QueueStorageError are fatal; everything else is turned
into a per-page outcome.
"""


class HarvesterError(Exception):
    """Base class for all harvester errors."""


class InitializationError(HarvesterError):
    """The work queue could not be loaded or seeded. Ends the run."""


class NavigationFailure(HarvesterError):
    """The browser could not load a queued page."""


class ExtractionError(HarvesterError):
    """The extraction script failed or returned nothing usable."""


class StallTimeout(HarvesterError):
    """No heartbeat arrived within the liveness window."""


class PartialArtifactWriteFailure(HarvesterError):
    """An artifact or queue snapshot could not be written. Logged, never fatal."""


class QueueStorageError(HarvesterError):
    """The stored queue could not be read or updated mid-run. Ends the run."""
