# eeglst/core/exceptions.py
from __future__ import annotations


class CoreError(Exception):
    """Base error for all eeglst exceptions."""


# ---- Validation / construction errors ----
class InvalidSampleIndex(CoreError):
    """Raised when a SampleIndex is constructed with invalid inputs."""


class InvalidChannel(CoreError):
    """Raised when a ChannelInfo / ChannelTable is constructed with invalid inputs."""


class InvalidContainer(CoreError):
    """Raised when an EEGList is constructed with wrong types or a bad sampling rate."""


# ---- Verb errors ----
class SchemaError(CoreError):
    """A verb referenced columns that do not fit the container's schema."""


class CardinalityError(CoreError):
    """An operation would produce several rows where one per segment is required."""


class BoundsError(CoreError):
    """A sample window or filter does not fit the available samples."""


class ConsistencyError(CoreError):
    """The signal, events and segments tables disagree about `.id` or bounds."""


# ---- Lookup errors (also behave like KeyError for dict-like APIs) ----
class ColumnNotFound(SchemaError, KeyError):
    """Raised when a requested column is not present in any table."""


class ChannelNotFound(ColumnNotFound):
    """Raised when a requested channel name is not present."""


# ---- Warnings ----
class EEGWarning(UserWarning):
    """Base class for non-fatal eeglst warnings."""


class EdgeWarning(EEGWarning):
    """A segment window crossed the bounds of the available samples."""


class MixedChannelKindWarning(EEGWarning):
    """Plain channels and components were averaged together."""
