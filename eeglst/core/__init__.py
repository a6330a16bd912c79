# eeglst/core/__init__.py
"""
Core domain objects for eeglst.

This module defines the data model shared by every verb:
- SampleIndex: integer sample offsets annotated with a sampling rate
- ChannelInfo / ChannelTable: channel metadata (kind, coordinates, ...)
- EEGList: signal + events + segments tables tied by `.id`
- Expr / Schema: explicit column expressions and their classification

The core layer is independent from readers and plotting.
"""

from .sample import SampleIndex, as_sample, as_time
from .channel import ChannelInfo, ChannelKind, ChannelTable
from .container import EEGList
from .expr import EvalContext, Expr, all_of, col, lit
from .schema import Schema, Scope
from .tables import (
    CHANNEL,
    DESCRIPTION,
    FINAL,
    ID,
    INITIAL,
    RECORDING,
    SAMPLE,
    SEGMENT,
    TIME,
    TYPE,
)
from .exceptions import (
    CoreError,
    InvalidSampleIndex,
    InvalidChannel,
    InvalidContainer,
    SchemaError,
    CardinalityError,
    BoundsError,
    ConsistencyError,
    ColumnNotFound,
    ChannelNotFound,
    EEGWarning,
    EdgeWarning,
    MixedChannelKindWarning,
)


__all__ = [
    # samples
    "SampleIndex",
    "as_sample",
    "as_time",

    # domain objects
    "ChannelInfo",
    "ChannelKind",
    "ChannelTable",
    "EEGList",

    # expressions
    "EvalContext",
    "Expr",
    "all_of",
    "col",
    "lit",
    "Schema",
    "Scope",

    # column names
    "ID",
    "SAMPLE",
    "TIME",
    "TYPE",
    "DESCRIPTION",
    "INITIAL",
    "FINAL",
    "CHANNEL",
    "RECORDING",
    "SEGMENT",

    # exceptions
    "CoreError",
    "InvalidSampleIndex",
    "InvalidChannel",
    "InvalidContainer",
    "SchemaError",
    "CardinalityError",
    "BoundsError",
    "ConsistencyError",
    "ColumnNotFound",
    "ChannelNotFound",

    # warnings
    "EEGWarning",
    "EdgeWarning",
    "MixedChannelKindWarning",
]
