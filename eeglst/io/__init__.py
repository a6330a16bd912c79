# eeglst/io/__init__.py
"""
Boundary of eeglst: building containers from parsed arrays and exporting
long tables for plotting. File parsing itself lives in the readers.
"""

from .construct import Event, events_frame_from, from_arrays
from .export import channels_table, flatten, flatten_events


__all__ = [
    "Event",
    "events_frame_from",
    "from_arrays",
    "flatten",
    "flatten_events",
    "channels_table",
]
