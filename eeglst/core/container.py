# eeglst/core/container.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping

import numpy as np
import pandas as pd

from .channel import ChannelInfo, ChannelTable
from .exceptions import ChannelNotFound, InvalidContainer, InvalidSampleIndex, SchemaError
from .sample import SampleIndex, _check_rate
from .tables import (
    ID,
    SAMPLE,
    empty_events,
    empty_segments,
    empty_signal,
    reconcile,
    validate,
)


@dataclass(frozen=True, slots=True, eq=False)
class EEGList:
    """
    EEGList = signal table + events table + segments table, tied by `.id`.

    Design goals:
    - safe: every construction checks the `.id` invariant between the tables
    - predictable: immutable; verbs return a new EEGList and share the
      tables they did not touch
    - grouping is metadata only: it never reorders or splits the tables

    The DataFrames are treated as read-only; verbs never modify them in place.
    """
    signal: pd.DataFrame = field(repr=False)
    events: pd.DataFrame = field(repr=False)
    segments: pd.DataFrame = field(repr=False)
    channels: ChannelTable = field(repr=False)
    sampling_rate: float = 1.0
    groups: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("signal", "events", "segments"):
            if not isinstance(getattr(self, name), pd.DataFrame):
                raise InvalidContainer(f"EEGList.{name} must be a pandas DataFrame.")
        if not isinstance(self.channels, ChannelTable):
            raise InvalidContainer("EEGList.channels must be a ChannelTable instance.")
        try:
            rate = _check_rate(self.sampling_rate)
        except InvalidSampleIndex as e:
            raise InvalidContainer(str(e)) from e
        object.__setattr__(self, "sampling_rate", rate)

        groups = (self.groups,) if isinstance(self.groups, str) else tuple(self.groups)
        object.__setattr__(self, "groups", groups)

        validate(self.signal, self.events, self.segments, self.channels.names)

        for g in groups:
            if g not in (ID, SAMPLE) and g not in self.segments.columns:
                raise SchemaError(f"Cannot group by '{g}': not a segments column, .id or .sample.")

    @classmethod
    def build(
        cls,
        signal: pd.DataFrame,
        events: pd.DataFrame | None,
        segments: pd.DataFrame,
        channels: ChannelTable,
        sampling_rate: float,
        groups: Iterable[str] = (),
    ) -> "EEGList":
        """Reconcile the tables (drop orphans, clip events, renumber `.id`) and construct."""
        if events is None:
            events = empty_events()
        signal, events, segments = reconcile(signal, events, segments, channels.names)
        return cls(signal, events, segments, channels, sampling_rate, tuple(groups))

    @classmethod
    def empty(
        cls,
        channels: ChannelTable | Iterable[str | ChannelInfo] = (),
        sampling_rate: float = 1.0,
    ) -> "EEGList":
        if not isinstance(channels, ChannelTable):
            channels = ChannelTable.from_names(channels)
        return cls(
            empty_signal(channels.names), empty_events(), empty_segments(), channels, sampling_rate
        )

    # ---- accessors ----
    def __len__(self) -> int:
        return self.n_segments

    @property
    def channel_names(self) -> list[str]:
        return self.channels.names

    @property
    def n_channels(self) -> int:
        return len(self.channels)

    @property
    def n_segments(self) -> int:
        return len(self.segments)

    @property
    def n_samples(self) -> pd.Series:
        """Number of samples of each segment, indexed by `.id`."""
        return self.signal.groupby(ID, sort=True).size().rename("n")

    @property
    def segment_ids(self) -> np.ndarray:
        return self.segments[ID].to_numpy()

    @property
    def samples(self) -> SampleIndex:
        return SampleIndex(self.signal[SAMPLE].to_numpy(), self.sampling_rate)

    @property
    def is_grouped(self) -> bool:
        return bool(self.groups)

    # ---- transformations ----
    def replace(self, *, rebuild: bool = True, **changes: Any) -> "EEGList":
        """
        Return a new EEGList with some fields replaced.

        rebuild:
          - True : reconcile the tables first (drops orphans, renumbers `.id`)
          - False: only validate
        """
        values: dict[str, Any] = {
            "signal": self.signal,
            "events": self.events,
            "segments": self.segments,
            "channels": self.channels,
            "sampling_rate": self.sampling_rate,
            "groups": self.groups,
        }
        unknown = set(changes) - set(values)
        if unknown:
            raise TypeError(f"replace() got unexpected fields {sorted(unknown)}")
        values.update(changes)
        if rebuild:
            return EEGList.build(**values)
        return EEGList(**values)

    def ungroup(self) -> "EEGList":
        if not self.groups:
            return self
        return self.replace(rebuild=False, groups=())

    def pipe(self, func: Callable[..., "EEGList"], *args: Any, **kwargs: Any) -> "EEGList":
        """Apply ``func(self, *args, **kwargs)``, for chaining verbs."""
        return func(self, *args, **kwargs)

    def with_channel_info(self, infos: Mapping[str, ChannelInfo]) -> "EEGList":
        """Replace the metadata of some channels (names must not change)."""
        table = self.channels
        for name, info in infos.items():
            if info.name != name:
                raise InvalidContainer(
                    f"Channel name mismatch: key '{name}' but ChannelInfo.name is '{info.name}'."
                )
            if name not in table:
                raise ChannelNotFound(name)
            table = table.add(info, overwrite=True)
        return self.replace(rebuild=False, channels=table)

    def __repr__(self) -> str:
        return (
            f"EEGList(segments={self.n_segments}, channels={self.n_channels}, "
            f"rows={len(self.signal)}, events={len(self.events)}, "
            f"sampling_rate={self.sampling_rate:g}, groups={list(self.groups)})"
        )
