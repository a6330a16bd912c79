# eeglst/core/channel.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping

import pandas as pd

from .exceptions import ChannelNotFound, InvalidChannel


CHANNEL_TABLE_COLUMNS = (".channel", ".kind", ".x", ".y", ".z", ".unit", ".reference")


class ChannelKind(str, Enum):
    CHANNEL = "channel"      # recorded electrode
    COMPONENT = "component"  # derived source, e.g. after ICA


def _coord(value: Any, axis: str) -> float | None:
    if value is None:
        return None
    try:
        v = float(value)
    except (TypeError, ValueError) as e:
        raise InvalidChannel(f"ChannelInfo.{axis} must be a number or None, got {value!r}") from e
    return None if math.isnan(v) else v


@dataclass(frozen=True, slots=True)
class ChannelInfo:
    """
    Metadata of one signal column.

    Keep it lightweight and extensible:
    - kind: plain recorded channel or derived component
    - x, y, z: 3-D electrode position (None when unknown)
    - unit: physical unit of the amplitudes (µV, ...)
    - reference: label of the reference the channel is expressed against
    - attrs: arbitrary additional fields
    """
    name: str
    kind: ChannelKind = ChannelKind.CHANNEL
    x: float | None = None
    y: float | None = None
    z: float | None = None
    unit: str | None = None
    reference: str | None = None
    attrs: dict[str, Any] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise InvalidChannel("ChannelInfo.name must be a non-empty string.")
        if self.name.startswith("."):
            raise InvalidChannel(f"Channel names cannot start with '.', got '{self.name}'.")
        try:
            object.__setattr__(self, "kind", ChannelKind(self.kind))
        except ValueError as e:
            raise InvalidChannel(f"Unknown channel kind {self.kind!r}.") from e

        for axis in ("x", "y", "z"):
            object.__setattr__(self, axis, _coord(getattr(self, axis), axis))

        if self.attrs is None:
            object.__setattr__(self, "attrs", {})
        elif not isinstance(self.attrs, dict):
            raise InvalidChannel("ChannelInfo.attrs must be a dict.")
        else:
            object.__setattr__(self, "attrs", dict(self.attrs))

    @property
    def is_component(self) -> bool:
        return self.kind is ChannelKind.COMPONENT

    @property
    def coords(self) -> tuple[float, float, float] | None:
        if self.x is None or self.y is None or self.z is None:
            return None
        return (self.x, self.y, self.z)

    def rename(self, name: str) -> "ChannelInfo":
        return self._copy(name=name)

    def with_coords(self, x: float | None, y: float | None, z: float | None) -> "ChannelInfo":
        return self._copy(x=x, y=y, z=z)

    def with_reference(self, reference: str | None) -> "ChannelInfo":
        return self._copy(reference=reference)

    def _copy(self, **changes: Any) -> "ChannelInfo":
        values = {
            "name": self.name,
            "kind": self.kind,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "unit": self.unit,
            "reference": self.reference,
            "attrs": self.attrs.copy(),
        }
        values.update(changes)
        return ChannelInfo(**values)


@dataclass(frozen=True, slots=True)
class ChannelTable:
    """
    Ordered collection of ChannelInfo keyed by channel name.

    Design goals:
    - dict-like access: channels["Fz"]
    - order is the order of the signal table's channel columns
    - immutable; transformations return a new ChannelTable
    """
    channels: tuple[ChannelInfo, ...] = ()

    def __post_init__(self) -> None:
        infos = tuple(self.channels)
        seen: set[str] = set()
        for info in infos:
            if not isinstance(info, ChannelInfo):
                raise InvalidChannel("ChannelTable entries must be ChannelInfo instances.")
            if info.name in seen:
                raise InvalidChannel(f"Duplicated channel name '{info.name}'.")
            seen.add(info.name)
        object.__setattr__(self, "channels", infos)

    @classmethod
    def from_names(cls, names: Iterable[str | ChannelInfo]) -> "ChannelTable":
        return cls(tuple(n if isinstance(n, ChannelInfo) else ChannelInfo(n) for n in names))

    # ---- dict-like API ----
    def __len__(self) -> int:
        return len(self.channels)

    def __iter__(self) -> Iterator[str]:
        return iter(self.names)

    def __contains__(self, name: object) -> bool:
        return any(info.name == name for info in self.channels)

    def __getitem__(self, name: str) -> ChannelInfo:
        for info in self.channels:
            if info.name == name:
                return info
        raise ChannelNotFound(name)

    def get(self, name: str, default: ChannelInfo | None = None) -> ChannelInfo | None:
        try:
            return self[name]
        except ChannelNotFound:
            return default

    def values(self) -> tuple[ChannelInfo, ...]:
        return self.channels

    @property
    def names(self) -> list[str]:
        return [info.name for info in self.channels]

    def kinds(self, names: Iterable[str] | None = None) -> set[ChannelKind]:
        selected = self.channels if names is None else [self[n] for n in names]
        return {info.kind for info in selected}

    # ---- transformations ----
    def add(self, info: ChannelInfo, *, overwrite: bool = False) -> "ChannelTable":
        """Return a new table with `info` appended (or replaced in place if overwrite=True)."""
        if not isinstance(info, ChannelInfo):
            raise InvalidChannel("add() expects a ChannelInfo instance.")
        if info.name in self:
            if not overwrite:
                raise InvalidChannel(f"Channel '{info.name}' already exists (overwrite=False).")
            return ChannelTable(tuple(info if c.name == info.name else c for c in self.channels))
        return ChannelTable(self.channels + (info,))

    def select(self, names: Iterable[str], *, missing: str = "raise") -> "ChannelTable":
        """
        Keep only the given channels (order given by `names`).

        missing:
          - "raise": error if any name is missing
          - "ignore": skip missing names
        """
        selected: list[ChannelInfo] = []
        for n in names:
            info = self.get(n)
            if info is not None:
                selected.append(info)
            elif missing == "raise":
                raise ChannelNotFound(n)
        return ChannelTable(tuple(selected))

    def drop(self, names: str | Iterable[str], *, missing: str = "raise") -> "ChannelTable":
        names_set = {names} if isinstance(names, str) else set(names)
        if missing == "raise":
            for n in names_set:
                if n not in self:
                    raise ChannelNotFound(n)
        return ChannelTable(tuple(c for c in self.channels if c.name not in names_set))

    def rename(self, mapping: Mapping[str, str]) -> "ChannelTable":
        for old in mapping:
            if old not in self:
                raise ChannelNotFound(old)
        return ChannelTable(
            tuple(c.rename(mapping[c.name]) if c.name in mapping else c for c in self.channels)
        )

    def to_frame(self) -> pd.DataFrame:
        """Channel metadata table, one row per channel."""
        return pd.DataFrame(
            {
                ".channel": [c.name for c in self.channels],
                ".kind": [c.kind.value for c in self.channels],
                ".x": [c.x for c in self.channels],
                ".y": [c.y for c in self.channels],
                ".z": [c.z for c in self.channels],
                ".unit": [c.unit for c in self.channels],
                ".reference": [c.reference for c in self.channels],
            },
            columns=list(CHANNEL_TABLE_COLUMNS),
        )
