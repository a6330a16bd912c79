# test/test_channel.py
import numpy as np
import pytest

from eeglst.core.channel import CHANNEL_TABLE_COLUMNS, ChannelInfo, ChannelKind, ChannelTable
from eeglst.core.exceptions import ChannelNotFound, InvalidChannel


def test_channel_info_defaults():
    info = ChannelInfo("Fz")
    assert info.kind is ChannelKind.CHANNEL
    assert not info.is_component
    assert info.coords is None
    assert info.attrs == {}


def test_channel_info_normalizes_kind_and_coords():
    info = ChannelInfo("ICA1", kind="component", x="0.5", y=0, z=np.nan)
    assert info.kind is ChannelKind.COMPONENT
    assert info.is_component
    assert info.x == 0.5
    assert info.z is None
    assert info.coords is None
    assert ChannelInfo("Cz", x=0, y=0, z=1).coords == (0.0, 0.0, 1.0)


@pytest.mark.parametrize("name", ["", "   ", ".id", ".hidden"])
def test_channel_info_rejects_bad_names(name):
    with pytest.raises(InvalidChannel):
        ChannelInfo(name)


def test_channel_info_rejects_bad_kind_and_coords():
    with pytest.raises(InvalidChannel):
        ChannelInfo("Fz", kind="electrode")
    with pytest.raises(InvalidChannel):
        ChannelInfo("Fz", x="left")


def test_channel_info_copies_are_independent():
    info = ChannelInfo("Fz", unit="µV", attrs={"impedance": 5})
    renamed = info.rename("Fpz")
    assert renamed.name == "Fpz"
    assert renamed.unit == "µV"
    renamed.attrs["impedance"] = 10
    assert info.attrs["impedance"] == 5
    assert info.with_reference("M1").reference == "M1"
    assert info.with_coords(1, 0, 0).coords == (1.0, 0.0, 0.0)


def test_channel_table_dict_api():
    table = ChannelTable.from_names(["Fz", ChannelInfo("Cz", unit="µV")])
    assert len(table) == 2
    assert list(table) == ["Fz", "Cz"]
    assert "Cz" in table
    assert table["Cz"].unit == "µV"
    assert table.get("Pz") is None
    with pytest.raises(ChannelNotFound):
        _ = table["Pz"]


def test_channel_table_rejects_duplicates():
    with pytest.raises(InvalidChannel):
        ChannelTable.from_names(["Fz", "Fz"])


def test_channel_table_add_select_drop_rename():
    table = ChannelTable.from_names(["Fz", "Cz", "Pz"])

    with pytest.raises(InvalidChannel):
        table.add(ChannelInfo("Fz"))
    replaced = table.add(ChannelInfo("Fz", unit="µV"), overwrite=True)
    assert replaced.names == ["Fz", "Cz", "Pz"]
    assert replaced["Fz"].unit == "µV"

    assert table.select(["Pz", "Fz"]).names == ["Pz", "Fz"]
    assert table.select(["Pz", "Oz"], missing="ignore").names == ["Pz"]
    with pytest.raises(ChannelNotFound):
        table.select(["Oz"])

    assert table.drop("Cz").names == ["Fz", "Pz"]
    with pytest.raises(ChannelNotFound):
        table.drop(["Oz"])

    assert table.rename({"Cz": "C0"}).names == ["Fz", "C0", "Pz"]
    with pytest.raises(ChannelNotFound):
        table.rename({"Oz": "O0"})


def test_channel_table_kinds_and_frame():
    table = ChannelTable.from_names([ChannelInfo("Fz", x=0, y=0.7, z=0.7), ChannelInfo("ICA1", kind="component")])
    assert table.kinds() == {ChannelKind.CHANNEL, ChannelKind.COMPONENT}
    assert table.kinds(["ICA1"]) == {ChannelKind.COMPONENT}

    frame = table.to_frame()
    assert list(frame.columns) == list(CHANNEL_TABLE_COLUMNS)
    assert frame[".channel"].tolist() == ["Fz", "ICA1"]
    assert frame[".kind"].tolist() == ["channel", "component"]
    assert frame.loc[0, ".y"] == 0.7
