"""Tests for the accumulated status model."""

import json

from budsplus_mcp.models.status import DecodedStatus
from budsplus_mcp.protocol.registry import Known, Unknown


def test_merge_overwrites():
    status = DecodedStatus()
    status.merge({"battery_left": 10, "coupled": True})
    status.merge({"battery_left": 20})
    assert status["battery_left"] == 20
    assert status["coupled"] is True
    assert "battery_case" not in status


def test_to_dict_is_json_safe():
    status = DecodedStatus(
        fields={
            "equalizer_type": Known("Soft", 2),
            "device_color": Unknown(0x0999),
            "FOTA_DEVICE_INFO_SW_VERSION-0": b"R175XXU0ATF2",
            "battery_left": 80,
        },
        frames=2,
        messages=["EXTENDED_STATUS_UPDATED", "FOTA_DEVICE_INFO_SW_VERSION"],
    )
    d = status.to_dict()
    assert d["fields"]["equalizer_type"] == "Soft"
    assert d["fields"]["device_color"] == 0x0999
    assert d["fields"]["FOTA_DEVICE_INFO_SW_VERSION-0"] == "R175XXU0ATF2"
    assert d["frames"] == 2
    json.dumps(d)


def test_to_dict_sorted_fields():
    status = DecodedStatus(fields={"b": 1, "a": 2})
    assert list(status.to_dict()["fields"]) == ["a", "b"]
