"""Tests for decoding StorCLI JSON into the controller model."""
from __future__ import annotations

import json

import pytest

from storcli_collector.config import STATUS_CHECK_ALL
from storcli_collector.errors import ControllerStatusError, DecodeError
from storcli_collector.models import (
    NO_GROUP_LABEL,
    Controller,
    PhysicalDriveSummary,
    decode_controllers,
    decode_drive_details,
    split_drive_group,
)
from storcli_collector.normalize import SENTINEL, normalize_controller_json
from payloads import controller_payload, pd_entry, storcli_dumps, vd_entry


class TestDecodeControllers:
    def test_decodes_fields(self):
        payload = controller_payload(
            index=1,
            vd_list=[vd_entry("0/0", name="os")],
            pd_list=[pd_entry("32:0", did=7), pd_entry("32:1", did=8)],
            cachevault=["28C"],
        )

        controllers = decode_controllers(storcli_dumps({"Controllers": [payload]}))

        assert len(controllers) == 1
        controller = controllers[0]
        assert controller.index == 1
        assert controller.command_status == "Success"
        assert controller.model == "PERC H730P Mini"
        assert controller.serial == "SER1"
        assert controller.driver_name == "megaraid_sas"
        assert controller.firmware_version == "25.5.9.0001"
        assert controller.status == "Optimal"
        assert controller.roc_temp_celsius == 55
        assert controller.roc_temp_celcius == 0
        assert controller.port_count == 8
        assert controller.drive_group_count == 1
        assert controller.virtual_drive_count == 1
        assert controller.physical_drive_count == 2
        assert [pd.disk_id for pd in controller.physical_drives] == [7, 8]
        assert controller.virtual_drives[0].name == "os"
        assert controller.cachevault_temps == ("28C",)
        assert controller.bbu_temps == ()

    def test_missing_sections_decode_to_zero_values(self):
        controllers = decode_controllers(
            b'{"Controllers" : [{"Command Status" : {"Status" : "Success"}}]}'
        )

        controller = controllers[0]
        assert controller.index == 0
        assert controller.model == ""
        assert controller.bbu_status == 0
        assert controller.virtual_drives == ()
        assert controller.physical_drives == ()

    def test_normalized_bbu_na_decodes_to_sentinel(self):
        raw = storcli_dumps({"Controllers": [controller_payload(bbu_status="NA")]})

        controllers = decode_controllers(normalize_controller_json(raw))

        assert controllers[0].bbu_status == SENTINEL

    def test_unnormalized_bbu_na_is_rejected(self):
        raw = storcli_dumps({"Controllers": [controller_payload(bbu_status="NA")]})

        with pytest.raises(DecodeError, match="BBU Status"):
            decode_controllers(raw)

    def test_normalized_dash_drive_group_decodes_to_sentinel(self):
        payload = controller_payload(pd_list=[pd_entry("32:0", dg="-")])
        raw = normalize_controller_json(storcli_dumps({"Controllers": [payload]}))

        controllers = decode_controllers(raw)

        drive = controllers[0].physical_drives[0]
        assert drive.drive_group == SENTINEL
        assert drive.drive_group_label == "-"

    def test_invalid_json(self):
        with pytest.raises(DecodeError, match="Failed to parse controller JSON"):
            decode_controllers(b"{not json")

    @pytest.mark.parametrize(
        "raw",
        [b"{}", b'{"Controllers" : []}', b"[]"],
    )
    def test_no_controllers(self, raw):
        with pytest.raises(DecodeError, match="Could not find controllers"):
            decode_controllers(raw)


class TestCommandStatusPolicy:
    def _raw(self, *statuses: str) -> bytes:
        return storcli_dumps(
            {
                "Controllers": [
                    controller_payload(index=i, command_status=status)
                    for i, status in enumerate(statuses)
                ]
            }
        )

    def test_first_controller_failure_is_fatal(self):
        with pytest.raises(ControllerStatusError):
            decode_controllers(self._raw("Failure", "Success"))

    def test_later_failures_are_kept_by_default(self):
        controllers = decode_controllers(self._raw("Success", "Failure"))

        assert [c.command_status for c in controllers] == ["Success", "Failure"]

    def test_all_policy_checks_every_controller(self):
        with pytest.raises(ControllerStatusError) as excinfo:
            decode_controllers(self._raw("Success", "Failure"), STATUS_CHECK_ALL)

        assert excinfo.value.context["position"] == 1
        assert str(excinfo.value) == "Controller at position 1 reported command status 'Failure'"


class TestControllerIndex:
    def test_failed_controller_uses_command_status_index(self):
        raw = storcli_dumps(
            {
                "Controllers": [
                    controller_payload(index=0),
                    {"Command Status": {"Controller": 1, "Status": "Failure"}},
                ]
            }
        )

        controllers = decode_controllers(raw)

        assert [c.index for c in controllers] == [0, 1]

    def test_falls_back_to_position(self):
        raw = storcli_dumps(
            {
                "Controllers": [
                    controller_payload(index=0),
                    {"Command Status": {"Status": "Failure"}},
                ]
            }
        )

        assert decode_controllers(raw)[1].index == 1

    def test_basics_index_wins(self):
        payload = controller_payload(index=2)
        payload["Command Status"]["Controller"] = 7

        assert Controller.from_payload(payload, 5).index == 2


class TestSplitDriveGroup:
    def test_composite(self):
        assert split_drive_group("5/12") == ("5", "12")

    def test_empty(self):
        assert split_drive_group("") == (NO_GROUP_LABEL, NO_GROUP_LABEL)

    def test_without_separator(self):
        assert split_drive_group("5") == ("5", NO_GROUP_LABEL)


class TestPhysicalDriveSummary:
    def test_drive_group_label(self):
        in_group = PhysicalDriveSummary.from_payload(pd_entry(dg=3))
        unassigned = PhysicalDriveSummary.from_payload(pd_entry(dg=SENTINEL))

        assert in_group.drive_group_label == "3"
        assert unassigned.drive_group_label == "-"


class TestDecodeDriveDetails:
    def test_indexed_by_reported_controller(self):
        raw = json.dumps(
            {
                "Controllers": [
                    {"Command Status": {"Controller": 3}, "Response Data": {"a": 1}},
                    {"Command Status": {"Controller": 1}, "Response Data": {"b": 2}},
                ]
            }
        ).encode()

        details = decode_drive_details(raw)

        assert details == {3: {"a": 1}, 1: {"b": 2}}

    def test_falls_back_to_position(self):
        raw = json.dumps(
            {"Controllers": [{"Response Data": {"a": 1}}, {"Response Data": {"b": 2}}]}
        ).encode()

        assert decode_drive_details(raw) == {0: {"a": 1}, 1: {"b": 2}}

    def test_invalid_json(self):
        with pytest.raises(DecodeError, match="drive detail"):
            decode_drive_details(b"garbage")

    def test_controller_from_payload_is_frozen(self):
        controller = Controller.from_payload(controller_payload())
        with pytest.raises(AttributeError):
            controller.index = 5
