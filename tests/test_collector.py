"""End-to-end tests of a collection run against canned StorCLI output."""
from __future__ import annotations

import pytest

from storcli_collector.collector import StorcliCollector
from storcli_collector.config import FORMAT_OPENMETRICS
from storcli_collector.errors import ControllerStatusError, DecodeError
from payloads import controller_payload, drive_detail_entry, drives_payload, pd_entry, vd_entry


def sample_lines(text: str) -> list[str]:
    return [line for line in text.splitlines() if line and not line.startswith("#")]


@pytest.mark.integration
class TestCollectionRun:
    def test_megaraid_controller_without_drives(self, make_client):
        client = make_client(
            {
                "Controllers": [
                    controller_payload(
                        controller_time="03/01/2026, 08:00:00",
                        system_time="03/01/2026, 09:00:00",
                    )
                ]
            }
        )

        text = StorcliCollector(client).collect().render()

        assert 'megaraid_time_difference{controller="0"} 3600.0' in text
        assert 'megaraid_physical_drives{controller="0"} 0.0' in text
        assert not [line for line in sample_lines(text) if line.startswith("megaraid_pd_")]
        client.drives.assert_not_called()

    def test_non_megaraid_driver(self, make_client):
        client = make_client(
            {
                "Controllers": [
                    controller_payload(
                        driver="mpt3sas", vd_list=[vd_entry()], pd_list=[pd_entry()]
                    )
                ]
            }
        )

        lines = sample_lines(StorcliCollector(client).collect().render())

        names = {line.split("{", 1)[0] for line in lines}
        assert names == {"megaraid_controller_info", "megaraid_temperature"}

    def test_quirky_payload_with_drives(self, make_client):
        payload = controller_payload(
            bbu_status="NA",
            vd_list=[vd_entry("0/0")],
            pd_list=[pd_entry("32:0", did=4, dg=0), pd_entry(" :1", did=5, dg="-")],
        )
        details = drives_payload(
            {
                0: {
                    **drive_detail_entry("Drive /c0/e32/s0", smart="Yes"),
                    **drive_detail_entry("Drive /c0/s1", emergency="Yes"),
                }
            }
        )
        client = make_client({"Controllers": [payload]}, details)

        registry = StorcliCollector(client).collect()
        text = registry.render()

        assert 'megaraid_battery_backup_healthy{controller="0"} 0.0' in text
        assert 'megaraid_pd_smart_alerted{controller="0",enclosure="32",slot="0"} 1.0' in text
        assert 'megaraid_pd_emergency_spare{controller="0",enclosure="",slot="1"} 1.0' in text
        assert 'disk_id="5",interface="SAS",media="HDD",model="ST4000NM0023",DG="-"' in text
        assert 'disk_id="4",interface="SAS",media="HDD",model="ST4000NM0023",DG="0"' in text
        client.drives.assert_called_once_with()

    def test_openmetrics_rendering(self, make_client):
        client = make_client({"Controllers": [controller_payload()]})

        text = StorcliCollector(client).collect().render(FORMAT_OPENMETRICS)

        assert text.endswith("# EOF\n")
        assert 'megaraid_healthy{controller="0"} 1.0' in text

    def test_failed_command_status_is_fatal(self, make_client):
        client = make_client({"Controllers": [controller_payload(command_status="Failure")]})

        with pytest.raises(ControllerStatusError):
            StorcliCollector(client).collect()

    def test_later_failed_controller_keeps_its_own_index(self, make_client):
        client = make_client(
            {
                "Controllers": [
                    controller_payload(index=0, celsius=55),
                    {"Command Status": {"Controller": 1, "Status": "Failure"}},
                ]
            }
        )

        registry = StorcliCollector(client).collect()

        assert registry.get("ctrl_temperature", {"controller": "0"}) == 55.0
        assert registry.get("ctrl_temperature", {"controller": "1"}) == 0.0
        text = registry.render()
        assert 'megaraid_temperature{controller="0"} 55.0' in text
        assert 'megaraid_controller_info{controller="1",model="",serial="",fwversion=""} 1.0' in text

    def test_empty_families_are_not_rendered(self, make_client):
        client = make_client({"Controllers": [controller_payload()]})
        registry = StorcliCollector(client).collect()

        for text in (registry.render(), registry.render(FORMAT_OPENMETRICS)):
            comments = [line for line in text.splitlines() if line.startswith("#")]
            assert "# HELP megaraid_healthy MegaRAID controller healthy" in comments
            assert not [line for line in comments if line.startswith("# HELP megaraid_pd_")]
            assert not [line for line in comments if line.startswith("# TYPE megaraid_vd_info")]

    def test_invalid_json_is_fatal(self, make_client):
        client = make_client(b"storcli: command not supported")

        with pytest.raises(DecodeError):
            StorcliCollector(client).collect()
