import pytest

from sshbench.core.telemetry import Telemetry


def test_measure_records_duration_sample():
    telemetry = Telemetry()

    with telemetry.measure("tab.connect", {"session": "web"}):
        pass

    [sample] = telemetry.samples("tab.connect.seconds")
    assert sample.value >= 0
    assert sample.tags == {"session": "web"}
    assert telemetry.events() == []


def test_measure_failure_keeps_sample_and_adds_event():
    telemetry = Telemetry()

    with pytest.raises(RuntimeError):
        with telemetry.measure("transfer.folder_upload", {"destination": "/srv"}):
            raise RuntimeError("tar exited with 2")

    assert len(telemetry.samples("transfer.folder_upload.seconds")) == 1
    [event] = telemetry.events("transfer.folder_upload.failed")
    assert event.details == {"error": "tar exited with 2", "destination": "/srv"}


def test_oldest_records_dropped_past_limit():
    telemetry = Telemetry(limit=2)

    for status in (1, 2, 3):
        telemetry.record_event("tab.shell_exited", {"status": status})

    assert [e.details["status"] for e in telemetry.events()] == [2, 3]


def test_clear():
    telemetry = Telemetry()
    telemetry.record_metric("x", 1)
    telemetry.record_event("y")
    telemetry.clear()
    assert telemetry.samples() == [] and telemetry.events() == []
