from types import SimpleNamespace

import pytest

from smartapi.services import smart_reader
from smartapi.services.smart_reader import SmartError


@pytest.fixture
def device_node(tmp_path):
    node = tmp_path / "sda"
    node.write_bytes(b"")
    return str(node)


def _ata_device(path):
    attributes = [None] * 256
    attributes[9] = SimpleNamespace(raw="12345")
    attributes[12] = SimpleNamespace(raw="321")
    attributes[194] = SimpleNamespace(raw="35 (Min/Max 20/45)")
    attributes[241] = SimpleNamespace(raw="987654321")
    attributes[242] = SimpleNamespace(raw="123456789")
    return SimpleNamespace(
        interface="sat",
        smart_capable=True,
        temperature=35,
        attributes=attributes,
        if_attributes=None,
    )


def _nvme_device(path):
    health = SimpleNamespace(
        temperature=41,
        dataUnitsRead=2000,
        dataUnitsWritten=3000,
        powerOnHours=777,
        powerCycles=42,
    )
    return SimpleNamespace(
        interface="nvme",
        smart_capable=True,
        temperature=41,
        attributes=[],
        if_attributes=health,
    )


def test_open_missing_node_raises_smart_error(tmp_path):
    with pytest.raises(SmartError) as excinfo:
        smart_reader.open_device(str(tmp_path / "nope"))

    assert "No such file or directory" in str(excinfo.value)


def test_close_is_idempotent(device_node):
    device = smart_reader.open_device(device_node)
    assert device.closed is False

    device.close()
    device.close()

    assert device.closed is True


def test_context_manager_closes_on_error(monkeypatch, device_node):
    def fake_device(path):
        return SimpleNamespace(interface=None, smart_capable=False, temperature=None)

    monkeypatch.setattr(smart_reader, "Device", fake_device)

    with pytest.raises(SmartError):
        with smart_reader.open_device(device_node) as device:
            device.read_generic_attributes()

    assert device.closed is True


def test_read_ata_generic_attributes(monkeypatch, device_node):
    monkeypatch.setattr(smart_reader, "Device", _ata_device)

    with smart_reader.open_device(device_node) as device:
        attrs = device.read_generic_attributes()

    assert attrs.temperature_celsius == 35
    assert attrs.read_blocks == 123456789
    assert attrs.written_blocks == 987654321
    assert attrs.power_on_hours == 12345
    assert attrs.power_cycles == 321


def test_read_ata_missing_counters_default_to_zero(monkeypatch, device_node):
    def sparse_device(path):
        device = _ata_device(path)
        device.attributes[241] = None
        device.attributes[242] = None
        device.attributes[9] = SimpleNamespace(raw="4321h+12m+05.123s")
        return device

    monkeypatch.setattr(smart_reader, "Device", sparse_device)

    with smart_reader.open_device(device_node) as device:
        attrs = device.read_generic_attributes()

    assert attrs.read_blocks == 0
    assert attrs.written_blocks == 0
    assert attrs.power_on_hours == 4321


def test_read_nvme_generic_attributes(monkeypatch, device_node):
    monkeypatch.setattr(smart_reader, "Device", _nvme_device)

    with smart_reader.open_device(device_node) as device:
        attrs = device.read_generic_attributes()

    assert attrs.temperature_celsius == 41
    assert attrs.read_blocks == 2_000_000
    assert attrs.written_blocks == 3_000_000
    assert attrs.power_on_hours == 777
    assert attrs.power_cycles == 42


def test_read_unsupported_device_raises(monkeypatch, device_node):
    def no_smart(path):
        return SimpleNamespace(interface="scsi", smart_capable=False, temperature=None)

    monkeypatch.setattr(smart_reader, "Device", no_smart)

    with smart_reader.open_device(device_node) as device:
        with pytest.raises(SmartError) as excinfo:
            device.read_generic_attributes()

    assert "SMART is not supported" in str(excinfo.value)


def test_smartctl_failure_is_wrapped(monkeypatch, device_node):
    def broken(path):
        raise FileNotFoundError(2, "No such file or directory", "smartctl")

    monkeypatch.setattr(smart_reader, "Device", broken)

    with smart_reader.open_device(device_node) as device:
        with pytest.raises(SmartError) as excinfo:
            device.read_generic_attributes()

    assert "smartctl failed" in str(excinfo.value)


def test_read_after_close_raises(device_node):
    device = smart_reader.open_device(device_node)
    device.close()

    with pytest.raises(SmartError):
        device.read_generic_attributes()


def test_read_sat_behind_megaraid_uses_ata_counters(monkeypatch, device_node):
    def megaraid_device(path):
        device = _ata_device(path)
        device.interface = "sat+megaraid,3"
        return device

    monkeypatch.setattr(smart_reader, "Device", megaraid_device)

    with smart_reader.open_device(device_node) as device:
        attrs = device.read_generic_attributes()

    assert attrs.power_on_hours == 12345
    assert attrs.read_blocks == 123456789


def test_read_scsi_generic_attributes(monkeypatch, device_node):
    def scsi_device(path):
        diagnostics = SimpleNamespace(
            Power_On_Hours=4242,
            Start_Stop_Cycles=17,
            _Reads_count=555000,
            _Writes_count=666000,
        )
        return SimpleNamespace(
            interface="scsi",
            smart_capable=True,
            temperature=30,
            attributes=[],
            if_attributes=None,
            diagnostics=diagnostics,
        )

    monkeypatch.setattr(smart_reader, "Device", scsi_device)

    with smart_reader.open_device(device_node) as device:
        attrs = device.read_generic_attributes()

    assert attrs.temperature_celsius == 30
    assert attrs.read_blocks == 555000
    assert attrs.written_blocks == 666000
    assert attrs.power_on_hours == 4242
    assert attrs.power_cycles == 17


def test_read_scsi_unreported_counters_default_to_zero(monkeypatch, device_node):
    def scsi_device(path):
        diagnostics = SimpleNamespace(
            Power_On_Hours=100,
            Start_Stop_Cycles=None,
            _Reads_count=None,
            _Writes_count=None,
        )
        return SimpleNamespace(
            interface="scsi",
            smart_capable=True,
            temperature=28,
            attributes=[],
            if_attributes=None,
            diagnostics=diagnostics,
        )

    monkeypatch.setattr(smart_reader, "Device", scsi_device)

    with smart_reader.open_device(device_node) as device:
        attrs = device.read_generic_attributes()

    assert attrs.power_on_hours == 100
    assert attrs.power_cycles == 0
    assert attrs.read_blocks == 0


def test_parser_crash_is_wrapped(monkeypatch, device_node):
    def broken(path):
        raise IndexError("list index out of range")

    monkeypatch.setattr(smart_reader, "Device", broken)

    with smart_reader.open_device(device_node) as device:
        with pytest.raises(SmartError) as excinfo:
            device.read_generic_attributes()

    assert "IndexError" in str(excinfo.value)
    assert device.closed is True
