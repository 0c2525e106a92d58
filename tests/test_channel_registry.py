import pytest

from channel_registry import ChannelRegistry, ChannelRole, ChannelSelection
from config_store import MemoryConfigStore
from errors import ChannelInUse, InstrumentNotConnected, InvalidChannel, NoInstrumentSelected
from keithley2600_controller import Keithley2600, Keithley2635A
from mock_controller import MockMultiChannelSMU

from conftest import FakeMultiChannel, FakeSMU


def test_default_selection_one_role_per_instrument(store):
    reg = ChannelRegistry([None] * 4, store)
    assert [reg.selection(r).instrument for r in ChannelRole] == [0, 1, 2, 3]
    assert all(reg.selection(r).channel == 0 for r in ChannelRole)


def test_resolve_multi_channel(registry, instrument):
    assert registry.resolve(ChannelRole.GATE) is instrument.channels[1]
    assert registry.resolve(ChannelRole.PROBE_B) is instrument.channels[3]


def test_instrument_index_out_of_range(store):
    reg = ChannelRegistry([FakeSMU()] * 4, store)
    with pytest.raises(NoInstrumentSelected):
        reg.resolve(ChannelRole.GATE, ChannelSelection(4, 0))
    with pytest.raises(NoInstrumentSelected):
        reg.resolve(ChannelRole.GATE, ChannelSelection(-1, 0))


def test_instrument_not_connected(store):
    reg = ChannelRegistry([FakeSMU(), None, None, None], store)
    with pytest.raises(InstrumentNotConnected) as exc_info:
        reg.resolve(ChannelRole.GATE)
    assert exc_info.value.role is ChannelRole.GATE


@pytest.mark.parametrize("channel", [-1, 4, 10])
def test_invalid_channel_on_multi_channel_instrument(store, channel):
    reg = ChannelRegistry([FakeMultiChannel(4), None, None, None], store)
    with pytest.raises(InvalidChannel):
        reg.resolve(ChannelRole.SOURCE_DRAIN, ChannelSelection(0, channel))


def test_single_channel_instrument_ignores_channel_index(store):
    single = FakeSMU("single")
    reg = ChannelRegistry([single, None, None, None], store)
    assert reg.resolve(ChannelRole.SOURCE_DRAIN, ChannelSelection(0, 2)) is single


def test_resolution_persists_attempt_even_on_failure(store):
    reg = ChannelRegistry([None] * 4, store)
    with pytest.raises(InstrumentNotConnected):
        reg.resolve(ChannelRole.PROBE_A, ChannelSelection(1, 3))
    assert ChannelRegistry([None] * 4, store).selection(ChannelRole.PROBE_A) == ChannelSelection(1, 3)


def test_registry_sees_reconnection(store):
    instruments = [None] * 4
    reg = ChannelRegistry(instruments, store)
    with pytest.raises(InstrumentNotConnected):
        reg.resolve(ChannelRole.SOURCE_DRAIN)
    instruments[0] = FakeSMU("late")
    assert reg.resolve(ChannelRole.SOURCE_DRAIN) is instruments[0]


def test_resolve_all_collects_every_failure(store):
    reg = ChannelRegistry([FakeSMU("sd"), None, None, None], store)
    channels, errors = reg.resolve_all(list(ChannelRole))
    assert list(channels) == [ChannelRole.SOURCE_DRAIN]
    assert set(errors) == {ChannelRole.GATE, ChannelRole.PROBE_A, ChannelRole.PROBE_B}


def test_resolve_all_rejects_shared_channel(registry, instrument):
    registry.select(ChannelRole.GATE, 0, 0)
    channels, errors = registry.resolve_all([ChannelRole.SOURCE_DRAIN, ChannelRole.GATE])
    assert channels == {ChannelRole.SOURCE_DRAIN: instrument.channels[0]}
    assert isinstance(errors[ChannelRole.GATE], ChannelInUse)
    assert "already assigned to the Source-drain channel" in str(errors[ChannelRole.GATE])


def test_single_channel_instrument_serves_one_role(store):
    smu = FakeSMU("single")
    reg = ChannelRegistry([smu, None, None, None], store)
    reg.select(ChannelRole.GATE, 0, 1)
    channels, errors = reg.resolve_all([ChannelRole.SOURCE_DRAIN, ChannelRole.GATE])
    assert channels == {ChannelRole.SOURCE_DRAIN: smu}
    assert list(errors) == [ChannelRole.GATE]


def test_real_drivers_report_channel_count(store):
    dual = Keithley2600(demo=True)
    single = Keithley2635A(demo=True)
    reg = ChannelRegistry([dual, single, MockMultiChannelSMU(), None], store)
    assert reg.resolve(ChannelRole.SOURCE_DRAIN, ChannelSelection(0, 1)).prefix == "smub"
    assert reg.resolve(ChannelRole.GATE, ChannelSelection(1, 1)) is single
    assert reg.resolve(ChannelRole.PROBE_A, ChannelSelection(2, 2)).index == 2


def test_store_keys_are_per_role():
    store = MemoryConfigStore()
    reg = ChannelRegistry([None] * 4, store)
    reg.select(ChannelRole.GATE, 2, 1)
    assert store.get_int("channels/gate/instrument") == 2
    assert store.get_int("channels/gate/channel") == 1
    assert not store.has("channels/sd/instrument")
