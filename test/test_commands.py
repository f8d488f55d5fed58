"""Unit tests for the mac, radio and sys parameter accessors."""

import pytest

from commands import mac, radio, system
from commands.values import check_hex, parse_int, parse_on_off, parse_uint
from common.outcome import ProtocolRejection, TransactionTimeout, UnrecognizedResponseError
from common.protocol import Modulation
from engine.executor import Executor


@pytest.mark.unit
class TestValues:
    """Test response value parsing."""

    def test_parse_uint(self) -> None:
        """Test unsigned parsing in decimal and hex."""
        assert parse_uint("4294967245", 32) == 4294967245
        assert parse_uint("FF", 8, base=16) == 255

    @pytest.mark.parametrize("text", ["256", "-1", "+1", "abc", ""])
    def test_parse_uint_rejects(self, text: str) -> None:
        """Test out-of-range, signed and non-numeric values are rejected."""
        with pytest.raises(UnrecognizedResponseError):
            parse_uint(text, 8)

    def test_parse_int(self) -> None:
        """Test signed parsing honours the bit width."""
        assert parse_int("-3", 8) == -3
        assert parse_int("127", 8) == 127
        with pytest.raises(UnrecognizedResponseError):
            parse_int("128", 8)

    def test_parse_on_off(self) -> None:
        """Test on/off parsing is case-sensitive."""
        assert parse_on_off("on") is True
        assert parse_on_off("off") is False
        with pytest.raises(UnrecognizedResponseError):
            parse_on_off("ON")

    def test_check_hex(self) -> None:
        """Test hex arguments are upper-cased and checked for length and digits."""
        assert check_hex("00aabbcc", 8, "address") == "00AABBCC"
        with pytest.raises(ValueError, match="length"):
            check_hex("00AABB", 8, "address")
        with pytest.raises(ValueError, match="hexadecimal"):
            check_hex("00AABBCG", 8, "address")


@pytest.mark.unit
class TestMacStack:
    """Test LoRaWAN stack control."""

    def test_reset(self, executor: Executor, transport) -> None:
        """Test mac reset sends the band and clears the pause window."""
        transport.queue("ok")
        executor.state.pause(1000, 0.0)
        mac.mac_reset(executor, 868)
        assert transport.writes == ["mac reset 868"]
        assert not executor.state.mac_paused

    def test_reset_invalid_band(self, executor: Executor, transport) -> None:
        """Test an unsupported band is rejected before anything is sent."""
        with pytest.raises(ValueError, match="band"):
            mac.mac_reset(executor, 915)
        assert transport.writes == []

    def test_pause(self, executor: Executor, transport, clock) -> None:
        """Test mac pause records the pause window."""
        transport.queue("4294967245")
        assert mac.mac_pause(executor) == 4294967245
        assert executor.state.mac_paused
        assert executor.state.mac_paused_until == pytest.approx(clock.now + 4294967.245)

    def test_pause_refused(self, executor: Executor, transport) -> None:
        """Test a zero pause length leaves the stack unpaused."""
        transport.queue("0")
        assert mac.mac_pause(executor) == 0
        assert not executor.state.mac_paused

    def test_resume(self, executor: Executor, transport) -> None:
        """Test mac resume clears the pause window."""
        transport.queue("4294967245", "ok")
        mac.mac_pause(executor)
        mac.mac_resume(executor)
        assert not executor.state.mac_paused
        assert transport.writes == ["mac pause", "mac resume"]

    def test_save(self, executor: Executor, transport) -> None:
        """Test mac save is sent as-is."""
        transport.queue("ok")
        mac.mac_save(executor)
        assert transport.writes == ["mac save"]


@pytest.mark.unit
class TestMacParameters:
    """Test addresses, keys, data rate and channels."""

    def test_device_address(self, executor: Executor, transport) -> None:
        """Test device address set and get."""
        transport.queue("ok", "0011AABB")
        mac.set_device_address(executor, "0011aabb")
        assert mac.get_device_address(executor) == "0011AABB"
        assert transport.writes == ["mac set devaddr 0011AABB", "mac get devaddr"]

    def test_device_address_invalid(self, executor: Executor, transport) -> None:
        """Test a short device address is rejected before sending."""
        with pytest.raises(ValueError):
            mac.set_device_address(executor, "0011")
        assert transport.writes == []

    def test_euis(self, executor: Executor, transport) -> None:
        """Test device and application EUI set and get."""
        transport.queue("ok", "ok", "0004A30B001A2B3C", "70B3D57ED0000000")
        mac.set_device_eui(executor, "0004A30B001A2B3C")
        mac.set_application_eui(executor, "70B3D57ED0000000")
        assert mac.get_device_eui(executor) == "0004A30B001A2B3C"
        assert mac.get_application_eui(executor) == "70B3D57ED0000000"
        assert transport.writes[:2] == [
            "mac set deveui 0004A30B001A2B3C",
            "mac set appeui 70B3D57ED0000000",
        ]

    def test_keys(self, executor: Executor, transport) -> None:
        """Test the three session and application keys are sent."""
        key = "2B7E151628AED2A6ABF7158809CF4F3C"
        transport.queue("ok", "ok", "ok")
        mac.set_network_session_key(executor, key)
        mac.set_application_session_key(executor, key)
        mac.set_application_key(executor, key)
        assert transport.writes == [
            f"mac set nwkskey {key}",
            f"mac set appskey {key}",
            f"mac set appkey {key}",
        ]

    def test_key_wrong_length(self, executor: Executor) -> None:
        """Test a short key is rejected."""
        with pytest.raises(ValueError):
            mac.set_application_key(executor, "2B7E1516")

    def test_data_rate(self, executor: Executor, transport) -> None:
        """Test data rate set, get and range check."""
        transport.queue("ok", "3")
        mac.set_data_rate(executor, 3)
        assert mac.get_data_rate(executor) == 3
        with pytest.raises(ValueError):
            mac.set_data_rate(executor, 6)

    def test_power_index(self, executor: Executor, transport) -> None:
        """Test power index set and get."""
        transport.queue("ok", "1")
        mac.set_power_index(executor, 1)
        assert mac.get_power_index(executor) == 1
        assert transport.writes[0] == "mac set pwridx 1"

    def test_adr(self, executor: Executor, transport) -> None:
        """Test adaptive data rate set and get."""
        transport.queue("ok", "on")
        mac.set_adr(executor, True)
        assert mac.get_adr(executor) is True
        assert transport.writes[0] == "mac set adr on"

    def test_link_check(self, executor: Executor, transport) -> None:
        """Test the link check interval is sent in seconds."""
        transport.queue("ok")
        mac.set_link_check(executor, 600)
        assert transport.writes == ["mac set linkchk 600"]

    def test_channel_frequency(self, executor: Executor, transport) -> None:
        """Test channel frequency set and get."""
        transport.queue("ok", "867100000")
        mac.set_channel_frequency(executor, 3, 867_100_000)
        assert mac.get_channel_frequency(executor, 3) == 867_100_000
        assert transport.writes == ["mac set ch freq 3 867100000", "mac get ch freq 3"]

    def test_default_channel_frequency_fixed(self, executor: Executor) -> None:
        """Test the default channels' frequency cannot be changed."""
        with pytest.raises(ValueError, match="channel"):
            mac.set_channel_frequency(executor, 0, 868_100_000)

    def test_channel_frequency_out_of_band(self, executor: Executor) -> None:
        """Test a frequency outside the band is rejected."""
        with pytest.raises(ValueError, match="frequency"):
            mac.set_channel_frequency(executor, 3, 915_000_000)

    def test_channel_duty_cycle(self, executor: Executor, transport) -> None:
        """Test duty cycle is converted to and from the module's divider."""
        transport.queue("ok", "99")
        mac.set_channel_duty_cycle(executor, 0, 1.0)
        assert mac.get_channel_duty_cycle(executor, 0) == pytest.approx(1.0)
        assert transport.writes[0] == "mac set ch dcycle 0 99"

    def test_channel_duty_cycle_saturates(self, executor: Executor, transport) -> None:
        """Test a tiny duty cycle saturates the divider at 65535."""
        transport.queue("ok")
        mac.set_channel_duty_cycle(executor, 1, 0.0001)
        assert transport.writes == ["mac set ch dcycle 1 65535"]

    def test_channel_status(self, executor: Executor, transport) -> None:
        """Test channel status set and get."""
        transport.queue("ok", "off")
        mac.set_channel_status(executor, 4, False)
        assert mac.get_channel_status(executor, 4) is False
        assert transport.writes == ["mac set ch status 4 off", "mac get ch status 4"]

    def test_channel_out_of_range(self, executor: Executor) -> None:
        """Test channel ids above 15 are rejected."""
        with pytest.raises(ValueError, match="channel"):
            mac.get_channel_status(executor, 16)

    def test_module_rejects(self, executor: Executor, transport) -> None:
        """Test invalid_param from the module raises ProtocolRejection."""
        transport.queue("invalid_param")
        with pytest.raises(ProtocolRejection):
            mac.set_data_rate(executor, 5)


@pytest.mark.unit
class TestRadioParameters:
    """Test radio settings."""

    def test_modulation(self, executor: Executor, transport) -> None:
        """Test modulation set and get."""
        transport.queue("ok", "fsk")
        radio.set_modulation(executor, "fsk")
        assert radio.get_modulation(executor) == Modulation.FSK
        assert transport.writes[0] == "radio set mod fsk"

    def test_unknown_modulation(self, executor: Executor, transport) -> None:
        """Test an unknown modulation answer raises UnrecognizedResponseError."""
        transport.queue("ook")
        with pytest.raises(UnrecognizedResponseError):
            radio.get_modulation(executor)

    def test_frequency(self, executor: Executor, transport) -> None:
        """Test radio frequency set, get and band check."""
        transport.queue("ok", "433175000")
        radio.set_frequency(executor, 433_175_000)
        assert radio.get_frequency(executor) == 433_175_000
        with pytest.raises(ValueError):
            radio.set_frequency(executor, 900_000_000)

    def test_power(self, executor: Executor, transport) -> None:
        """Test output power set, get and range check."""
        transport.queue("ok", "-3")
        radio.set_power(executor, -3)
        assert radio.get_power(executor) == -3
        with pytest.raises(ValueError):
            radio.set_power(executor, 16)

    def test_spreading_factor(self, executor: Executor, transport) -> None:
        """Test spreading factor is sent and parsed with its sf prefix."""
        transport.queue("ok", "sf9")
        radio.set_spreading_factor(executor, 9)
        assert radio.get_spreading_factor(executor) == 9
        assert transport.writes[0] == "radio set sf sf9"
        with pytest.raises(ValueError):
            radio.set_spreading_factor(executor, 6)

    def test_bandwidth(self, executor: Executor, transport) -> None:
        """Test bandwidth set, get and allowed values."""
        transport.queue("ok", "250")
        radio.set_bandwidth(executor, 250)
        assert radio.get_bandwidth(executor) == 250
        with pytest.raises(ValueError):
            radio.set_bandwidth(executor, 62)

    def test_coding_rate(self, executor: Executor, transport) -> None:
        """Test coding rate is sent and parsed as 4/x."""
        transport.queue("ok", "4/7")
        radio.set_coding_rate(executor, 7)
        assert radio.get_coding_rate(executor) == 7
        assert transport.writes[0] == "radio set cr 4/7"

    def test_unknown_coding_rate(self, executor: Executor, transport) -> None:
        """Test an unknown coding rate answer raises UnrecognizedResponseError."""
        transport.queue("4/9")
        with pytest.raises(UnrecognizedResponseError):
            radio.get_coding_rate(executor)

    def test_watchdog(self, executor: Executor, transport) -> None:
        """Test watchdog timeout set and get."""
        transport.queue("ok", "15000")
        radio.set_watchdog(executor, 15000)
        assert radio.get_watchdog(executor) == 15000

    def test_snr(self, executor: Executor, transport) -> None:
        """Test a negative SNR is parsed."""
        transport.queue("-12")
        assert radio.get_snr(executor) == -12


@pytest.mark.unit
class TestSystem:
    """Test system commands."""

    def test_sleep(self, executor: Executor, transport) -> None:
        """Test sys sleep returns once the module answers ok."""
        transport.queue("ok")
        system.sys_sleep(executor, 1000)
        assert transport.writes == ["sys sleep 1000"]

    def test_sleep_waits_for_wake_up(self, executor: Executor, transport) -> None:
        """Test a late ok from a sleeping module is consumed by sys sleep."""
        transport.queue_silence(3).queue("ok", "3312")
        system.sys_sleep(executor, 5000)
        assert system.voltage(executor) == 3312
        assert transport.writes == ["sys sleep 5000", "sys get vdd"]

    def test_sleep_never_wakes(self, executor: Executor, transport, clock) -> None:
        """Test sys sleep times out after the sleep length plus margin."""
        start = clock.now
        with pytest.raises(TransactionTimeout):
            system.sys_sleep(executor, 1000)
        assert clock.now - start == pytest.approx(1000 / 1000 + system.WAKE_MARGIN_S)

    def test_sleep_rejected(self, executor: Executor, transport) -> None:
        """Test invalid_param in answer to sys sleep raises ProtocolRejection."""
        transport.queue("invalid_param")
        with pytest.raises(ProtocolRejection) as exc_info:
            system.sys_sleep(executor, 1000)
        assert exc_info.value.code == "invalid_param"

    def test_sleep_too_short(self, executor: Executor) -> None:
        """Test sleep lengths under 100ms are rejected."""
        with pytest.raises(ValueError):
            system.sys_sleep(executor, 99)

    def test_reset(self, executor: Executor, transport) -> None:
        """Test sys reset flushes the version banner instead of reading it."""
        transport.queue("RN2483 1.0.5 Oct 31 2018 15:06:52")
        executor.state.pause(1000, 0.0)
        system.sys_reset(executor)
        assert transport.writes == ["sys reset"]
        assert transport.reads == 0
        assert transport.flushes == 1
        assert not executor.state.mac_paused

    def test_nvm(self, executor: Executor, transport) -> None:
        """Test user EEPROM write and read."""
        transport.queue("ok", "A5")
        system.save_byte(executor, 0x300, 0xA5)
        assert system.read_byte(executor, 0x300) == 0xA5
        assert transport.writes == ["sys set nvm 300 A5", "sys get nvm 300"]

    def test_nvm_out_of_range(self, executor: Executor) -> None:
        """Test EEPROM addresses and values outside range are rejected."""
        with pytest.raises(ValueError):
            system.save_byte(executor, 0x2FF, 0)
        with pytest.raises(ValueError):
            system.save_byte(executor, 0x300, 0x100)
        with pytest.raises(ValueError):
            system.read_byte(executor, 0x400)

    def test_version(self, executor: Executor, transport) -> None:
        """Test the version string is returned verbatim."""
        transport.queue("RN2483 1.0.5 Oct 31 2018 15:06:52")
        assert system.version(executor) == "RN2483 1.0.5 Oct 31 2018 15:06:52"

    def test_voltage(self, executor: Executor, transport) -> None:
        """Test supply voltage is parsed in millivolts."""
        transport.queue("3312")
        assert system.voltage(executor) == 3312

    def test_hardware_id(self, executor: Executor, transport) -> None:
        """Test the hardware EUI is returned verbatim."""
        transport.queue("0004A30B001A2B3C")
        assert system.hardware_id(executor) == "0004A30B001A2B3C"
