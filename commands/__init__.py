"""Parameter accessors for the RN2483 driver.

Flat get/set commands built on engine.executor's get_parameter and
set_parameter primitives:
- mac: LoRaWAN stack control, addresses, keys, data rate, channels
- radio: Modulation, frequency, power, spreading factor, bandwidth
- system: Sleep, reset, EEPROM, version, supply voltage
"""

from commands import mac, radio, system

__all__ = ["mac", "radio", "system"]
