#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/drivers/pca9685_driver.py
--------------------------------------------
Low-level PCA9685 16-channel 12-bit PWM controller.

Purpose
- Soft reset / wake sequence and PWM frequency (prescale) programming
- Per-channel and all-channel on/off tick registers
- Hand out thin channel views (plain / motor / servo) by integer index

Ownership
- The I2C bus handle is borrowed; one controller per physical chip address is
  a wiring-time rule of the application, not enforced here.
- Every delay goes through the injected clock (`utils.timing.Clock`).

Register map
- MODE1 0x00, MODE2 0x01, SUBADR1..3 0x02..0x04, ALLCALLADR 0x05
- LEDn_ON_L/ON_H/OFF_L/OFF_H at 4*n + 6 .. 4*n + 9
- ALL_LED_ON_L .. ALL_LED_OFF_H at 0xFA .. 0xFD
- PRE_SCALE 0xFE (writable only while MODE1.SLEEP = 1)
"""

from __future__ import annotations

import math
from typing import Any, Optional, Tuple

from ..utils.logging import format_kv
from ..utils.timing import Clock, default_clock
from .board_exceptions import (
    BoardErrorContext,
    BoardException,
    PCA9685ChannelError,
    PCA9685DutyCycleError,
    PCA9685FrequencyError,
    PCA9685InitError,
)
from .i2c_device import I2CDevice
from .pwm_views import MotorView, PwmChannel, ServoCalibration, ServoView


PCA9685_DEFAULT_ADDRESS = 0x40


class PCA9685Driver:
    """
    PCA9685 PWM controller.

    Typical usage:
        pwm = PCA9685Driver(bus, address=0x40)
        pwm.initialize()
        pwm.set_frequency(50)
        pwm.set_channel(0, 0, 2047)
        steering = pwm.servo(15)
        steering.set_position(0)

    Notes
    - Ticks are 12-bit counts: 0..4095, written low byte first
    - set_channel() rejects out-of-range values; views clamp before calling it
    """

    # -----------------------------
    # Registers
    # -----------------------------
    MODE1 = 0x00
    MODE2 = 0x01
    SUBADR1 = 0x02
    SUBADR2 = 0x03
    SUBADR3 = 0x04
    ALLCALLADR = 0x05
    LED0_ON_L = 0x06
    ALL_LED_ON_L = 0xFA
    ALL_LED_ON_H = 0xFB
    ALL_LED_OFF_L = 0xFC
    ALL_LED_OFF_H = 0xFD
    PRESCALE = 0xFE

    # -----------------------------
    # Bits / commands
    # -----------------------------
    RESTART = 0x80
    SLEEP = 0x10
    ALLCALL = 0x01
    OUTDRV = 0x04
    SWRST = 0x06

    # -----------------------------
    # Constants
    # -----------------------------
    OSC_HZ = 25_000_000.0
    RESOLUTION = 4096
    NUMBER_CHANNELS = 16
    PWM_MAX = 4095
    PRESCALE_MIN = 3
    PRESCALE_MAX = 255

    RESET_DELAY_MS = 100
    PRESCALE_DELAY_MS = 5

    def __init__(
        self,
        bus: Any,
        address: int = PCA9685_DEFAULT_ADDRESS,
        *,
        clock: Optional[Clock] = None,
        bus_number: Optional[int] = None,
        logger: Any = None,
    ) -> None:
        """
        Args:
            bus: smbus2.SMBus-compatible handle (borrowed)
            address: chip address (default 0x40)
            clock: delay/time source, defaults to the process SystemClock
            bus_number: only used in diagnostics
            logger: logger-like object or None

        Raises:
            BoardConfigError: invalid bus handle or address
        """
        self._device = I2CDevice(bus, address, name="PCA9685", bus_number=bus_number, logger=logger)
        self._clock: Clock = clock if clock is not None else default_clock()
        self._initialized = False
        self._frequency_hz: Optional[float] = None
        self._prescale: Optional[int] = None
        self.log = self._device.log
        self.log.info("PCA9685 created " + format_kv(addr=f"0x{self.address:02X}", bus=bus_number))

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------
    @property
    def address(self) -> int:
        return self._device.address

    @property
    def device(self) -> I2CDevice:
        return self._device

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def frequency(self) -> Optional[float]:
        """Last frequency passed to set_frequency(), if any."""
        return self._frequency_hz

    @property
    def effective_frequency_hz(self) -> Optional[float]:
        """Frequency the chip actually runs at for the programmed prescale."""
        if self._prescale is None:
            return None
        return self.OSC_HZ / (self.RESOLUTION * (self._prescale + 1))

    @property
    def resolution(self) -> int:
        return self.RESOLUTION

    @property
    def number_channels(self) -> int:
        return self.NUMBER_CHANNELS

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------
    def _ctx(self, operation: str, **kwargs: Any) -> BoardErrorContext:
        return BoardErrorContext(driver="PCA9685", operation=operation, address=self.address, **kwargs)

    def _ensure_initialized(self, operation: str) -> None:
        if not self._initialized:
            raise PCA9685InitError(
                "PCA9685 used before initialize()",
                context=self._ctx(operation),
            )

    def _validate_channel(self, channel: int, operation: str) -> int:
        ch = int(channel)
        if not (0 <= ch < self.NUMBER_CHANNELS):
            raise PCA9685ChannelError(
                f"Invalid channel {channel}; expected 0..{self.NUMBER_CHANNELS - 1}",
                context=self._ctx(operation, channel=ch),
            )
        return ch

    def _validate_tick(self, value: int, name: str, operation: str, channel: Optional[int] = None) -> int:
        v = int(value)
        if not (0 <= v <= self.PWM_MAX):
            raise PCA9685DutyCycleError(
                f"Invalid {name}={value}; expected 0..{self.PWM_MAX}",
                context=self._ctx(operation, channel=channel, value=v),
            )
        return v

    def _write_ticks(self, base: int, on: int, off: int) -> None:
        # ON_L, ON_H, OFF_L, OFF_H; the chip latches on the high bytes.
        self._device.write(base + 0, on & 0xFF)
        self._device.write(base + 1, (on >> 8) & 0x0F)
        self._device.write(base + 2, off & 0xFF)
        self._device.write(base + 3, (off >> 8) & 0x0F)

    @staticmethod
    def channel_base(channel: int) -> int:
        """First register (LEDn_ON_L) of `channel`."""
        return PCA9685Driver.LED0_ON_L + 4 * int(channel)

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------
    def initialize(self, force: bool = False) -> None:
        """
        Soft reset, all channels off, wake the oscillator.

        Sequence:
            MODE1 <- SWRST, ALL_LED_* <- 0, sleep 100 ms,
            MODE1 &= ~SLEEP, sleep 100 ms

        A second call is a no-op unless `force` is set.
        """
        if self._initialized and not force:
            self.log.debug("initialize() skipped, already initialized")
            return

        self._device.write(self.MODE1, self.SWRST)
        self._write_ticks(self.ALL_LED_ON_L, 0, 0)
        self._clock.sleep_ms(self.RESET_DELAY_MS)
        self._device.config_pin(self.MODE1, 0, self.SLEEP)
        self._clock.sleep_ms(self.RESET_DELAY_MS)

        self._initialized = True
        self.log.info("PCA9685 initialized " + format_kv(addr=f"0x{self.address:02X}"))

    @classmethod
    def prescale_for(cls, freq_hz: float) -> int:
        """
        Prescale for `freq_hz`: floor(25 MHz / (4096 * hz) - 0.5), clamped to 3..255.

        >>> PCA9685Driver.prescale_for(50)
        121
        """
        try:
            hz = float(freq_hz)
        except (TypeError, ValueError) as e:
            raise PCA9685FrequencyError(f"Invalid pwm frequency: {freq_hz!r}") from e
        if not math.isfinite(hz) or hz <= 0.0:
            raise PCA9685FrequencyError(f"Invalid pwm frequency: {freq_hz}")

        prescale = int(math.floor(cls.OSC_HZ / (cls.RESOLUTION * hz) - 0.5))
        if prescale < cls.PRESCALE_MIN:
            return cls.PRESCALE_MIN
        if prescale > cls.PRESCALE_MAX:
            return cls.PRESCALE_MAX
        return prescale

    def set_frequency(self, freq_hz: float) -> None:
        """
        Program the PWM frequency.

        PRE_SCALE only accepts writes while SLEEP is set, so:
            sleep -> prescale -> wake -> restart
        with a 5 ms pause after each step.

        Raises:
            PCA9685FrequencyError: freq_hz <= 0 or not a number
            I2CCommunicationError
        """
        prescale = self.prescale_for(freq_hz)

        old_mode = self._device.read(self.MODE1)
        sleep_mode = self._device.set_bit(old_mode, self.SLEEP, 1)
        self.log.debug(
            "set_frequency "
            + format_kv(hz=freq_hz, prescale=prescale, mode1=f"0x{old_mode:02X}")
        )

        self._device.write(self.MODE1, sleep_mode)
        self._clock.sleep_ms(self.PRESCALE_DELAY_MS)
        self._device.write(self.PRESCALE, prescale)
        self._clock.sleep_ms(self.PRESCALE_DELAY_MS)
        wake_mode = self._device.set_bit(sleep_mode, self.SLEEP, 0)
        self._device.write(self.MODE1, wake_mode)
        self._clock.sleep_ms(self.PRESCALE_DELAY_MS)
        self._device.write(self.MODE1, wake_mode | self.RESTART)
        self._clock.sleep_ms(self.PRESCALE_DELAY_MS)

        self._frequency_hz = float(freq_hz)
        self._prescale = prescale

    # -------------------------------------------------------------------------
    # PWM output
    # -------------------------------------------------------------------------
    def set_channel(self, channel: int, on: int, off: int) -> None:
        """
        Set raw on/off ticks for one channel.

        Raises:
            PCA9685InitError: initialize() not called
            PCA9685ChannelError: channel outside 0..15
            PCA9685DutyCycleError: tick outside 0..4095
        """
        self._ensure_initialized("set_channel")
        ch = self._validate_channel(channel, "set_channel")
        on_i = self._validate_tick(on, "on", "set_channel", ch)
        off_i = self._validate_tick(off, "off", "set_channel", ch)
        self._write_ticks(self.channel_base(ch), on_i, off_i)

    def set_all_channels(self, on: int, off: int) -> None:
        """Set the same raw on/off ticks on every channel via ALL_LED."""
        self._ensure_initialized("set_all_channels")
        on_i = self._validate_tick(on, "on", "set_all_channels")
        off_i = self._validate_tick(off, "off", "set_all_channels")
        self._write_ticks(self.ALL_LED_ON_L, on_i, off_i)

    def stop_all_channels(self) -> None:
        self.log.debug("stop_all_channels() -> all ticks 0")
        self.set_all_channels(0, 0)

    # -------------------------------------------------------------------------
    # Read back / diagnostics
    # -------------------------------------------------------------------------
    def read_channel(self, channel: int) -> Tuple[int, int]:
        """Return the (on, off) ticks currently held by `channel`."""
        ch = self._validate_channel(channel, "read_channel")
        base = self.channel_base(ch)
        on_l = self._device.read(base + 0)
        on_h = self._device.read(base + 1)
        off_l = self._device.read(base + 2)
        off_h = self._device.read(base + 3)
        return (((on_h & 0x0F) << 8) | on_l, ((off_h & 0x0F) << 8) | off_l)

    def read_mode1(self) -> int:
        return self._device.read(self.MODE1)

    def read_prescale(self) -> int:
        return self._device.read(self.PRESCALE)

    def ping(self) -> bool:
        """
        Basic connectivity check: True if MODE1 can be read.
        """
        try:
            self.read_mode1()
            return True
        except BoardException:
            return False

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------
    def channel(self, index: int) -> PwmChannel:
        return PwmChannel(self, self._validate_channel(index, "channel"))

    def motor(self, index: int) -> MotorView:
        return MotorView(self, self._validate_channel(index, "motor"))

    def servo(self, index: int, calibration: Optional[ServoCalibration] = None) -> ServoView:
        return ServoView(self, self._validate_channel(index, "servo"), calibration)

    def __repr__(self) -> str:
        return (
            f"PCA9685Driver(address=0x{self.address:02X}, "
            f"initialized={self._initialized}, frequency={self._frequency_hz})"
        )


__all__ = [
    "PCA9685_DEFAULT_ADDRESS",
    "PCA9685Driver",
]
