# -*- coding: utf-8 -*-
"""Tests for the TB6612 pair, the Motor Driver HAT and the DRV8830."""

import pytest
from gpiozero import DigitalOutputDevice

from picar_base.drivers.board_exceptions import (
    BoardConfigError,
    BoardValidationError,
    DriverInterruptedError,
    FaultLatchedError,
    I2CCommunicationError,
    MotorBoardError,
)
from picar_base.drivers.drv8830_driver import DRV8830Driver
from picar_base.drivers.motor_driver_hat import MotorDriverHat
from picar_base.drivers.pca9685_driver import PCA9685Driver
from picar_base.drivers.tb6612_motor_driver import TB6612MotorDriver
from picar_base.models.motor_direction import DRV8830Direction, HBridgeState, voltage_setting
from picar_base.models.motor_fault import DRV8830Fault, byte_to_string


PCA = 0x40
DRV = 0x60


def ticks(bus, channel):
    base = 6 + 4 * channel
    r = bus.regs[PCA]
    return ((r[base + 1] << 8) | r[base], (r[base + 3] << 8) | r[base + 2])


@pytest.fixture
def pwm(bus, clock):
    driver = PCA9685Driver(bus, PCA, clock=clock)
    driver.initialize()
    clock.sleeps.clear()
    return driver


# =============================================================================
# TB6612
# =============================================================================
class TestTB6612:
    @pytest.fixture
    def tb(self, pwm, clock, pin_factory):
        ma = DigitalOutputDevice(5, pin_factory=pin_factory)
        mb = DigitalOutputDevice(6, pin_factory=pin_factory)
        driver = TB6612MotorDriver(ma, mb, pwm.motor(0), pwm.motor(1), clock=clock)
        yield driver
        ma.close()
        mb.close()

    def test_requires_pins_and_views(self, pwm):
        with pytest.raises(BoardConfigError):
            TB6612MotorDriver(None, None, pwm.motor(0), pwm.motor(1))

    def test_forward_half_speed(self, tb, bus, clock):
        assert tb.set_pwm(0.5) == 2047
        ma, mb = tb.gpio_pins()
        assert (ma.value, mb.value) == (0, 0)
        assert ticks(bus, 0) == (0, 2047)
        assert ticks(bus, 1) == (0, 2047)
        assert tb.state is HBridgeState.FORWARD
        assert clock.sleeps == [50]

    def test_backward_raises_direction_lines(self, tb, bus):
        assert tb.set_pwm(-0.25) == 1023
        ma, mb = tb.gpio_pins()
        assert (ma.value, mb.value) == (1, 1)
        assert tb.state is HBridgeState.BACKWARD

    def test_speed_saturates(self, tb, bus):
        assert tb.set_pwm(2.0) == 4095
        assert ticks(bus, 1) == (0, 4095)

    def test_stop(self, tb, bus):
        tb.set_pwm(-1.0)
        tb.stop()
        ma, mb = tb.gpio_pins()
        assert (ma.value, mb.value) == (0, 0)
        assert ticks(bus, 0) == (0, 0)
        assert tb.state is HBridgeState.STOP

    def test_reset_then_release(self, tb):
        ma, mb = tb.gpio_pins()
        tb.reset()
        assert (ma.value, mb.value) == (1, 1)
        assert tb.release_level is False
        tb.release()
        assert (ma.value, mb.value) == (0, 0)

    def test_interrupted_settle_keeps_previous_state(self, tb, bus, clock):
        clock.interrupted = True
        with pytest.raises(DriverInterruptedError):
            tb.set_pwm(-0.5)
        ma, mb = tb.gpio_pins()
        assert tb.state is HBridgeState.STOP
        assert (ma.value, mb.value) == (0, 0)
        assert ticks(bus, 0) == (0, 0)

        clock.interrupted = False
        tb.set_pwm(0.5)
        clock.interrupted = True
        with pytest.raises(DriverInterruptedError):
            tb.set_pwm(-1.0)
        assert tb.state is HBridgeState.FORWARD
        assert ticks(bus, 1) == (0, 2047)

    def test_nan_speed_rejected(self, tb, clock):
        with pytest.raises(BoardValidationError):
            tb.set_pwm(float("nan"))
        assert clock.sleeps == []
        assert tb.state is HBridgeState.STOP

    def test_forward_and_stop_share_pin_pattern(self):
        assert HBridgeState.FORWARD.pins == HBridgeState.STOP.pins == (False, False)
        assert HBridgeState.for_speed(0) is HBridgeState.STOP


# =============================================================================
# Motor Driver HAT
# =============================================================================
class TestMotorDriverHat:
    @pytest.fixture
    def hat(self, bus, clock):
        hat = MotorDriverHat(PCA9685Driver(bus, PCA, clock=clock), 100.0)
        hat.initialize()
        return hat

    def test_initialize_programs_frequency(self, hat, bus):
        assert hat.controller.is_initialized
        assert bus.regs[PCA][0xFE] == 60

    def test_motor_a_forward(self, hat, bus):
        assert hat.set_speed_a(0.5) == 2047
        assert ticks(bus, 0) == (0, 2047)
        assert ticks(bus, 1) == (0, 0)
        assert ticks(bus, 2) == (0, 4095)

    def test_motor_b_reverse(self, hat, bus):
        assert hat.set_speed_b(-1.0) == 4095
        assert ticks(bus, 5) == (0, 4095)
        assert ticks(bus, 3) == (0, 4095)
        assert ticks(bus, 4) == (0, 0)

    def test_nan_speed_rejected(self, hat, bus):
        with pytest.raises(BoardValidationError):
            hat.set_speed_a(float("nan"))
        assert ticks(bus, 0) == (0, 0)

    def test_stop_drops_every_channel(self, hat, bus):
        hat.set_speed_a(1.0)
        hat.set_speed_b(-1.0)
        hat.stop()
        for ch in range(6):
            assert ticks(bus, ch) == (0, 0)

    def test_controller_required(self):
        with pytest.raises(BoardConfigError):
            MotorDriverHat(None)


# =============================================================================
# DRV8830
# =============================================================================
class TestDRV8830Control:
    @pytest.mark.parametrize(
        "speed, byte",
        [(25, 0x66), (-200, 0xFD), (3, 0x00), (-5, 0x00), (6, 0x1A), (-6, 0x19), (63, 0xFE), (100, 0xFE)],
    )
    def test_drive_writes_control_byte(self, bus, speed, byte):
        drv = DRV8830Driver(bus, DRV)
        assert drv.drive(speed) == byte
        assert bus.byte_writes(DRV)[-1] == (0x00, byte)

    def test_brake_and_stand_by(self, bus):
        drv = DRV8830Driver(bus, DRV)
        drv.brake()
        assert bus.regs[DRV][0x00] == 0x03
        drv.stand_by()
        assert bus.regs[DRV][0x00] == 0x00

    def test_dead_zone_and_saturation(self):
        assert voltage_setting(5) == 0
        assert voltage_setting(-64) == 63
        assert DRV8830Direction.for_speed(-6) is DRV8830Direction.REVERSE
        assert DRV8830Direction.for_speed(5) is DRV8830Direction.FREEWHEEL

    def test_unusual_address_still_works(self, bus):
        drv = DRV8830Driver(bus, 0x62)
        drv.drive(10)
        assert bus.regs[0x62][0x00] == (10 << 2) | 0b10


class TestDRV8830Fault:
    @pytest.mark.parametrize(
        "bits, fault",
        [
            (0x00, DRV8830Fault.FAULT_FREE),
            (0x01, DRV8830Fault.FAULT),
            (0x03, DRV8830Fault.OCP),
            (0x05, DRV8830Fault.UVLO),
            (0x09, DRV8830Fault.OTS),
            (0x1F, DRV8830Fault.ILIMIT),
            (0x80 | 0x10, DRV8830Fault.ILIMIT),
        ],
    )
    def test_decode_priority(self, bits, fault):
        assert DRV8830Fault.decode(bits) is fault

    def test_unknown_bits_raise(self):
        with pytest.raises(I2CCommunicationError):
            DRV8830Fault.decode(0x40)

    def test_get_fault_clears_latched_bits(self, bus):
        drv = DRV8830Driver(bus, DRV)
        bus.regs[DRV][0x01] = 0x09
        assert drv.get_fault() == 0x09
        assert bus.byte_writes(DRV) == [(0x01, 0x80)]

    def test_get_fault_without_fault_does_not_write(self, bus):
        drv = DRV8830Driver(bus, DRV)
        assert drv.get_fault_reason() is DRV8830Fault.FAULT_FREE
        assert bus.byte_writes(DRV) == []

    def test_check_fault_raises_latched(self, bus):
        drv = DRV8830Driver(bus, DRV)
        bus.regs[DRV][0x01] = 0x03
        with pytest.raises(FaultLatchedError) as info:
            drv.check_fault()
        err = info.value
        assert isinstance(err, MotorBoardError)
        assert err.fault is DRV8830Fault.OCP
        assert err.bits == 0x03
        assert err.context.value == "00000011"

    def test_check_fault_clean(self, bus):
        assert DRV8830Driver(bus, DRV).check_fault() is DRV8830Fault.FAULT_FREE

    def test_reset_fault(self, bus):
        DRV8830Driver(bus, DRV).reset_fault()
        assert bus.byte_writes(DRV) == [(0x01, 0x80)]

    def test_byte_to_string(self):
        assert byte_to_string(0x66) == "01100110"
        assert byte_to_string(0x1FD) == "11111101"
