# -*- coding: utf-8 -*-
"""Tests for the US-100 range finder state machine."""

import warnings
from decimal import Decimal

import pytest
from gpiozero import DigitalInputDevice, DigitalOutputDevice

from picar_base.drivers.board_exceptions import BoardConfigError, DriverInterruptedError, EchoTimeoutError
from picar_base.models.measurement import MeasurementResult, PinEdge, RangeState, distance_cm_from_ns
from picar_base.sensors.us100_sensor import CallbackSink, US100Sensor


TRIG = 23
ECHO = 24


@pytest.fixture
def results():
    return []


@pytest.fixture
def sensor(pin_factory, clock, results):
    trigger = DigitalOutputDevice(TRIG, pin_factory=pin_factory)
    echo = DigitalInputDevice(ECHO, pull_up=None, active_state=True, pin_factory=pin_factory)
    us = US100Sensor(trigger, echo, sink=CallbackSink(results.append), clock=clock, echo_busy_timeout_ms=5)
    yield us
    us.detach()
    trigger.close()
    echo.close()


class TestConversions:
    def test_one_centimetre(self):
        result = MeasurementResult.from_edges(1_000_000, 1_058_000)
        assert result.distance_cm == Decimal("1.0")
        assert result.elapsed_ms == Decimal("0.1")
        assert result.timestamp_ns == 1_058_000

    def test_half_up_rounding(self):
        # 0.050014 cm rounds up, 0.0493 cm rounds down
        assert distance_cm_from_ns(2_942) == Decimal("0.1")
        assert distance_cm_from_ns(2_900) == Decimal("0.0")

    def test_falling_before_rising_gives_zero(self):
        result = MeasurementResult.from_edges(2_000, 1_000)
        assert result.distance_cm == Decimal("0.0")


class TestStateMachine:
    def test_initial_state(self, sensor):
        assert sensor.state is RangeState.NEUTRAL
        assert sensor.last_result is None
        assert sensor.distance_cm == Decimal("0.0")

    def test_trigger_pulse(self, sensor, clock):
        sensor.start_measuring()
        assert sensor.state is RangeState.STARTED
        assert clock.sleeps == [2, 2, 10]
        trigger, _ = sensor.gpio_devices()
        assert trigger.value == 0

    def test_full_cycle_publishes_once(self, sensor, results):
        sensor.start_measuring()
        assert sensor.handle_edge(PinEdge.RISING, 1_000_000) is None
        assert sensor.state is RangeState.RISING
        result = sensor.handle_edge(PinEdge.FALLING, 1_058_000)

        assert sensor.state is RangeState.FALLING
        assert result.distance_cm == Decimal("1.0")
        assert sensor.distance_cm == Decimal("1.0")
        assert sensor.elapsed_ms == Decimal("0.1")
        assert results == [result]

    def test_edges_out_of_sequence_are_ignored(self, sensor, results):
        assert sensor.handle_edge(PinEdge.RISING, 10) is None
        assert sensor.state is RangeState.NEUTRAL

        sensor.start_measuring()
        assert sensor.handle_edge(PinEdge.FALLING, 20) is None
        assert sensor.state is RangeState.STARTED

        sensor.handle_edge(PinEdge.RISING, 100)
        sensor.handle_edge(PinEdge.RISING, 500)
        result = sensor.handle_edge(PinEdge.FALLING, 58_100)
        assert result.elapsed_ms == Decimal("0.1")

        assert sensor.handle_edge(PinEdge.FALLING, 90_000) is None
        assert len(results) == 1

    def test_restart_discards_partial_measurement(self, sensor, results):
        sensor.start_measuring()
        sensor.handle_edge(PinEdge.RISING, 1_000)
        sensor.start_measuring()
        assert sensor.state is RangeState.STARTED
        assert sensor.handle_edge(PinEdge.FALLING, 2_000) is None
        assert results == []

    def test_echo_pin_edges_drive_the_state_machine(self, sensor, pin_factory, clock, results):
        sensor.start_measuring()
        pin = pin_factory.pin(ECHO)
        clock.now = 5_000_000
        pin.drive_high()
        clock.now = 5_580_000
        pin.drive_low()

        assert len(results) == 1
        assert results[0].distance_cm == Decimal("9.9")
        assert results[0].timestamp_ns == 5_580_000


class TestFailures:
    def test_devices_required(self):
        with pytest.raises(BoardConfigError):
            US100Sensor(None, None)

    def test_echo_stuck_high_times_out(self, sensor, pin_factory, clock):
        pin_factory.pin(ECHO).drive_high()
        with pytest.raises(EchoTimeoutError):
            sensor.start_measuring()
        assert clock.sleeps == [1, 1, 1, 1, 1]
        assert sensor.state is RangeState.NEUTRAL

    def test_interrupted_sleep_aborts(self, sensor, clock):
        clock.interrupted = True
        with pytest.raises(DriverInterruptedError):
            sensor.start_measuring()

    def test_interrupted_pulse_releases_trigger(self, sensor, clock, results):
        clock.interrupt_after(1)
        with pytest.raises(DriverInterruptedError):
            sensor.start_measuring()
        trigger, _ = sensor.gpio_devices()
        assert trigger.value == 0
        assert sensor.state is RangeState.NEUTRAL
        assert sensor.handle_edge(PinEdge.RISING, 100) is None
        assert sensor.state is RangeState.NEUTRAL

        sensor.start_measuring()
        sensor.handle_edge(PinEdge.RISING, 1_000)
        assert sensor.handle_edge(PinEdge.FALLING, 59_000) is not None
        assert len(results) == 1

    def test_sink_failure_propagates_after_result_is_stored(self, sensor):
        def boom(result):
            raise RuntimeError("sink down")

        sensor.sink = CallbackSink(boom)
        sensor.start_measuring()
        sensor.handle_edge(PinEdge.RISING, 0)
        with pytest.raises(RuntimeError):
            sensor.handle_edge(PinEdge.FALLING, 58_000)
        assert sensor.distance_cm == Decimal("1.0")

    def test_no_sink(self, sensor):
        sensor.sink = None
        sensor.start_measuring()
        sensor.handle_edge(PinEdge.RISING, 0)
        assert sensor.handle_edge(PinEdge.FALLING, 58_000) is not None

    def test_detach_stops_edge_delivery(self, sensor, pin_factory, results):
        sensor.start_measuring()
        sensor.detach()
        pin = pin_factory.pin(ECHO)
        pin.drive_high()
        pin.drive_low()
        assert results == []
        assert sensor.state is RangeState.STARTED

    def test_detach_twice_is_quiet(self, sensor):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            sensor.detach()
            sensor.detach()
