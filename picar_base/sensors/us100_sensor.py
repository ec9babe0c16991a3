#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
PiCar — picar_base/sensors/us100_sensor.py
------------------------------------------
US-100 ultrasonic range finder in pulse-width mode.

Wiring
- trigger: gpiozero DigitalOutputDevice (Trig/Tx pin), owned by the application
- echo:    gpiozero DigitalInputDevice (Echo/Rx pin), owned by the application

State machine (edges arrive from gpiozero's callback thread)

    NEUTRAL --start_measuring()--> STARTED
    STARTED --rising edge-------> RISING   (t_rising)
    RISING  --falling edge------> FALLING  (t_falling, publish result)
    any     --start_measuring()--> STARTED

Edges in any other state are ignored.

Shared fields crossing the callback / application thread boundary:
`_state`, `_rising_ns`, `_falling_ns`, `_last_result`. The result is a frozen
dataclass published with one attribute assignment, so readers see either the
previous or the new measurement.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Optional, Protocol, Tuple

from gpiozero import DigitalInputDevice, DigitalOutputDevice
from gpiozero.exc import CallbackSetToNone, GPIOZeroError

from ..drivers.board_exceptions import (
    BoardConfigError,
    BoardErrorContext,
    BoardException,
    EchoTimeoutError,
    wrap_gpio_error,
)
from ..models.measurement import MeasurementResult, PinEdge, RangeState
from ..utils.logging import LoggerAdapter, RateLimitedLogger, format_kv, get_logger_adapter, log_exception
from ..utils.timing import Clock, default_clock, elapsed_ns


# =============================================================================
# Result sink
# =============================================================================
class MeasurementSink(Protocol):
    """Receives one immutable result per completed measurement."""

    def publish(self, result: MeasurementResult) -> None:
        ...


@dataclass(frozen=True)
class CallbackSink:
    """Adapt a plain callable to MeasurementSink."""
    callback: Callable[[MeasurementResult], Any]

    def publish(self, result: MeasurementResult) -> None:
        self.callback(result)


# =============================================================================
# Sensor
# =============================================================================
class US100Sensor:
    """
    Typical usage:
        trig = DigitalOutputDevice(23)
        echo = DigitalInputDevice(24)
        us = US100Sensor(trig, echo, sink=CallbackSink(print))
        us.start_measuring()
        ...
        print(us.distance_cm)
    """

    TRIGGER_LOW_MS = 2
    TRIGGER_HIGH_MS = 2
    SETTLE_MS = 10
    ECHO_POLL_MS = 1
    DEFAULT_ECHO_BUSY_TIMEOUT_MS = 1000

    def __init__(
        self,
        trigger: DigitalOutputDevice,
        echo: DigitalInputDevice,
        *,
        sink: Optional[MeasurementSink] = None,
        clock: Optional[Clock] = None,
        echo_busy_timeout_ms: int = DEFAULT_ECHO_BUSY_TIMEOUT_MS,
        logger: Any = None,
    ) -> None:
        if trigger is None or echo is None:
            raise BoardConfigError("US100: trigger and echo devices are required")
        if int(echo_busy_timeout_ms) < 0:
            raise BoardConfigError(f"US100: echo_busy_timeout_ms must be >= 0 (got {echo_busy_timeout_ms})")

        self._trigger = trigger
        self._echo = echo
        self._sink = sink
        self._clock: Clock = clock if clock is not None else default_clock()
        self._echo_busy_timeout_ms = int(echo_busy_timeout_ms)
        self.log: LoggerAdapter = get_logger_adapter(logger, name="picar_base.us100")
        self._rl = RateLimitedLogger(self.log, period_s=1.0)

        self._state = RangeState.NEUTRAL
        self._rising_ns = 0
        self._falling_ns = 0
        self._last_result: Optional[MeasurementResult] = None

        self._echo.when_activated = self._on_rising
        self._echo.when_deactivated = self._on_falling
        self.log.info(
            "US100 created "
            + format_kv(echo_busy_timeout_ms=self._echo_busy_timeout_ms, sink=type(sink).__name__)
        )

    # -------------------------------------------------------------------------
    # Getters
    # -------------------------------------------------------------------------
    @property
    def state(self) -> RangeState:
        return self._state

    @property
    def last_result(self) -> Optional[MeasurementResult]:
        return self._last_result

    @property
    def distance_cm(self) -> Decimal:
        result = self._last_result
        return result.distance_cm if result is not None else Decimal("0.0")

    @property
    def elapsed_ms(self) -> Decimal:
        result = self._last_result
        return result.elapsed_ms if result is not None else Decimal("0.0")

    def gpio_devices(self) -> Tuple[DigitalOutputDevice, DigitalInputDevice]:
        return (self._trigger, self._echo)

    @property
    def sink(self) -> Optional[MeasurementSink]:
        return self._sink

    @sink.setter
    def sink(self, sink: Optional[MeasurementSink]) -> None:
        self._sink = sink

    # -------------------------------------------------------------------------
    # Measurement
    # -------------------------------------------------------------------------
    def _wait_echo_idle(self) -> None:
        start_ns = self._clock.now_ns()
        while self._echo.is_active:
            waited_ms = elapsed_ns(start_ns, self._clock.now_ns()) // 1_000_000
            if waited_ms >= self._echo_busy_timeout_ms:
                err = EchoTimeoutError(
                    f"US100: echo still high after {waited_ms} ms",
                    context=BoardErrorContext(
                        driver="US100",
                        operation="start_measuring",
                        pin="echo",
                        value=waited_ms,
                    ),
                )
                self.log.error(str(err))
                raise err
            self._clock.sleep_ms(self.ECHO_POLL_MS)

    def _set_trigger(self, high: bool) -> None:
        try:
            if high:
                self._trigger.on()
            else:
                self._trigger.off()
        except GPIOZeroError as e:
            err = wrap_gpio_error(
                e,
                message=f"US100: failed to drive trigger {'HIGH' if high else 'LOW'}",
                driver="US100",
                operation="trigger",
                pin="trigger",
                value=int(high),
            )
            self.log.error(str(err))
            raise err from e

    def start_measuring(self) -> None:
        """
        Arm the state machine and fire one trigger pulse.

        If the pulse is cut short, the trigger is driven LOW again and the
        state returns to NEUTRAL before the error propagates.

        Raises:
            EchoTimeoutError: echo line stayed high past echo_busy_timeout_ms
            DriverInterruptedError: a clock sleep was interrupted
            GpioError
        """
        self._wait_echo_idle()

        self._rising_ns = 0
        self._falling_ns = 0
        self._state = RangeState.STARTED

        try:
            self._set_trigger(False)
            self._clock.sleep_ms(self.TRIGGER_LOW_MS)
            self._set_trigger(True)
            self._clock.sleep_ms(self.TRIGGER_HIGH_MS)
        except BoardException as e:
            self._state = RangeState.NEUTRAL
            log_exception(self.log, e, message="trigger pulse aborted", component="us100")
            raise
        finally:
            self._set_trigger(False)
        self._clock.sleep_ms(self.SETTLE_MS)

    # -------------------------------------------------------------------------
    # Edge handling
    # -------------------------------------------------------------------------
    def _on_rising(self) -> None:
        self.handle_edge(PinEdge.RISING, self._clock.now_ns())

    def _on_falling(self) -> None:
        self.handle_edge(PinEdge.FALLING, self._clock.now_ns())

    def handle_edge(self, edge: PinEdge, now_ns: int) -> Optional[MeasurementResult]:
        """
        Advance the state machine for one echo edge observed at `now_ns`.

        Returns the published result on a RISING -> FALLING transition,
        None otherwise.
        """
        if edge is PinEdge.RISING:
            if self._state is RangeState.STARTED:
                self._rising_ns = int(now_ns)
                self._falling_ns = 0
                self._state = RangeState.RISING
                return None
        elif edge is PinEdge.FALLING:
            if self._state is RangeState.RISING:
                self._falling_ns = int(now_ns)
                result = MeasurementResult.from_edges(self._rising_ns, self._falling_ns)
                self._last_result = result
                self._state = RangeState.FALLING
                if self.log.is_enabled_for_debug():
                    self.log.debug(
                        "measurement "
                        + format_kv(elapsed_ms=result.elapsed_ms, distance_cm=result.distance_cm)
                    )
                self._publish(result)
                return result

        self._rl.debug(f"ignored_{edge.value}", f"US100: {edge.value} edge ignored in state {self._state.value}")
        return None

    def _publish(self, result: MeasurementResult) -> None:
        sink = self._sink
        if sink is None:
            return
        try:
            sink.publish(result)
        except Exception as e:
            log_exception(self.log, e, message="measurement sink failed", component="us100")
            raise

    # -------------------------------------------------------------------------
    # Teardown
    # -------------------------------------------------------------------------
    def detach(self) -> None:
        """
        Remove the edge callbacks; pending measurements never complete.

        Safe to call more than once. The gpiozero devices stay open; close
        them (or PiCarBoard.close()) to release the pins.
        """
        with warnings.catch_warnings():
            # gpiozero warns when a callback that is already None is set to None
            warnings.simplefilter("ignore", CallbackSetToNone)
            self._echo.when_activated = None
            self._echo.when_deactivated = None
        self.log.debug("detached from echo line")

    def __repr__(self) -> str:
        return f"US100Sensor(state={self._state.value}, last_result={self._last_result})"


__all__ = [
    "MeasurementSink",
    "CallbackSink",
    "US100Sensor",
]
