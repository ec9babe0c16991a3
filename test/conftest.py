# -*- coding: utf-8 -*-
"""
Shared fixtures: an in-memory SMBus, a deterministic clock and a gpiozero
mock pin factory.
"""

import ctypes
from collections import defaultdict

import pytest
from gpiozero.pins.mock import MockFactory

from picar_base.drivers.board_exceptions import DriverInterruptedError


I2C_M_RD = 0x0001


class FakeSMBus:
    """
    smbus2.SMBus stand-in holding one register file per address.

    - byte registers live in `regs[addr][reg]`
    - multi-byte registers written with write_i2c_block_data live in
      `blocks[(addr, reg)]` and are returned by read_i2c_block_data
    - raw transactions use `raw_replies[addr]` / `raw_writes`
    - every write is appended to `log`
    """

    def __init__(self):
        self.regs = defaultdict(lambda: defaultdict(int))
        self.blocks = {}
        self.raw_replies = {}
        self.raw_writes = []
        self.log = []
        self.fail_addresses = set()
        self.closed = False

    def _check(self, addr):
        if addr in self.fail_addresses:
            raise OSError(121, "Remote I/O error")

    # byte registers
    def read_byte_data(self, addr, reg):
        self._check(addr)
        return self.regs[addr][reg]

    def write_byte_data(self, addr, reg, val):
        self._check(addr)
        self.regs[addr][reg] = val
        self.log.append(("byte", addr, reg, val))

    # block registers
    def read_i2c_block_data(self, addr, reg, length):
        self._check(addr)
        if (addr, reg) in self.blocks:
            return list(self.blocks[(addr, reg)][:length])
        return [self.regs[addr][reg + i] for i in range(length)]

    def write_i2c_block_data(self, addr, reg, data):
        self._check(addr)
        self.blocks[(addr, reg)] = list(data)
        self.log.append(("block", addr, reg, list(data)))

    # raw transactions
    def i2c_rdwr(self, *msgs):
        for msg in msgs:
            self._check(msg.addr)
            if msg.flags & I2C_M_RD:
                payload = bytes(self.raw_replies.get(msg.addr, b""))[: msg.len]
                payload = payload + bytes(msg.len - len(payload))
                ctypes.memmove(msg.buf, payload, msg.len)
            else:
                data = bytes(list(msg))
                self.raw_writes.append((msg.addr, data))
                self.log.append(("raw", msg.addr, None, data))

    def close(self):
        self.closed = True

    # helpers for assertions
    def byte_writes(self, addr):
        return [(reg, val) for kind, a, reg, val in self.log if kind == "byte" and a == addr]

    def block_writes(self, addr):
        return [(reg, val) for kind, a, reg, val in self.log if kind == "block" and a == addr]


class FakeClock:
    """
    Clock whose sleeps are recorded and advance `now` instantly.

    `interrupted` makes every sleep raise; `interrupt_after(n)` lets n more
    sleeps through and makes the next one raise.
    """

    def __init__(self, start_ns=0):
        self.now = int(start_ns)
        self.sleeps = []
        self.interrupted = False
        self.interrupt_at = None
        self._calls = 0

    def now_ns(self):
        return self.now

    def sleep_ms(self, ms):
        call = self._calls
        self._calls += 1
        if self.interrupted or call == self.interrupt_at:
            raise DriverInterruptedError(f"sleep of {ms} ms interrupted")
        self.sleeps.append(ms)
        self.now += int(ms * 1_000_000)

    def interrupt_after(self, n):
        self.interrupt_at = self._calls + int(n)


@pytest.fixture
def bus():
    return FakeSMBus()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def pin_factory():
    factory = MockFactory()
    yield factory
    factory.reset()
