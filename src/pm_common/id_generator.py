"""Snowflake-style ID generator for market, answer and order IDs.

Generates monotonically increasing, unique string IDs with a readable
prefix ("mkt_", "ans_", "ord_"). Single-process only.
"""

import threading
import time


class SnowflakeIdGenerator:
    """Layout (64 bits): 41 bits ms timestamp, 10 bits machine, 12 bits sequence."""

    _EPOCH_MS = 1_735_689_600_000  # 2025-01-01
    _MACHINE_BITS = 10
    _SEQUENCE_BITS = 12
    _MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1

    def __init__(self, machine_id: int = 0) -> None:
        if not (0 <= machine_id < (1 << self._MACHINE_BITS)):
            raise ValueError(f"machine_id must be 0-{(1 << self._MACHINE_BITS) - 1}")
        self._machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def next_int(self) -> int:
        with self._lock:
            now_ms = int(time.time() * 1000)
            if now_ms <= self._last_ms:
                # Same millisecond (or clock went backwards): stay on the last
                # timestamp and advance the sequence, borrowing the next ms on overflow.
                now_ms = self._last_ms
                self._sequence = (self._sequence + 1) & self._MAX_SEQUENCE
                if self._sequence == 0:
                    now_ms += 1
            else:
                self._sequence = 0
            self._last_ms = now_ms
            return (
                ((now_ms - self._EPOCH_MS) << (self._MACHINE_BITS + self._SEQUENCE_BITS))
                | (self._machine_id << self._SEQUENCE_BITS)
                | self._sequence
            )


_default_generator = SnowflakeIdGenerator()


def generate_id(prefix: str = "") -> str:
    """Generate a unique ID, e.g. generate_id("mkt") -> 'mkt_1234567890123'."""
    value = str(_default_generator.next_int())
    return f"{prefix}_{value}" if prefix else value
