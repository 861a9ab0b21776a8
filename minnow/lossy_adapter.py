"""A datagram adapter wrapper that drops reads and writes at random."""

from __future__ import annotations

import os
import random
from typing import Any, Optional

from minnow.tcp_config import FdAdapterConfig
from minnow.tcp_segment import TCPMessage


def get_random_engine() -> random.Random:
    """A pseudo-random generator seeded from the operating system's entropy."""
    return random.Random(int.from_bytes(os.urandom(4096), "big"))


class LossyFdAdapter:
    """Passes reads and writes to an adapter, dropping each with the configured loss rate.

    Loss rates are out of 65536: a message is dropped when a random 16-bit
    value is below the rate.
    """

    def __init__(self, adapter: Any, rng: Optional[random.Random] = None) -> None:
        self._adapter = adapter
        self._rng = rng if rng is not None else get_random_engine()

    def _should_drop(self, uplink: bool) -> bool:
        cfg = self._adapter.config
        loss = cfg.loss_rate_up if uplink else cfg.loss_rate_dn
        return loss != 0 and self._rng.getrandbits(16) < loss

    def fd(self) -> Any:
        """The underlying adapter's descriptor."""
        return self._adapter.fd()

    def read(self) -> Optional[TCPMessage]:
        """Read from the adapter; None if nothing was read or the message was dropped."""
        message = self._adapter.read()
        if self._should_drop(False):
            return None
        return message

    def write(self, msg: TCPMessage) -> None:
        """Write through the adapter unless the message is dropped."""
        if self._should_drop(True):
            return
        self._adapter.write(msg)

    def set_listening(self, listening: bool) -> None:
        self._adapter.listening = listening

    @property
    def listening(self) -> bool:
        return self._adapter.listening

    @property
    def config(self) -> FdAdapterConfig:
        """The underlying adapter's configuration."""
        return self._adapter.config

    @config.setter
    def config(self, value: FdAdapterConfig) -> None:
        self._adapter.config = value

    def tick(self, ms_since_last_tick: int) -> None:
        self._adapter.tick(ms_since_last_tick)