"""Tuya cluster command envelope.

Commands on cluster 0xEF00 prefix the datapoint entries with a 2-byte
big-endian sequence number: ``[seq:2 BE][entries...]``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union

from tuya_dp.core.errors import FrameError


TUYA_CLUSTER_ID = 0xEF00
SEQ_MAX = 0xFFFF


class TuyaCommand(IntEnum):
    """Command ids of the Tuya manufacturer-specific cluster."""

    DATA_REQUEST = 0x00
    DATA_RESPONSE = 0x01
    DATA_REPORT = 0x02
    DATA_QUERY = 0x03
    MCU_VERSION_REQUEST = 0x10
    MCU_VERSION_RESPONSE = 0x11
    TIME_SYNC = 0x24


@dataclass(frozen=True)
class CommandEnvelope:
    seq: int
    payload: bytes


def wrap_command(seq: int, payload: bytes) -> bytes:
    if isinstance(seq, bool) or not isinstance(seq, int) or not (0 <= seq <= SEQ_MAX):
        raise FrameError(f"sequence number must be 0-{SEQ_MAX}, got {seq!r}")
    return seq.to_bytes(2, byteorder="big") + bytes(payload)


def unwrap_command(data: Union[bytes, bytearray, memoryview]) -> Optional[CommandEnvelope]:
    buf = bytes(data)
    if len(buf) < 2:
        return None
    return CommandEnvelope(seq=int.from_bytes(buf[:2], byteorder="big"), payload=buf[2:])
