"""Tests for the Tuya command envelope."""

import pytest

from tuya_dp.core.command import (
    TUYA_CLUSTER_ID,
    CommandEnvelope,
    TuyaCommand,
    unwrap_command,
    wrap_command,
)
from tuya_dp.core.errors import FrameError


class TestCommandEnvelope:
    """Tests for wrapping and unwrapping sequence numbers."""

    def test_wrap_prefixes_sequence(self) -> None:
        """Test that the sequence number is prepended big-endian."""
        assert wrap_command(0x0102, bytes.fromhex("0101000101")) == bytes.fromhex("01020101000101")

    def test_unwrap(self) -> None:
        """Test splitting a command into sequence and payload."""
        envelope = unwrap_command(bytes.fromhex("00070101000100"))

        assert envelope == CommandEnvelope(seq=7, payload=bytes.fromhex("0101000100"))

    def test_unwrap_sequence_only(self) -> None:
        """Test that a bare sequence number yields an empty payload."""
        assert unwrap_command(b"\x00\x01") == CommandEnvelope(seq=1, payload=b"")

    def test_unwrap_too_short(self) -> None:
        """Test that fewer than two bytes cannot be unwrapped."""
        assert unwrap_command(b"") is None
        assert unwrap_command(b"\x01") is None

    @pytest.mark.parametrize("seq", [-1, 0x10000, True])
    def test_wrap_invalid_sequence(self, seq: int) -> None:
        """Test that sequence numbers outside 0-65535 raise FrameError."""
        with pytest.raises(FrameError, match="sequence number"):
            wrap_command(seq, b"")

    def test_command_ids(self) -> None:
        """Test the well-known command ids."""
        assert TUYA_CLUSTER_ID == 0xEF00
        assert TuyaCommand.DATA_REQUEST == 0x00
        assert TuyaCommand.DATA_REPORT == 0x02
        assert TuyaCommand.TIME_SYNC == 0x24
