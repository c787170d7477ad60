"""Incremental decoding of streamed chat responses."""

from .decoder import DecodeStats, StreamDecoder

__all__ = ["DecodeStats", "StreamDecoder"]
