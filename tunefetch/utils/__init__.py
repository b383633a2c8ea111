"""
Utility functions for tunefetch.

    - Duration display codec ("minutes:seconds" <-> seconds)

Usage:
    from tunefetch.utils import encode_duration, decode_duration
"""

from tunefetch.utils.duration import decode_duration, encode_duration

__all__ = [
    "encode_duration",
    "decode_duration",
]
