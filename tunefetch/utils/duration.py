"""
Conversion between a duration in seconds and its compact display string.

The display format is "<minutes>:<seconds>" without zero padding on either
side, e.g. 271 seconds -> "4:31" and 65 seconds -> "1:5". Hours are not
split out: 3661 seconds -> "61:1".

Decoding is deliberately lenient. Display strings are always produced by
encode_duration(), so decode_duration() only meets hand-written input; an
unparseable component counts as 0 instead of raising.
"""


def encode_duration(seconds: int) -> str:
    """
    Format a number of seconds as "<minutes>:<seconds>".

    Args:
        seconds: Non-negative duration in seconds. Negative values are
                 clamped to 0.

    Returns:
        Display string with no zero padding.

    Examples:
        encode_duration(271)  # "4:31"
        encode_duration(60)   # "1:0"
        encode_duration(0)    # "0:0"
    """
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60}"


def decode_duration(text: str) -> int:
    """
    Parse a "<minutes>:<seconds>" string back into seconds.

    The string is split on the first ':'. Each side is stripped and parsed
    as an unsigned integer; a side that fails to parse counts as 0. A string
    without ':' yields 0. Never raises.

    Examples:
        decode_duration("4:31")    # 271
        decode_duration("abc:12")  # 12
        decode_duration("3:xyz")   # 180
        decode_duration("bad")     # 0
    """
    minutes, separator, seconds = text.partition(":")
    if not separator:
        return 0
    return 60 * _parse_component(minutes) + _parse_component(seconds)


def _parse_component(text: str) -> int:
    text = text.strip()
    if not text.isdecimal():
        return 0
    return int(text)
