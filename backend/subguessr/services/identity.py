from __future__ import annotations
import string

_DIGITS = string.digits + string.ascii_lowercase


def to_base36(n: int) -> str:
    if n == 0:
        return "0"
    out = []
    while n:
        n, rem = divmod(n, 36)
        out.append(_DIGITS[rem])
    return "".join(reversed(out))


def identity_of(image_url: str, answer: str) -> str:
    """
    Content identity of a challenge: a 32-bit rolling hash (h*31 + c over UTF-16
    code units) of "<image_url>_<answer>", made positive and rendered in base 36.

    Stable across processes and posts. Not collision-free: two different
    challenges may share an identity (roughly 1 in 2**31 per pair), in which case
    they share guess records and statistics. That risk is accepted.
    """
    combined = f"{image_url}_{answer}".encode("utf-16-le")
    h = 0
    for i in range(0, len(combined), 2):
        unit = combined[i] | (combined[i + 1] << 8)
        h = ((h << 5) - h + unit) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return to_base36(abs(h))
