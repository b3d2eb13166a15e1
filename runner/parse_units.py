import math
import re
from enum import Enum

# Binary and decimal suffixes share the decimal multiplier.
UNIT_MULT = {
    "b": 1,
    "kb": 1000,
    "kib": 1000,
    "mb": 1000**2,
    "mib": 1000**2,
    "gb": 1000**3,
    "gib": 1000**3,
}

SEPARATOR = " / "
PERCENT = "%"

_NOT_ALPHA = re.compile(r"[^A-Za-z]")
_NOT_NUMERIC = re.compile(r"[^0-9.]")

class UnitParseError(ValueError):
    # value: the raw input that failed
    def __init__(self, value: str, reason: str):
        super().__init__(f"{reason}: {value!r}")
        self.value = value
        self.reason = reason

class MalformedCompositeValue(UnitParseError):
    pass

class MalformedNumericValue(UnitParseError):
    pass

class MalformedPercentageValue(UnitParseError):
    pass

class UnknownUnitSuffix(UnitParseError):
    pass

class Side(Enum):
    FIRST = 0
    SECOND = 1

def split_composite(raw: str, side: Side) -> str:
    # "5.828MiB / 7.448GiB" -> "5.828MiB" (FIRST) or "7.448GiB" (SECOND)
    head, sep, tail = raw.partition(SEPARATOR)
    if not sep:
        raise MalformedCompositeValue(raw, "missing ' / ' separator")
    if side is Side.FIRST:
        return head.strip()
    return tail.strip()

def extract_unit_suffix(raw: str) -> str:
    # "5.828MiB" -> "MiB"
    return _NOT_ALPHA.sub("", raw)

def extract_magnitude(raw: str) -> float:
    # "5.828MiB" -> 5.828
    digits = _NOT_NUMERIC.sub("", raw)
    if not digits:
        raise MalformedNumericValue(raw, "no numeric part")
    try:
        val = float(digits)
    except ValueError as e:
        raise MalformedNumericValue(raw, f"invalid number {digits!r}") from e
    if not math.isfinite(val):
        raise MalformedNumericValue(raw, "not a finite number")
    return val

def to_base_unit(raw: str, strict: bool = False) -> int:
    # "36.9kB" -> bytes, truncated; unknown or missing unit -> 0 (or raise if strict)
    magnitude = extract_magnitude(raw)
    suffix = extract_unit_suffix(raw).lower()
    mult = UNIT_MULT.get(suffix)
    if mult is None:
        if strict:
            raise UnknownUnitSuffix(raw, f"unknown unit {suffix!r}")
        return 0
    product = magnitude * mult
    if not math.isfinite(product):
        raise MalformedNumericValue(raw, "not a finite number")
    return int(product)

def percentage_to_number(raw: str) -> float:
    # "0.08%" -> 0.08; values over 100 are valid (multi-core CPU%)
    s = raw.strip()
    if not s.endswith(PERCENT):
        raise MalformedPercentageValue(raw, "missing '%' marker")
    try:
        val = float(s[:-1])
    except ValueError as e:
        raise MalformedPercentageValue(raw, "invalid number") from e
    if not math.isfinite(val):
        raise MalformedPercentageValue(raw, "not a finite number")
    return val

def parse_pair(raw: str, strict: bool = False) -> tuple[int, int]:
    first = to_base_unit(split_composite(raw, Side.FIRST), strict=strict)
    second = to_base_unit(split_composite(raw, Side.SECOND), strict=strict)
    return first, second

def parse_mem_usage(mem_usage_field: str, strict: bool = False) -> tuple[int, int]:
    # "123.4MiB / 512MiB" -> (used_bytes, limit_bytes)
    return parse_pair(mem_usage_field, strict=strict)

def parse_block_io(block_io_field: str, strict: bool = False) -> tuple[int, int]:
    # "1.2MB / 3.4MB" -> (read_bytes, write_bytes)
    return parse_pair(block_io_field, strict=strict)

def parse_net_io(net_io_field: str, strict: bool = False) -> tuple[int, int]:
    # "36.9kB / 12.1kB" -> (rx_bytes, tx_bytes)
    return parse_pair(net_io_field, strict=strict)
