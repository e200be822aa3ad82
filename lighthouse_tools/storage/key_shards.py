"""Threshold sharding of file keys across the encryption nodes.

A random master key is the constant term of a polynomial over the
BLS12-381 scalar field; each node stores one evaluation. Any THRESHOLD
shards recover the key by Lagrange interpolation at zero.
"""
import secrets
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

FIELD_ORDER = 0x73EDA753299D7D483339D80809A1D80553BDA402FFFE5BFEFFFFFFFF00000001
THRESHOLD = 3
SHARD_COUNT = 5


@dataclass(frozen=True)
class KeyShard:
    key: str
    index: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "index": self.index}

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "KeyShard":
        shard = cls(key=data["key"], index=data["index"])
        # both halves must be hex field elements
        int(shard.key, 16)
        int(shard.index, 16)
        return shard


def _to_hex(value: int) -> str:
    return format(value, "064x")


def _random_element() -> int:
    # zero is reserved for the secret itself
    return secrets.randbelow(FIELD_ORDER - 1) + 1


def _evaluate(coefficients: Sequence[int], x: int) -> int:
    result = 0
    for coefficient in reversed(coefficients):
        result = (result * x + coefficient) % FIELD_ORDER
    return result


def generate(
    threshold: int = THRESHOLD, count: int = SHARD_COUNT
) -> Tuple[str, List[KeyShard]]:
    """Return (master_key_hex, shards)."""
    if threshold < 1 or count < threshold:
        raise ValueError(f"Need 1 <= threshold <= count (got {threshold}, {count})")

    coefficients = [_random_element() for _ in range(threshold)]
    indexes = set()
    while len(indexes) < count:
        indexes.add(_random_element())

    shards = [
        KeyShard(key=_to_hex(_evaluate(coefficients, x)), index=_to_hex(x))
        for x in sorted(indexes)
    ]
    return _to_hex(coefficients[0]), shards


def recover(shards: Sequence[KeyShard]) -> str:
    points = {}
    for shard in shards:
        points[int(shard.index, 16)] = int(shard.key, 16)
    if not points:
        raise ValueError("No key shards to recover from")

    secret = 0
    for xi, yi in points.items():
        numerator, denominator = 1, 1
        for xj in points:
            if xj == xi:
                continue
            numerator = (numerator * -xj) % FIELD_ORDER
            denominator = (denominator * (xi - xj)) % FIELD_ORDER
        lagrange = numerator * pow(denominator, -1, FIELD_ORDER)
        secret = (secret + yi * lagrange) % FIELD_ORDER
    return _to_hex(secret)
