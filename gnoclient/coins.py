"""Coin and coin-set parsing for fees, transfers and deposits."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Iterator

MAX_AMOUNT = 2**63 - 1

_DENOM_PATTERN = r"[a-z/][a-z0-9_.:/]{2,}"
_COIN_RE = re.compile(rf"^([0-9]+)\s*({_DENOM_PATTERN})$")
_DENOM_RE = re.compile(rf"^{_DENOM_PATTERN}$")


class CoinParseError(ValueError):
    """Raised when a coin or coin-set string is malformed."""


@dataclass(frozen=True)
class Coin:
    denom: str
    amount: int

    def __post_init__(self) -> None:
        if not _DENOM_RE.match(self.denom):
            raise CoinParseError(f"invalid denom: {self.denom!r}")
        if self.amount < 0 or self.amount > MAX_AMOUNT:
            raise CoinParseError(f"amount out of range: {self.amount}")

    def __str__(self) -> str:
        return f"{self.amount}{self.denom}"

    def is_zero(self) -> bool:
        return self.amount == 0


class Coins:
    """Ordered collection of coins with unique denominations.

    Equality ignores ordering so ``"1foo,2bar"`` and ``"2bar,1foo"`` compare
    equal, while ``str()`` keeps the order the coins were given in.
    """

    __slots__ = ("_coins",)

    def __init__(self, coins: Iterable[Coin] = ()) -> None:
        items = tuple(coins)
        seen: set[str] = set()
        for coin in items:
            if coin.denom in seen:
                raise CoinParseError(f"duplicate denomination {coin.denom}")
            seen.add(coin.denom)
        self._coins = items

    def __iter__(self) -> Iterator[Coin]:
        return iter(self._coins)

    def __len__(self) -> int:
        return len(self._coins)

    def __bool__(self) -> bool:
        return bool(self._coins)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Coins):
            return NotImplemented
        return self.as_dict() == other.as_dict()

    def __hash__(self) -> int:
        return hash(frozenset(self.as_dict().items()))

    def __repr__(self) -> str:
        return f"Coins({str(self)!r})"

    def __str__(self) -> str:
        return ",".join(str(coin) for coin in self._coins)

    def as_dict(self) -> dict[str, int]:
        return {coin.denom: coin.amount for coin in self._coins}

    def amount_of(self, denom: str) -> int:
        return self.as_dict().get(denom, 0)

    def is_zero(self) -> bool:
        return all(coin.is_zero() for coin in self._coins)


def parse_coin(raw: str) -> Coin:
    """Parse a single ``<amount><denom>`` string such as ``10000ugnot``."""

    text = raw.strip()
    match = _COIN_RE.match(text)
    if match is None:
        raise CoinParseError(f"invalid coin expression: {raw!r}")
    amount = int(match.group(1))
    if amount > MAX_AMOUNT:
        raise CoinParseError(f"amount out of range: {match.group(1)}")
    return Coin(denom=match.group(2), amount=amount)


def parse_coins(raw: str) -> Coins:
    """Parse a comma separated coin list; an empty string yields no coins."""

    text = raw.strip()
    if not text:
        return Coins()
    return Coins(parse_coin(piece) for piece in text.split(","))
