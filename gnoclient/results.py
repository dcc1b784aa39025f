"""Typed views over node responses.

The node returns amino-JSON: numbers as strings, byte fields base64 encoded and
each ABCI response wrapped in a ``ResponseBase`` object. The parsers here
accept that layout and keep the original payload in ``raw`` for debugging. A
field that is not valid base64 or not an integer raises
:class:`MalformedResultError`.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from typing import Any, List, Mapping

GNO_EVENT_TYPE = "/tm.gnoEvent"


class MalformedResultError(ValueError):
    """A node response field does not have the expected encoding."""


def _b64(value: Any) -> bytes:
    if not value:
        return b""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, TypeError, ValueError) as exc:
        raise MalformedResultError(f"expected base64, got {value!r}") from exc


def _int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError) as exc:
        raise MalformedResultError(f"expected an integer, got {value!r}") from exc


def _pick(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    return None


@dataclass(frozen=True)
class EventAttribute:
    key: str
    value: str


@dataclass(frozen=True)
class GnoEvent:
    """An event emitted by realm code through ``std.Emit``."""

    type: str
    pkg_path: str = ""
    func: str = ""
    attrs: tuple[EventAttribute, ...] = ()

    def attr(self, key: str) -> str | None:
        for attribute in self.attrs:
            if attribute.key == key:
                return attribute.value
        return None

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "GnoEvent":
        attrs = tuple(
            EventAttribute(key=str(a.get("key", "")), value=str(a.get("value", "")))
            for a in data.get("attrs") or []
        )
        return cls(
            type=str(data.get("type", "")),
            pkg_path=str(data.get("pkg_path", "")),
            func=str(data.get("func", "")),
            attrs=attrs,
        )


@dataclass(frozen=True)
class ResponseBase:
    error: Any = None
    data: bytes = b""
    log: str = ""
    info: str = ""
    events: tuple[Any, ...] = ()

    def is_err(self) -> bool:
        return self.error is not None

    @property
    def error_type(self) -> str | None:
        if isinstance(self.error, Mapping):
            return self.error.get("@type")
        return None if self.error is None else str(self.error)

    def gno_events(self) -> List[GnoEvent]:
        return [
            GnoEvent.from_json(event)
            for event in self.events
            if isinstance(event, Mapping) and event.get("@type") == GNO_EVENT_TYPE
        ]

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | None) -> "ResponseBase":
        data = data or {}
        base = _pick(data, "ResponseBase", "response_base") or data
        return cls(
            error=_pick(base, "Error", "error"),
            data=_b64(_pick(base, "Data", "data")),
            log=str(_pick(base, "Log", "log") or ""),
            info=str(_pick(base, "Info", "info") or ""),
            events=tuple(_pick(base, "Events", "events") or ()),
        )


@dataclass(frozen=True)
class ResponseTx:
    """CheckTx or DeliverTx outcome."""

    base: ResponseBase = field(default_factory=ResponseBase)
    gas_wanted: int = 0
    gas_used: int = 0

    def is_err(self) -> bool:
        return self.base.is_err()

    @property
    def error(self) -> Any:
        return self.base.error

    @property
    def log(self) -> str:
        return self.base.log

    @property
    def data(self) -> bytes:
        return self.base.data

    @property
    def events(self) -> tuple[Any, ...]:
        return self.base.events

    @classmethod
    def from_json(cls, data: Mapping[str, Any] | None) -> "ResponseTx":
        data = data or {}
        return cls(
            base=ResponseBase.from_json(data),
            gas_wanted=_int(_pick(data, "GasWanted", "gas_wanted")),
            gas_used=_int(_pick(data, "GasUsed", "gas_used")),
        )


@dataclass(frozen=True)
class BroadcastTxCommitResult:
    check_tx: ResponseTx = field(default_factory=ResponseTx)
    deliver_tx: ResponseTx = field(default_factory=ResponseTx)
    hash: bytes = b""
    height: int = 0
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def data(self) -> bytes:
        return self.deliver_tx.data

    @property
    def gas_wanted(self) -> int:
        return self.deliver_tx.gas_wanted or self.check_tx.gas_wanted

    @property
    def gas_used(self) -> int:
        return self.deliver_tx.gas_used

    @property
    def events(self) -> List[GnoEvent]:
        return self.deliver_tx.base.gno_events()

    @property
    def hash_hex(self) -> str:
        return self.hash.hex()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "BroadcastTxCommitResult":
        return cls(
            check_tx=ResponseTx.from_json(data.get("check_tx")),
            deliver_tx=ResponseTx.from_json(data.get("deliver_tx")),
            hash=_b64(data.get("hash")),
            height=_int(data.get("height")),
            raw=data,
        )


@dataclass(frozen=True)
class ABCIQueryResult:
    response: ResponseBase = field(default_factory=ResponseBase)
    height: int = 0
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def data(self) -> bytes:
        return self.response.data

    def is_err(self) -> bool:
        return self.response.is_err()

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> "ABCIQueryResult":
        response = data.get("response") or {}
        return cls(
            response=ResponseBase.from_json(response),
            height=_int(_pick(response, "Height", "height")),
            raw=data,
        )
