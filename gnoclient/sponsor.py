"""Sponsored transactions: one account pays the fees for another's messages.

A sponsored transaction starts with a ``vm.MsgNoop`` whose caller is the fee
payer. Because the fee payer is the first signer of the transaction, the chain
charges gas to it while every following message still acts on behalf of its
own sender.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence, Tuple

from . import vm
from .crypto import Address
from .errors import ConsistencyError, ErrorKind
from .msgs import MsgType, is_msg
from .std import ChainMsg, Tx
from .tx_builder import to_chain_msg

logger = logging.getLogger(__name__)


def build_sponsor_batch(
    msgs: Sequence[Any], *, fee_payer: Address, sender: Address
) -> Tuple[ChainMsg, ...]:
    """Return ``[Noop(fee_payer), *msgs bound to sender]``.

    All messages must share the variant of the first one.
    """

    if not msgs:
        raise ConsistencyError(ErrorKind.NO_MESSAGES)

    first = msgs[0]
    # noop markers are added here, never accepted from callers
    if not is_msg(first) or first.msg_type is MsgType.NOOP:
        raise ConsistencyError(ErrorKind.INVALID_MSG_TYPE, value=type(first).__name__)
    first_type = first.msg_type

    # homogeneity is checked for the whole batch before any message is validated
    for msg in msgs:
        if not is_msg(msg):
            raise ConsistencyError(ErrorKind.INVALID_MSG_TYPE, value=type(msg).__name__)
        if msg.msg_type is not first_type:
            raise ConsistencyError(
                ErrorKind.MIXED_MESSAGE_TYPES,
                value=type(msg).__name__,
                detail=f"expected {first_type.value}",
            )

    batch: list[ChainMsg] = [vm.MsgNoop(caller=fee_payer)]
    batch.extend(to_chain_msg(msg, sender) for msg in msgs)

    logger.debug(
        "Built sponsor batch of %d %s msgs (fee payer %s, sender %s)",
        len(msgs),
        first_type.value,
        fee_payer,
        sender,
    )
    return tuple(batch)


def verify_sponsor_tx(tx: Tx) -> None:
    """Check that a pre-signed transaction can be countersigned by a sponsor."""

    if not tx.msgs:
        raise ConsistencyError(ErrorKind.NO_MESSAGES)
    if not tx.signatures:
        raise ConsistencyError(ErrorKind.NO_SIGNATURES)
    if not tx.is_sponsor_tx():
        raise ConsistencyError(
            ErrorKind.INVALID_SPONSOR_TX, value=getattr(tx.msgs[0], "type_url", type(tx.msgs[0]).__name__)
        )
