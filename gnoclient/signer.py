"""Signing contract and an in-memory secp256k1 signer."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.asymmetric.utils import decode_dss_signature

from .codec import AminoJSONCodec, Codec
from .crypto import Address
from .std import PubKeySecp256k1, Signature, Tx

logger = logging.getLogger(__name__)

DEFAULT_CHAIN_ID = "dev"
SECP256K1_ORDER = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
ENV_PRIVATE_KEY = "GNO_PRIVATE_KEY"


@dataclass(frozen=True)
class SignCfg:
    """Everything a signer needs for one signing attempt."""

    tx: Tx
    sequence_number: int
    account_number: int
    chain_id: str = DEFAULT_CHAIN_ID


class Signer(ABC):
    """Produces signatures for transactions on behalf of one account."""

    chain_id: str = DEFAULT_CHAIN_ID

    @property
    @abstractmethod
    def address(self) -> Address:
        """Address of the signing account."""

    @abstractmethod
    def sign(self, cfg: SignCfg) -> Tx:
        """Return ``cfg.tx`` with this signer's signature appended."""

    def validate(self) -> None:
        """Raise if the signer cannot be used; the default accepts everything."""


class PrivKeySigner(Signer):
    """Signer holding a raw secp256k1 private key in memory.

    Signatures are 64-byte ``r || s`` with low-S normalization over the
    SHA-256 of the codec's sign bytes.
    """

    def __init__(
        self,
        private_key: ec.EllipticCurvePrivateKey,
        chain_id: str = DEFAULT_CHAIN_ID,
        codec: Codec | None = None,
    ) -> None:
        if not isinstance(private_key.curve, ec.SECP256K1):
            raise ValueError("PrivKeySigner requires a secp256k1 key")
        self._private_key = private_key
        self.chain_id = chain_id
        self.codec = codec or AminoJSONCodec()
        compressed = private_key.public_key().public_bytes(
            serialization.Encoding.X962, serialization.PublicFormat.CompressedPoint
        )
        self.pub_key = PubKeySecp256k1(compressed)
        self._address = self.pub_key.address()

    @classmethod
    def from_hex(cls, private_key_hex: str, chain_id: str = DEFAULT_CHAIN_ID) -> "PrivKeySigner":
        try:
            secret = int(private_key_hex.strip().removeprefix("0x"), 16)
        except ValueError as exc:
            raise ValueError("private key must be hex encoded") from exc
        if not 0 < secret < SECP256K1_ORDER:
            raise ValueError("private key out of range for secp256k1")
        return cls(ec.derive_private_key(secret, ec.SECP256K1()), chain_id=chain_id)

    @classmethod
    def from_env(cls, env_var: str = ENV_PRIVATE_KEY, chain_id: str = DEFAULT_CHAIN_ID) -> "PrivKeySigner":
        private_key_hex = os.environ.get(env_var)
        if not private_key_hex:
            raise ValueError(
                f"Environment variable {env_var} not set. "
                f"Set it with: export {env_var}=<your-private-key-hex>"
            )
        return cls.from_hex(private_key_hex, chain_id=chain_id)

    @classmethod
    def generate(cls, chain_id: str = DEFAULT_CHAIN_ID) -> "PrivKeySigner":
        return cls(ec.generate_private_key(ec.SECP256K1()), chain_id=chain_id)

    @property
    def address(self) -> Address:
        return self._address

    def sign_bytes(self, payload: bytes) -> bytes:
        try:
            der = self._private_key.sign(payload, ec.ECDSA(hashes.SHA256()))
        except UnsupportedAlgorithm as exc:  # pragma: no cover - depends on OpenSSL build
            raise RuntimeError("secp256k1 signing is not supported by this OpenSSL build") from exc
        r, s = decode_dss_signature(der)
        if s > SECP256K1_ORDER // 2:
            s = SECP256K1_ORDER - s
        return r.to_bytes(32, "big") + s.to_bytes(32, "big")

    def sign(self, cfg: SignCfg) -> Tx:
        payload = self.codec.sign_bytes(cfg)
        signature = Signature(pub_key=self.pub_key, signature=self.sign_bytes(payload))
        logger.debug(
            "Signed tx for %s (account=%d sequence=%d chain=%s)",
            self._address,
            cfg.account_number,
            cfg.sequence_number,
            cfg.chain_id,
        )
        return cfg.tx.with_signature(signature)
