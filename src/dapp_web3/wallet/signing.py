"""Signature parsing and signer recovery.

Nothing in here talks to a provider; :mod:`dapp_web3.wallet.provider`
requests the signatures and uses these helpers to check who made them.
"""

from __future__ import annotations

from typing import Any, Optional

from eth_abi.packed import encode_packed
from eth_account import Account
from eth_account.messages import SignableMessage, encode_defunct, encode_typed_data
from eth_keys import keys
from eth_utils import encode_hex, keccak, to_bytes, to_checksum_address
from pydantic import BaseModel, ConfigDict, Field

LEGACY_TYPED_DATA_METHOD = "eth_signTypedData"
EIP712_TYPED_DATA_METHOD = "eth_signTypedData_v4"


class SignatureResult(BaseModel):
    """A verified signature together with its components."""

    model_config = ConfigDict(populate_by_name=True)

    signature: str
    r: str
    s: str
    v: int
    from_address: str = Field(alias="from")
    message_hash: Optional[str] = None


def split_signature(signature: str) -> tuple[str, str, int]:
    """Split a 65-byte RPC signature into hex ``r``, hex ``s`` and ``v``.

    ``v`` is normalized to 27/28.
    """
    raw = to_bytes(hexstr=signature)
    if len(raw) != 65:
        raise ValueError(f"Invalid signature length: {len(raw)} bytes")
    v = raw[64]
    if v < 27:
        v += 27
    return encode_hex(raw[:32]), encode_hex(raw[32:64]), v


def _vrs(signature: str) -> tuple[int, int, int]:
    r, s, v = split_signature(signature)
    return v, int(r, 16), int(s, 16)


# ---------------------------------------------------------------------------
# personal_sign
# ---------------------------------------------------------------------------


def encode_personal_message(message: str | bytes) -> str:
    """Hex-encode a message for the ``personal_sign`` RPC call."""
    if isinstance(message, str):
        message = message.encode("utf-8")
    return encode_hex(message)


def _signable_personal_message(message: str | bytes) -> SignableMessage:
    if isinstance(message, bytes):
        return encode_defunct(primitive=message)
    return encode_defunct(text=message)


def recover_personal_signer(message: str | bytes, signature: str) -> str:
    """Return the checksummed address that produced a personal signature."""
    return Account.recover_message(
        _signable_personal_message(message), vrs=_vrs(signature)
    )


# ---------------------------------------------------------------------------
# Typed data
# ---------------------------------------------------------------------------


def _legacy_value(type_: str, value: Any) -> Any:
    if type_ == "bytes" or (type_.startswith("bytes") and isinstance(value, str)):
        return to_bytes(hexstr=value) if isinstance(value, str) else value
    if type_.startswith(("uint", "int")) and isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return value


def legacy_typed_data_hash(typed_data: list[dict[str, Any]]) -> bytes:
    """Hash a legacy ``[{type, name, value}, ...]`` typed-data message.

    This is the pre-EIP-712 scheme answered by ``eth_signTypedData``:
    ``keccak(keccak(schema) ++ keccak(values))`` with tight packing.
    """
    schema = []
    for entry in typed_data:
        if not entry.get("name"):
            raise ValueError("Typed data entries must have a 'name'.")
        schema.append(f"{entry['type']} {entry['name']}")
    types = [entry["type"] for entry in typed_data]
    values = [_legacy_value(entry["type"], entry["value"]) for entry in typed_data]

    schema_hash = keccak(encode_packed(["string"] * len(schema), schema))
    values_hash = keccak(encode_packed(types, values))
    return keccak(encode_packed(["bytes32", "bytes32"], [schema_hash, values_hash]))


def _signable_typed_data(typed_data: dict[str, Any]) -> SignableMessage:
    return encode_typed_data(full_message=typed_data)


def typed_data_method(typed_data: Any) -> str:
    """Pick the RPC method for *typed_data*.

    A list is the legacy format, a dict is a full EIP-712 message.
    """
    if isinstance(typed_data, list):
        return LEGACY_TYPED_DATA_METHOD
    if isinstance(typed_data, dict):
        return EIP712_TYPED_DATA_METHOD
    raise ValueError(
        f"Typed data must be a list (legacy) or dict (EIP-712), got {type(typed_data).__name__}"
    )


def typed_data_request(typed_data: list | dict, account: str) -> tuple[str, list]:
    """Return the RPC method and params for signing *typed_data* as *account*.

    Legacy ``eth_signTypedData`` takes ``[data, address]``;
    ``eth_signTypedData_v4`` takes ``[address, data]``.
    """
    method = typed_data_method(typed_data)
    if method == LEGACY_TYPED_DATA_METHOD:
        return method, [typed_data, account]
    return method, [account, typed_data]


def typed_data_hash(typed_data: list | dict) -> bytes:
    """Return the digest that a typed-data signature covers."""
    if isinstance(typed_data, list):
        return legacy_typed_data_hash(typed_data)
    signable = _signable_typed_data(typed_data)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def recover_typed_data_signer(typed_data: list | dict, signature: str) -> str:
    """Return the checksummed address that signed *typed_data*."""
    v, r, s = _vrs(signature)
    if isinstance(typed_data, list):
        sig = keys.Signature(vrs=(v - 27, r, s))
        public_key = sig.recover_public_key_from_msg_hash(
            legacy_typed_data_hash(typed_data)
        )
        return to_checksum_address(public_key.to_checksum_address())
    return Account.recover_message(_signable_typed_data(typed_data), vrs=(v, r, s))
