"""Network definitions and Etherscan link formatting."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Network:
    """A known Ethereum network."""

    network_id: int
    name: str
    type: str
    etherscan_prefix: str


NETWORKS: dict[int, Network] = {
    1: Network(
        network_id=1,
        name="Mainnet",
        type="PoW",
        etherscan_prefix="",
    ),
    3: Network(
        network_id=3,
        name="Ropsten",
        type="PoW",
        etherscan_prefix="ropsten.",
    ),
    4: Network(
        network_id=4,
        name="Rinkeby",
        type="PoA",
        etherscan_prefix="rinkeby.",
    ),
    42: Network(
        network_id=42,
        name="Kovan",
        type="PoA",
        etherscan_prefix="kovan.",
    ),
}

ETHERSCAN_PATHS: dict[str, str] = {
    "transaction": "tx",
    "address": "address",
    "token": "token",
}


def get_network(network_id: int | str) -> Network:
    """Get a network by id. Raises ``ValueError`` if the id is unknown.

    Numeric strings are accepted, since providers report ``net_version``
    as a string.
    """
    try:
        key = int(network_id)
    except (TypeError, ValueError):
        raise ValueError(f"Network id '{network_id}' is invalid.") from None
    if key not in NETWORKS:
        raise ValueError(f"Network id '{network_id}' is invalid.")
    return NETWORKS[key]


def get_network_name(network_id: int | str) -> str:
    return get_network(network_id).name


def get_network_type(network_id: int | str) -> str:
    return get_network(network_id).type


def list_network_ids() -> list[int]:
    """Return the ids of all known networks."""
    return list(NETWORKS.keys())


def etherscan_format(kind: str, data: str, network_id: int | str) -> str:
    """Build an Etherscan URL for a transaction, address or token.

    ``etherscan_format("address", "0xabc", 4)`` gives
    ``"https://rinkeby.etherscan.io/address/0xabc"``.
    """
    if kind not in ETHERSCAN_PATHS:
        raise ValueError(f"Type '{kind}' is invalid.")
    prefix = get_network(network_id).etherscan_prefix
    return f"https://{prefix}etherscan.io/{ETHERSCAN_PATHS[kind]}/{data}"
