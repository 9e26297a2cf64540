"""dapp-web3-utils: convenience helpers over web3.py for dapps.

Typical use::

    ctx = EthereumContext(web3=lambda: w3, account=lambda: selected, network_id=lambda: 1)
    utils = Web3Utilities(ctx)
    await utils.send_transaction(token.functions.transfer(to, amount), {"error": on_error})
"""

from __future__ import annotations

import eth_account
import eth_utils

from dapp_web3.config import Web3Config, config_from_env, load_config
from dapp_web3.wallet.context import EthereumContext
from dapp_web3.wallet.erc20 import ERC20_ABI
from dapp_web3.wallet.handlers import (
    InsufficientBalanceError,
    SignatureMismatchError,
    SignatureRequestError,
    TransactionHandlers,
    TransactionRevertedError,
    WalletError,
)
from dapp_web3.wallet.networks import (
    NETWORKS,
    Network,
    etherscan_format,
    get_network_name,
    get_network_type,
)
from dapp_web3.wallet.provider import Web3Utilities
from dapp_web3.wallet.signing import SignatureResult
from dapp_web3.wallet.units import from_decimal, to_decimal

libraries = {
    "eth_utils": eth_utils,
    "eth_account": eth_account,
}

__all__ = [
    "ERC20_ABI",
    "EthereumContext",
    "InsufficientBalanceError",
    "NETWORKS",
    "Network",
    "SignatureMismatchError",
    "SignatureRequestError",
    "SignatureResult",
    "TransactionHandlers",
    "TransactionRevertedError",
    "WalletError",
    "Web3Config",
    "Web3Utilities",
    "config_from_env",
    "etherscan_format",
    "from_decimal",
    "get_network_name",
    "get_network_type",
    "libraries",
    "load_config",
    "to_decimal",
]
