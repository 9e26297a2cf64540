"""Web3 convenience facade used by dapp frontends and the CLI."""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal
from typing import Any, Mapping

from eth_utils import encode_hex, is_checksum_address
from web3 import AsyncWeb3, Web3

from dapp_web3.config import Web3Config
from dapp_web3.wallet.context import EthereumContext
from dapp_web3.wallet.erc20 import ERC20_ABI
from dapp_web3.wallet.handlers import (
    HandledError,
    Handler,
    InsufficientBalanceError,
    SignatureMismatchError,
    SignatureRequestError,
    TransactionHandlers,
    TransactionRevertedError,
    coerce_handlers,
)
from dapp_web3.wallet.networks import etherscan_format, get_network
from dapp_web3.wallet.signing import (
    SignatureResult,
    encode_personal_message,
    recover_personal_signer,
    recover_typed_data_signer,
    split_signature,
    typed_data_hash,
    typed_data_request,
)
from dapp_web3.wallet.units import to_decimal

logger = logging.getLogger("dapp_web3.wallet.provider")

ETHER_DECIMALS = 18


class Web3Utilities:
    """Orchestrates transaction sends, signing requests and balance reads.

    Every call reads the client, account and network id from *context* at
    call time, so switching accounts in the wallet is picked up without
    rebuilding the facade.
    """

    def __init__(
        self, context: EthereumContext, config: Web3Config | None = None
    ) -> None:
        self.context = context
        self.config = config or Web3Config()

    @property
    def web3(self) -> AsyncWeb3:
        return self.context.web3

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    async def send_transaction(
        self,
        method: Any,
        handlers: TransactionHandlers | Mapping[str, Handler],
    ) -> str | None:
        """Estimate gas, check the sender can pay for it, then send *method*.

        *method* is a bound web3 contract function, e.g.
        ``contract.functions.transfer(to, amount)``. Failures are reported
        through ``handlers.error`` rather than raised; only an invalid
        handler set raises, before any network call is made.

        Returns the transaction hash, or ``None`` if nothing was sent.
        """
        handlers = coerce_handlers(handlers)
        try:
            return await self._send_transaction(method, handlers)
        except HandledError:
            return None
        except Exception as exc:
            logger.warning(f"Unexpected error while sending transaction: {exc}")
            await handlers.emit("error", exc, "Unexpected error.")
            return None

    async def _send_transaction(
        self, method: Any, handlers: TransactionHandlers
    ) -> str | None:
        w3 = self.web3
        account = Web3.to_checksum_address(self.context.account)

        async def _gas_price() -> int:
            return await w3.eth.gas_price

        async def _estimate_gas() -> int:
            return await method.estimate_gas({"from": account})

        checks = [
            (_gas_price(), "Could not fetch gas price."),
            (_estimate_gas(), "The transaction would fail."),
            (self._get_balance_wei(account), "Could not fetch sending address balance."),
        ]
        results = await asyncio.gather(
            *(coro for coro, _ in checks), return_exceptions=True
        )
        for result, (_, message) in zip(results, checks):
            if isinstance(result, BaseException):
                logger.warning(f"{message} ({result})")
                await handlers.emit("error", result, message)
                raise HandledError("This error was already handled.")

        gas_price, gas, balance_wei = (int(r) for r in results)

        safe_gas = gas * 11 // 10
        required_wei = gas_price * safe_gas
        if balance_wei < required_wei:
            required_eth = to_decimal(str(required_wei), ETHER_DECIMALS)
            message = f"Insufficient balance. Ensure you have at least {required_eth} ETH."
            logger.info(f"Not sending from {account}: {message}")
            await handlers.emit("error", InsufficientBalanceError(message), message)
            return None

        try:
            raw_hash = await method.transact(
                {"from": account, "gasPrice": gas_price, "gas": safe_gas}
            )
        except Exception as exc:
            logger.warning(f"Unable to send transaction from {account}: {exc}")
            await handlers.emit("error", exc, "Unable to send transaction.")
            return None

        tx_hash = raw_hash if isinstance(raw_hash, str) else encode_hex(raw_hash)
        logger.info(f"Transaction sent from {account}: {tx_hash} (gas={safe_gas})")
        await handlers.emit("transaction_hash", tx_hash)

        try:
            receipt = await w3.eth.wait_for_transaction_receipt(
                tx_hash, poll_latency=self.config.poll_interval
            )
        except Exception as exc:
            await handlers.emit("error", exc, "Unable to fetch transaction receipt.")
            return tx_hash

        if receipt.get("status") == 0:
            message = "Transaction has been reverted by the EVM."
            logger.warning(f"{tx_hash}: {message}")
            await handlers.emit("error", TransactionRevertedError(message), message)
            return tx_hash

        await handlers.emit("receipt", receipt)

        if handlers.wants_confirmations:
            await self._track_confirmations(w3, receipt, handlers)
        return tx_hash

    async def _track_confirmations(
        self, w3: AsyncWeb3, receipt: Any, handlers: TransactionHandlers
    ) -> None:
        """Call the confirmation handler once per new block, up to the configured depth.

        The block that includes the transaction counts as confirmation 1, so the
        first call gets 1 (web3.js numbers its first confirmation event 0).
        """
        target = self.config.confirmation_blocks
        mined_in = receipt["blockNumber"]
        confirmed = 0
        while confirmed < target:
            current = await w3.eth.block_number
            reached = min(current - mined_in + 1, target)
            while confirmed < reached:
                confirmed += 1
                await handlers.emit("confirmation", confirmed, receipt)
            if confirmed < target:
                await asyncio.sleep(self.config.poll_interval)

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def _checked_account(self) -> str:
        account = self.context.account
        if not is_checksum_address(account):
            raise ValueError(f"Current account '{account}' has an invalid checksum.")
        return account

    async def _request_signature(self, method: str, params: list) -> str:
        response = await self.web3.provider.make_request(method, params)
        error = response.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise SignatureRequestError(message)
        return response["result"]

    async def sign_personal(self, message: str | bytes) -> SignatureResult:
        """Ask the provider to ``personal_sign`` *message* with the active account.

        The recovered signer must match the active account, otherwise
        :class:`SignatureMismatchError` is raised.
        """
        account = self._checked_account()
        signature = await self._request_signature(
            "personal_sign", [encode_personal_message(message), account]
        )
        r, s, v = split_signature(signature)

        if recover_personal_signer(message, signature) != account:
            raise SignatureMismatchError(
                f"The returned signature '{signature}' didn't originate from address '{account}'."
            )
        return SignatureResult(signature=signature, r=r, s=s, v=v, from_address=account)

    async def sign_typed_data(self, typed_data: list | dict) -> SignatureResult:
        """Ask the provider to sign structured data with the active account.

        Accepts the legacy ``[{type, name, value}, ...]`` format or a full
        EIP-712 message dict.
        """
        account = self._checked_account()
        method, params = typed_data_request(typed_data, account)
        signature = await self._request_signature(method, params)

        if recover_typed_data_signer(typed_data, signature) != account:
            raise SignatureMismatchError(
                f"Returned signature '{signature}' didn't originate from address '{account}'."
            )
        r, s, v = split_signature(signature)
        return SignatureResult(
            signature=signature,
            r=r,
            s=s,
            v=v,
            from_address=account,
            message_hash=encode_hex(typed_data_hash(typed_data)),
        )

    # ------------------------------------------------------------------
    # Balances and contracts
    # ------------------------------------------------------------------

    async def _get_balance_wei(self, account: str) -> int:
        return await self.web3.eth.get_balance(Web3.to_checksum_address(account))

    async def get_balance(
        self, account: str | None = None, unit: str = "ether"
    ) -> Decimal:
        """Get an account's ETH balance (default: active account) in *unit*."""
        if account is None:
            account = self.context.account
        balance_wei = await self._get_balance_wei(account)
        return Decimal(str(Web3.from_wei(balance_wei, unit)))

    def get_contract(self, abi: list[dict[str, Any]], address: str, **kwargs: Any) -> Any:
        """Bind *abi* at *address* on the current client."""
        return self.web3.eth.contract(address=address, abi=abi, **kwargs)

    async def get_erc20_balance(
        self, token_address: str, account: str | None = None
    ) -> str:
        """Get an ERC20 balance as a decimal string, using the token's decimals."""
        if account is None:
            account = self.context.account
        token = self.get_contract(ERC20_ABI, Web3.to_checksum_address(token_address))
        balance, decimals = await asyncio.gather(
            token.functions.balanceOf(Web3.to_checksum_address(account)).call(),
            token.functions.decimals().call(),
        )
        return to_decimal(str(balance), decimals)

    # ------------------------------------------------------------------
    # Networks
    # ------------------------------------------------------------------

    def get_network_name(self, network_id: int | str | None = None) -> str:
        if network_id is None:
            network_id = self.context.network_id
        return get_network(network_id).name

    def get_network_type(self, network_id: int | str | None = None) -> str:
        if network_id is None:
            network_id = self.context.network_id
        return get_network(network_id).type

    def etherscan_format(
        self, kind: str, data: str, network_id: int | str | None = None
    ) -> str:
        """Etherscan URL for *data* on *network_id* (default: active network)."""
        if network_id is None:
            network_id = self.context.network_id
        return etherscan_format(kind, data, network_id)
