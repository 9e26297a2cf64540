"""Runtime source of the web3 client, active account and network id."""

from __future__ import annotations

import logging
from typing import Any, Callable

from web3 import AsyncHTTPProvider, AsyncWeb3

from dapp_web3.config import Web3Config

logger = logging.getLogger("dapp_web3.wallet.context")

GETTER_NAMES = ("web3", "account", "network_id")


def _unset(name: str) -> Callable[[], Any]:
    def getter() -> Any:
        raise RuntimeError(
            f"No '{name}' source configured. Call set_getters({name}=...) first."
        )

    return getter


class EthereumContext:
    """Holds the three getters the wallet helpers read at call time.

    Each getter is a zero-argument callable, so a frontend can point them at
    whatever tracks the currently selected account and network.
    """

    def __init__(
        self,
        web3: Callable[[], AsyncWeb3] | None = None,
        account: Callable[[], str] | None = None,
        network_id: Callable[[], int | str] | None = None,
    ) -> None:
        self._getters: dict[str, Callable[[], Any]] = {
            name: _unset(name) for name in GETTER_NAMES
        }
        self.set_getters(
            **{
                name: getter
                for name, getter in (
                    ("web3", web3),
                    ("account", account),
                    ("network_id", network_id),
                )
                if getter is not None
            }
        )

    @classmethod
    def from_config(cls, config: Web3Config) -> EthereumContext:
        """Build a context from static configuration.

        The ``AsyncWeb3`` client is created on first use.
        """
        client: list[AsyncWeb3] = []

        def _web3() -> AsyncWeb3:
            if not client:
                logger.debug(f"Connecting to {config.rpc_url}")
                client.append(
                    AsyncWeb3(
                        AsyncHTTPProvider(
                            config.rpc_url,
                            request_kwargs={"timeout": config.request_timeout},
                        )
                    )
                )
            return client[0]

        ctx = cls(web3=_web3, network_id=lambda: config.network_id)
        if config.account:
            ctx.set_getters(account=lambda: config.account)
        return ctx

    def set_getters(self, **getters: Callable[[], Any]) -> None:
        """Override any of the ``web3``, ``account`` and ``network_id`` getters."""
        unknown = [name for name in getters if name not in GETTER_NAMES]
        if unknown:
            raise ValueError(
                f"Unknown getter(s): {', '.join(unknown)}. "
                f"Allowed getters are: {', '.join(GETTER_NAMES)}."
            )
        for name, getter in getters.items():
            if not callable(getter):
                raise TypeError(f"Getter '{name}' must be callable.")
            self._getters[name] = getter

    @property
    def web3(self) -> AsyncWeb3:
        return self._getters["web3"]()

    @property
    def account(self) -> str:
        return self._getters["account"]()

    @property
    def network_id(self) -> int | str:
        return self._getters["network_id"]()
