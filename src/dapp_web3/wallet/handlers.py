"""Transaction event handlers and wallet error types."""

from __future__ import annotations

import inspect
from dataclasses import dataclass, fields
from typing import Any, Callable, Mapping


class WalletError(Exception):
    """Base class for errors raised by the wallet helpers."""


class HandledError(WalletError):
    """Marker for a failure that was already passed to an error handler."""


class InsufficientBalanceError(WalletError):
    """The sending account cannot cover the transaction fee."""


class SignatureRequestError(WalletError):
    """The provider answered a signing request with an error."""


class SignatureMismatchError(WalletError):
    """A returned signature was not produced by the active account."""


class TransactionRevertedError(WalletError):
    """A mined transaction has a failed status."""


Handler = Callable[..., Any]


def _noop(*args: Any) -> None:
    return None


@dataclass
class TransactionHandlers:
    """Callbacks for the lifecycle of a sent transaction.

    ``error`` receives ``(exception, message)``. ``transaction_hash``
    receives the hex hash, ``receipt`` the receipt and ``confirmation``
    ``(confirmation_number, receipt)``. Any of them may be a coroutine
    function.
    """

    error: Handler
    transaction_hash: Handler = _noop
    receipt: Handler = _noop
    confirmation: Handler = _noop

    @classmethod
    def allowed_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, handlers: Mapping[str, Handler]) -> TransactionHandlers:
        """Build a handler set from a plain mapping of name -> callable.

        Raises ``ValueError`` if ``error`` is missing or an unknown name is
        passed.
        """
        if "error" not in handlers:
            raise ValueError("Please provide an 'error' handler.")
        allowed = cls.allowed_names()
        unknown = [name for name in handlers if name not in allowed]
        if unknown:
            raise ValueError(
                f"Invalid handler passed: {', '.join(repr(n) for n in unknown)}. "
                f"Allowed handlers are: {', '.join(repr(n) for n in allowed)}."
            )
        return cls(**dict(handlers))

    @property
    def wants_confirmations(self) -> bool:
        return self.confirmation is not _noop

    async def emit(self, name: str, *args: Any) -> None:
        """Invoke the handler called *name*, awaiting it if needed."""
        result = getattr(self, name)(*args)
        if inspect.isawaitable(result):
            await result


def coerce_handlers(
    handlers: TransactionHandlers | Mapping[str, Handler],
) -> TransactionHandlers:
    if isinstance(handlers, TransactionHandlers):
        return handlers
    return TransactionHandlers.from_mapping(handlers)
