"""Tests for the guarded transaction sender."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, call

import pytest

from dapp_web3.wallet.handlers import (
    InsufficientBalanceError,
    TransactionHandlers,
    TransactionRevertedError,
)

TX_HASH = "0x" + "12" * 32


@pytest.mark.asyncio
async def test_missing_error_handler_raises_before_network(utils, w3, method):
    with pytest.raises(ValueError, match="'error' handler"):
        await utils.send_transaction(method, {"receipt": lambda r: None})
    method.estimate_gas.assert_not_called()
    w3.eth.get_gas_price.assert_not_called()
    w3.eth.get_balance.assert_not_called()


@pytest.mark.asyncio
async def test_unknown_handler_rejected(utils, method):
    with pytest.raises(ValueError, match="Invalid handler"):
        await utils.send_transaction(method, {"error": print, "mined": print})
    method.estimate_gas.assert_not_called()


@pytest.mark.asyncio
async def test_insufficient_balance_does_not_send(utils, w3, method):
    # 10 wei gas price * (100 gas * 1.1) = 1100 wei required
    w3.eth.get_balance.return_value = 1099
    on_error = MagicMock()

    result = await utils.send_transaction(method, {"error": on_error})

    assert result is None
    method.transact.assert_not_called()
    on_error.assert_called_once()
    exc, message = on_error.call_args.args
    assert isinstance(exc, InsufficientBalanceError)
    assert message == "Insufficient balance. Ensure you have at least 0.0000000000000011 ETH."


@pytest.mark.asyncio
async def test_successful_send_forwards_events(utils, w3, method, account):
    w3.eth.get_balance.return_value = 1100
    on_error = MagicMock()
    on_hash = MagicMock()
    on_receipt = MagicMock()

    result = await utils.send_transaction(
        method,
        {"error": on_error, "transaction_hash": on_hash, "receipt": on_receipt},
    )

    assert result == TX_HASH
    method.estimate_gas.assert_awaited_once_with({"from": account.address})
    method.transact.assert_awaited_once_with(
        {"from": account.address, "gasPrice": 10, "gas": 110}
    )
    on_hash.assert_called_once_with(TX_HASH)
    on_receipt.assert_called_once_with({"status": 1, "blockNumber": 100})
    on_error.assert_not_called()
    # no confirmation handler, so no block polling
    w3.eth.get_block_number.assert_not_called()


@pytest.mark.asyncio
async def test_gas_padding_truncates(utils, method):
    method.estimate_gas.return_value = 15
    await utils.send_transaction(method, {"error": MagicMock()})
    assert method.transact.call_args.args[0]["gas"] == 16


@pytest.mark.asyncio
async def test_failed_estimate_reports_once(utils, method):
    method.estimate_gas.side_effect = RuntimeError("execution reverted")
    on_error = MagicMock()

    result = await utils.send_transaction(method, {"error": on_error})

    assert result is None
    method.transact.assert_not_called()
    on_error.assert_called_once()
    assert on_error.call_args.args[1] == "The transaction would fail."


@pytest.mark.asyncio
async def test_multiple_fetch_failures_report_first_only(utils, w3, method):
    w3.eth.get_gas_price.side_effect = ConnectionError("down")
    w3.eth.get_balance.side_effect = ConnectionError("down")
    on_error = MagicMock()

    await utils.send_transaction(method, {"error": on_error})

    on_error.assert_called_once()
    assert on_error.call_args.args[1] == "Could not fetch gas price."
    method.transact.assert_not_called()


@pytest.mark.asyncio
async def test_balance_fetch_failure(utils, w3, method):
    w3.eth.get_balance.side_effect = ConnectionError("down")
    on_error = MagicMock()

    await utils.send_transaction(method, {"error": on_error})

    assert on_error.call_args.args[1] == "Could not fetch sending address balance."


@pytest.mark.asyncio
async def test_send_failure_reported(utils, method):
    method.transact.side_effect = ValueError("user rejected")
    on_error = MagicMock()
    on_hash = MagicMock()

    result = await utils.send_transaction(
        method, {"error": on_error, "transaction_hash": on_hash}
    )

    assert result is None
    on_hash.assert_not_called()
    on_error.assert_called_once()
    assert on_error.call_args.args[1] == "Unable to send transaction."


@pytest.mark.asyncio
async def test_reverted_transaction_reports_error(utils, w3, method):
    w3.eth.wait_for_transaction_receipt.return_value = {"status": 0, "blockNumber": 100}
    on_error = MagicMock()
    on_receipt = MagicMock()

    result = await utils.send_transaction(
        method, {"error": on_error, "receipt": on_receipt}
    )

    assert result == TX_HASH
    on_receipt.assert_not_called()
    assert isinstance(on_error.call_args.args[0], TransactionRevertedError)


@pytest.mark.asyncio
async def test_confirmations_up_to_configured_depth(utils, w3, method):
    receipt = {"status": 1, "blockNumber": 100}
    w3.eth.get_block_number.side_effect = [100, 101, 102]
    on_confirmation = MagicMock()

    await utils.send_transaction(
        method, {"error": MagicMock(), "confirmation": on_confirmation}
    )

    assert on_confirmation.call_args_list == [
        call(1, receipt),
        call(2, receipt),
        call(3, receipt),
    ]
    assert w3.eth.get_block_number.await_count == 3


@pytest.mark.asyncio
async def test_confirmations_catch_up_after_skipped_blocks(utils, w3, method):
    w3.eth.get_block_number.return_value = 150
    on_confirmation = MagicMock()

    await utils.send_transaction(
        method, {"error": MagicMock(), "confirmation": on_confirmation}
    )

    assert [c.args[0] for c in on_confirmation.call_args_list] == [1, 2, 3]
    w3.eth.get_block_number.assert_awaited_once()


@pytest.mark.asyncio
async def test_async_handlers_and_dataclass_handler_set(utils, w3, method):
    w3.eth.get_balance.return_value = 0
    on_error = AsyncMock()

    await utils.send_transaction(method, TransactionHandlers(error=on_error))

    on_error.assert_awaited_once()


@pytest.mark.asyncio
async def test_unexpected_error_reported(utils, method):
    method.estimate_gas.return_value = "not a number"
    on_error = MagicMock()

    await utils.send_transaction(method, {"error": on_error})

    on_error.assert_called_once()
    assert on_error.call_args.args[1] == "Unexpected error."
    method.transact.assert_not_called()


@pytest.mark.asyncio
async def test_receipt_fetch_failure_reported(utils, w3, method):
    w3.eth.wait_for_transaction_receipt.side_effect = TimeoutError("not mined")
    on_error = MagicMock()
    on_hash = MagicMock()
    on_receipt = MagicMock()

    result = await utils.send_transaction(
        method,
        {"error": on_error, "transaction_hash": on_hash, "receipt": on_receipt},
    )

    assert result == TX_HASH
    on_hash.assert_called_once_with(TX_HASH)
    on_receipt.assert_not_called()
    on_error.assert_called_once()
    assert on_error.call_args.args[1] == "Unable to fetch transaction receipt."


@pytest.mark.asyncio
async def test_estimate_raising_at_call_time_reported_as_failing(utils, w3, method):
    method.estimate_gas = MagicMock(side_effect=TypeError("bad argument"))
    on_error = MagicMock()

    result = await utils.send_transaction(method, {"error": on_error})

    assert result is None
    on_error.assert_called_once()
    assert on_error.call_args.args[1] == "The transaction would fail."
    w3.eth.get_gas_price.assert_awaited_once()
    w3.eth.get_balance.assert_awaited_once()
    method.transact.assert_not_called()


@pytest.mark.asyncio
async def test_lowercase_account_sent_as_checksum(utils, w3, method, account):
    utils.context.set_getters(account=lambda: account.address.lower())

    await utils.send_transaction(method, {"error": MagicMock()})

    w3.eth.get_balance.assert_awaited_once_with(account.address)
    method.estimate_gas.assert_awaited_once_with({"from": account.address})
    assert method.transact.call_args.args[0]["from"] == account.address
