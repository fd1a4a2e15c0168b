"""Tests for the balance ledger."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pricing_core.bank import BankKeeper, module_address
from pricing_core.context import Context
from pricing_core.errors import InsufficientFunds
from pricing_core.models import Coin, coins
from pricing_core.store import MemoryStore


def _coin(amount: int, denom: str = "unusd") -> Coin:
    return Coin(denom=denom, amount=amount)


@pytest.fixture
def bank_ctx():
    return Context(block_height=1, block_time=datetime(2022, 6, 1, tzinfo=timezone.utc), store=MemoryStore())


class TestCoins:
    def test_str(self):
        assert str(_coin(12, "unibi")) == "12unibi"

    def test_negative_amount_rejected(self):
        with pytest.raises(ValueError):
            Coin(denom="unusd", amount=-1)

    def test_coins_merges_drops_zero_and_sorts(self):
        result = coins(_coin(1, "uusdc"), _coin(0, "unibi"), _coin(2, "uusdc"), _coin(5, "unusd"))
        assert result == [_coin(5, "unusd"), _coin(3, "uusdc")]


class TestBankKeeper:
    def test_fund_account_increases_supply(self, bank_ctx, make_address):
        bank = BankKeeper()
        alice = make_address(1)
        bank.fund_account(bank_ctx, alice, [_coin(100)])
        assert bank.get_balance(bank_ctx, alice, "unusd").amount == 100
        assert bank.get_supply(bank_ctx, "unusd").amount == 100

    def test_send_moves_balance_and_emits_transfer(self, bank_ctx, make_address):
        bank = BankKeeper()
        alice, bob = make_address(1), make_address(2)
        bank.fund_account(bank_ctx, alice, [_coin(100), _coin(7, "unibi")])
        bank.send(bank_ctx, alice, bob, [_coin(40), _coin(7, "unibi")])

        assert bank.get_all_balances(bank_ctx, alice) == [_coin(60)]
        assert bank.get_all_balances(bank_ctx, bob) == [_coin(7, "unibi"), _coin(40)]
        [event] = bank_ctx.events.of_type("transfer")
        assert event.attributes["amount"] == "7unibi,40unusd"

    def test_send_zero_amounts_is_silent(self, bank_ctx, make_address):
        bank = BankKeeper()
        bank.send(bank_ctx, make_address(1), make_address(2), [_coin(0)])
        assert bank_ctx.events.of_type("transfer") == []

    def test_send_more_than_held_raises(self, bank_ctx, make_address):
        bank = BankKeeper()
        alice = make_address(1)
        bank.fund_account(bank_ctx, alice, [_coin(10)])
        with pytest.raises(InsufficientFunds) as exc_info:
            bank.send(bank_ctx, alice, make_address(2), [_coin(11)])
        assert exc_info.value.available == 10
        assert exc_info.value.required == 11

    def test_mint_and_burn_track_supply(self, bank_ctx):
        bank = BankKeeper()
        bank.mint_coins(bank_ctx, "stablecoin", [_coin(500)])
        bank.burn_coins(bank_ctx, "stablecoin", [_coin(200)])
        assert bank.get_module_balance(bank_ctx, "stablecoin", "unusd").amount == 300
        assert bank.get_supply(bank_ctx, "unusd").amount == 300
        assert [e.type for e in bank_ctx.events.events] == ["coins_minted", "coins_burned"]

    def test_burn_more_than_module_holds_raises(self, bank_ctx):
        bank = BankKeeper()
        with pytest.raises(InsufficientFunds):
            bank.burn_coins(bank_ctx, "stablecoin", [_coin(1)])

    def test_module_to_module(self, bank_ctx):
        bank = BankKeeper()
        bank.mint_coins(bank_ctx, "stablecoin", [_coin(10)])
        bank.send_from_module_to_module(bank_ctx, "stablecoin", "treasury", [_coin(4)])
        assert bank.get_balance(bank_ctx, module_address("treasury"), "unusd").amount == 4
        assert bank.get_all_module_balances(bank_ctx, "stablecoin") == [_coin(6)]

    def test_emptied_balance_leaves_no_entry(self, bank_ctx, make_address):
        bank = BankKeeper()
        alice = make_address(1)
        bank.fund_account(bank_ctx, alice, [_coin(5)])
        bank.send(bank_ctx, alice, make_address(2), [_coin(5)])
        assert bank.get_all_balances(bank_ctx, alice) == []
