"""Balance ledger — account balances, module pools and per-denom supply."""

from __future__ import annotations

import structlog

from pricing_core.context import Context
from pricing_core.errors import InsufficientFunds
from pricing_core.models.coin import Coin, coins

log = structlog.get_logger("bank")

_BALANCE_PREFIX = "bank/balances/"
_SUPPLY_PREFIX = "bank/supply/"


def module_address(name: str) -> str:
    """Ledger address of a module account handle."""
    return f"module:{name}"


class BankKeeper:
    """Moves integer coin amounts between accounts and module pools."""

    # ── Reads ─────────────────────────────────────────────────

    def get_balance(self, ctx: Context, address: str, denom: str) -> Coin:
        raw = ctx.store.get(f"{_BALANCE_PREFIX}{address}/{denom}")
        return Coin(denom=denom, amount=int(raw) if raw is not None else 0)

    def get_all_balances(self, ctx: Context, address: str) -> list[Coin]:
        prefix = f"{_BALANCE_PREFIX}{address}/"
        return coins(*(
            Coin(denom=key[len(prefix):], amount=int(value))
            for key, value in ctx.store.iterate(prefix)
        ))

    def get_module_balance(self, ctx: Context, module: str, denom: str) -> Coin:
        return self.get_balance(ctx, module_address(module), denom)

    def get_all_module_balances(self, ctx: Context, module: str) -> list[Coin]:
        return self.get_all_balances(ctx, module_address(module))

    def get_supply(self, ctx: Context, denom: str) -> Coin:
        raw = ctx.store.get(f"{_SUPPLY_PREFIX}{denom}")
        return Coin(denom=denom, amount=int(raw) if raw is not None else 0)

    # ── Transfers ─────────────────────────────────────────────

    def send(self, ctx: Context, sender: str, recipient: str, amounts: list[Coin]) -> None:
        normalized = coins(*amounts)
        for coin in normalized:
            self._sub_balance(ctx, sender, coin)
            self._add_balance(ctx, recipient, coin)
        if normalized:
            ctx.events.emit(
                "transfer", sender=sender, recipient=recipient,
                amount=",".join(str(c) for c in normalized),
            )

    def send_from_account_to_module(
        self, ctx: Context, sender: str, module: str, amounts: list[Coin],
    ) -> None:
        self.send(ctx, sender, module_address(module), amounts)

    def send_from_module_to_account(
        self, ctx: Context, module: str, recipient: str, amounts: list[Coin],
    ) -> None:
        self.send(ctx, module_address(module), recipient, amounts)

    def send_from_module_to_module(
        self, ctx: Context, sender: str, recipient: str, amounts: list[Coin],
    ) -> None:
        self.send(ctx, module_address(sender), module_address(recipient), amounts)

    # ── Supply ────────────────────────────────────────────────

    def mint_coins(self, ctx: Context, module: str, amounts: list[Coin]) -> None:
        for coin in coins(*amounts):
            self._add_balance(ctx, module_address(module), coin)
            self._set_supply(ctx, coin.denom, self.get_supply(ctx, coin.denom).amount + coin.amount)
            ctx.events.emit("coins_minted", module=module, amount=str(coin))
            log.debug("coins_minted", module=module, amount=str(coin))

    def burn_coins(self, ctx: Context, module: str, amounts: list[Coin]) -> None:
        for coin in coins(*amounts):
            self._sub_balance(ctx, module_address(module), coin)
            self._set_supply(ctx, coin.denom, self.get_supply(ctx, coin.denom).amount - coin.amount)
            ctx.events.emit("coins_burned", module=module, amount=str(coin))
            log.debug("coins_burned", module=module, amount=str(coin))

    def fund_account(self, ctx: Context, address: str, amounts: list[Coin]) -> None:
        """Mint straight into an account (genesis allocation, simulations)."""
        for coin in coins(*amounts):
            self._add_balance(ctx, address, coin)
            self._set_supply(ctx, coin.denom, self.get_supply(ctx, coin.denom).amount + coin.amount)

    # ── Internals ─────────────────────────────────────────────

    def _add_balance(self, ctx: Context, address: str, coin: Coin) -> None:
        current = self.get_balance(ctx, address, coin.denom).amount
        self._set_balance(ctx, address, coin.denom, current + coin.amount)

    def _sub_balance(self, ctx: Context, address: str, coin: Coin) -> None:
        current = self.get_balance(ctx, address, coin.denom).amount
        if current < coin.amount:
            raise InsufficientFunds(address, coin.denom, coin.amount, current)
        self._set_balance(ctx, address, coin.denom, current - coin.amount)

    def _set_balance(self, ctx: Context, address: str, denom: str, amount: int) -> None:
        key = f"{_BALANCE_PREFIX}{address}/{denom}"
        if amount == 0:
            ctx.store.delete(key)
        else:
            ctx.store.set(key, str(amount))

    def _set_supply(self, ctx: Context, denom: str, amount: int) -> None:
        ctx.store.set(f"{_SUPPLY_PREFIX}{denom}", str(amount))
