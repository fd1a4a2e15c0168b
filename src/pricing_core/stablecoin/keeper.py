"""StablecoinKeeper — mint and burn the stablecoin against collateral and governance tokens.

Minting takes ``coll_ratio`` of the stable value in collateral and the rest
in governance tokens, both converted at their oracle TWAP against the stable
unit (1.0). Burning pays out the same split. Each leg carries a
``fee_ratio`` fee that is split between the ecosystem fund and the treasury.
Every amount is an integer token amount truncated toward zero.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from pricing_core import fixedpoint
from pricing_core.bank import BankKeeper
from pricing_core.context import Context
from pricing_core.errors import InsufficientFunds, InvalidCoin, InvalidParams, NotEnoughBalance
from pricing_core.logging import get_logger
from pricing_core.models.coin import Coin, coins
from pricing_core.models.pricefeed import pair_id
from pricing_core.models.stablecoin import (
    BurnStableResponse,
    MintStableResponse,
    MsgBurnStable,
    MsgMintStable,
    StablecoinParams,
)
from pricing_core.pricefeed.keeper import PricefeedKeeper

log = get_logger("stablecoin")

_PARAMS_KEY = "stablecoin/params"


@dataclass(frozen=True)
class Denoms:
    stable: str = "unusd"
    collateral: str = "uusdc"
    gov: str = "unibi"

    @property
    def collateral_market(self) -> str:
        return pair_id(self.collateral, self.stable)

    @property
    def gov_market(self) -> str:
        return pair_id(self.gov, self.stable)


@dataclass(frozen=True)
class ModuleAccounts:
    """Named ledger accounts the engine moves funds through."""

    module: str = "stablecoin"
    ecosystem_fund: str = "stablecoin_ef"
    treasury: str = "treasury"


class StablecoinKeeper:
    def __init__(
        self,
        bank: BankKeeper,
        pricefeed: PricefeedKeeper,
        denoms: Denoms | None = None,
        accounts: ModuleAccounts | None = None,
    ) -> None:
        self.bank = bank
        self.pricefeed = pricefeed
        self.denoms = denoms or Denoms()
        self.accounts = accounts or ModuleAccounts()

    # ── Params ────────────────────────────────────────────────

    def set_params(self, ctx: Context, params: StablecoinParams) -> None:
        ctx.store.set(_PARAMS_KEY, params.model_dump_json())

    def get_params(self, ctx: Context) -> StablecoinParams:
        raw = ctx.store.get(_PARAMS_KEY)
        return StablecoinParams() if raw is None else StablecoinParams.model_validate_json(raw)

    def get_coll_ratio(self, ctx: Context) -> Decimal:
        return self.get_params(ctx).coll_ratio

    def set_coll_ratio(self, ctx: Context, coll_ratio: Decimal | str) -> None:
        ratio = fixedpoint.to_dec(coll_ratio)
        if ratio < 0 or ratio > 1:
            raise InvalidParams(f"collateral ratio must be within [0, 1], got {ratio}")
        params = self.get_params(ctx).model_copy(update={"coll_ratio": ratio})
        self.set_params(ctx, params)
        log.info("coll_ratio_set", coll_ratio=str(ratio))

    # ── Supply ────────────────────────────────────────────────

    def get_supply_stable(self, ctx: Context) -> Coin:
        return self.bank.get_supply(ctx, self.denoms.stable)

    def get_supply_gov(self, ctx: Context) -> Coin:
        return self.bank.get_supply(ctx, self.denoms.gov)

    # ── Mint ──────────────────────────────────────────────────

    def mint_stable(self, ctx: Context, msg: MsgMintStable) -> MintStableResponse:
        msg.validate_basic()
        self._check_stable(msg.stable)
        amount = msg.stable.amount
        if amount == 0:
            return MintStableResponse(stable=msg.stable)

        with ctx.atomic() as tx:
            params = self.get_params(tx)
            coll_needed, gov_needed = self._split(tx, amount, params)
            coll_fee = fixedpoint.mul_truncate(coll_needed, params.fee_ratio)
            gov_fee = fixedpoint.mul_truncate(gov_needed, params.fee_ratio)

            for denom, needed in (
                (self.denoms.collateral, coll_needed + coll_fee),
                (self.denoms.gov, gov_needed + gov_fee),
            ):
                available = self.bank.get_balance(tx, msg.creator, denom).amount
                if available < needed:
                    raise NotEnoughBalance(denom, needed, available)

            self.bank.send_from_account_to_module(tx, msg.creator, self.accounts.module, [
                Coin(denom=self.denoms.collateral, amount=coll_needed + coll_fee),
                Coin(denom=self.denoms.gov, amount=gov_needed + gov_fee),
            ])
            # Governance tokens backing the mint leave circulation
            self.bank.burn_coins(tx, self.accounts.module, [Coin(denom=self.denoms.gov, amount=gov_needed)])
            self.bank.mint_coins(tx, self.accounts.module, [msg.stable])
            self.bank.send_from_module_to_account(tx, self.accounts.module, msg.creator, [msg.stable])

            fees = coins(
                Coin(denom=self.denoms.collateral, amount=coll_fee),
                Coin(denom=self.denoms.gov, amount=gov_fee),
            )
            self._distribute_fees(tx, fees, params)
            tx.events.emit(
                "mint_stable", creator=msg.creator, stable=str(msg.stable),
                collateral_used=coll_needed, gov_used=gov_needed,
            )

        get_logger("stablecoin", creator=msg.creator, block_height=ctx.block_height).info(
            "stable_minted",
            amount=amount,
            collateral_used=coll_needed, gov_used=gov_needed,
            collateral_fee=coll_fee, gov_fee=gov_fee,
        )
        return MintStableResponse(
            stable=msg.stable,
            used_coins=coins(
                Coin(denom=self.denoms.collateral, amount=coll_needed),
                Coin(denom=self.denoms.gov, amount=gov_needed),
            ),
            fees_paid=fees,
        )

    # ── Burn ──────────────────────────────────────────────────

    def burn_stable(self, ctx: Context, msg: MsgBurnStable) -> BurnStableResponse:
        msg.validate_basic()
        self._check_stable(msg.stable)
        amount = msg.stable.amount
        if amount == 0:
            return BurnStableResponse(
                collateral=Coin(denom=self.denoms.collateral, amount=0),
                gov=Coin(denom=self.denoms.gov, amount=0),
            )

        held = self.bank.get_balance(ctx, msg.creator, self.denoms.stable).amount
        if held < amount:
            raise InsufficientFunds(msg.creator, self.denoms.stable, amount, held)

        with ctx.atomic() as tx:
            params = self.get_params(tx)
            coll_gross, gov_gross = self._split(tx, amount, params)
            coll_fee = fixedpoint.mul_truncate(coll_gross, params.fee_ratio)
            gov_fee = fixedpoint.mul_truncate(gov_gross, params.fee_ratio)

            self.bank.send_from_account_to_module(tx, msg.creator, self.accounts.module, [msg.stable])
            self.bank.burn_coins(tx, self.accounts.module, [msg.stable])
            # Governance payout is newly issued; collateral comes out of the pool
            self.bank.mint_coins(tx, self.accounts.module, [Coin(denom=self.denoms.gov, amount=gov_gross)])

            collateral = Coin(denom=self.denoms.collateral, amount=coll_gross - coll_fee)
            gov = Coin(denom=self.denoms.gov, amount=gov_gross - gov_fee)
            self.bank.send_from_module_to_account(tx, self.accounts.module, msg.creator, [collateral, gov])

            fees = coins(
                Coin(denom=self.denoms.collateral, amount=coll_fee),
                Coin(denom=self.denoms.gov, amount=gov_fee),
            )
            self._distribute_fees(tx, fees, params)
            tx.events.emit(
                "burn_stable", creator=msg.creator, stable=str(msg.stable),
                collateral_out=collateral.amount, gov_out=gov.amount,
            )

        get_logger("stablecoin", creator=msg.creator, block_height=ctx.block_height).info(
            "stable_burned",
            amount=amount,
            collateral_out=collateral.amount, gov_out=gov.amount,
            collateral_fee=coll_fee, gov_fee=gov_fee,
        )
        return BurnStableResponse(collateral=collateral, gov=gov, fees_paid=fees)

    # ── Internals ─────────────────────────────────────────────

    def _check_stable(self, coin: Coin) -> None:
        if coin.denom != self.denoms.stable:
            raise InvalidCoin(self.denoms.stable, coin.denom)

    def _split(self, ctx: Context, amount: int, params: StablecoinParams) -> tuple[int, int]:
        """Token amounts worth ``amount`` stable, split by the collateral ratio."""
        ratio = params.coll_ratio
        coll_amount = 0
        gov_amount = 0
        if ratio > 0:
            coll_price = self.pricefeed.get_current_twap(ctx, self.denoms.collateral_market)
            coll_amount = fixedpoint.quo_truncate(fixedpoint.mul(amount, ratio), coll_price)
        if ratio < 1:
            gov_price = self.pricefeed.get_current_twap(ctx, self.denoms.gov_market)
            gov_amount = fixedpoint.quo_truncate(fixedpoint.mul(amount, fixedpoint.ONE - ratio), gov_price)
        return coll_amount, gov_amount

    def _distribute_fees(self, ctx: Context, fees: list[Coin], params: StablecoinParams) -> None:
        """Route ``ef_fee_ratio`` of each fee leg to the ecosystem fund, the rest to the treasury."""
        to_ef: list[Coin] = []
        to_treasury: list[Coin] = []
        for fee in fees:
            ef_amount = fixedpoint.mul_truncate(fee.amount, params.ef_fee_ratio)
            to_ef.append(Coin(denom=fee.denom, amount=ef_amount))
            to_treasury.append(Coin(denom=fee.denom, amount=fee.amount - ef_amount))
        self.bank.send_from_module_to_module(ctx, self.accounts.module, self.accounts.ecosystem_fund, to_ef)
        self.bank.send_from_module_to_module(ctx, self.accounts.module, self.accounts.treasury, to_treasury)
