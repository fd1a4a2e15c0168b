"""Collateralised stablecoin mint/burn engine."""

from pricing_core.stablecoin.keeper import Denoms, ModuleAccounts, StablecoinKeeper

__all__ = ["Denoms", "ModuleAccounts", "StablecoinKeeper"]
