# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""
Host stand-in for the dialect `std` package.

Translated code runs outside any chain, so everything that depends on the
execution context (caller, realm, height, banker) raises. The value types are
real so that code which only builds or compares them keeps working.
"""

from __future__ import annotations

from dataclasses import dataclass

SHIM_WARNING = "std: not available when running translated code on the host (no chain context)"


class ShimError(RuntimeError):
	pass


class Address(str):
	"""Bech32 account address."""

	def is_valid(self) -> bool:
		return self.startswith("g1") and len(self) == 40


@dataclass(frozen=True)
class Coin:
	denom: str
	amount: int

	def __str__(self) -> str:
		return f"{self.amount}{self.denom}"


class Coins(tuple):
	def amount_of(self, denom: str) -> int:
		return sum(c.amount for c in self if c.denom == denom)


def _unavailable(*_args: object, **_kwargs: object):
	raise ShimError(SHIM_WARNING)


AssertOriginCall = _unavailable
IsOriginCall = _unavailable
CurrentRealmPath = _unavailable
GetChainID = _unavailable
GetHeight = _unavailable
GetOrigSend = _unavailable
GetOrigCaller = _unavailable
PrevRealm = _unavailable
GetOrigPkgAddr = _unavailable
GetCallerAt = _unavailable
GetBanker = _unavailable
Emit = _unavailable
