# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from __future__ import annotations

import pytest

from gnopy.stdlibs import stdshim


def test_value_types_work_without_a_chain() -> None:
	addr = stdshim.Address("g1" + "q" * 38)
	assert addr.is_valid()
	assert not stdshim.Address("cosmos1xyz").is_valid()
	coins = stdshim.Coins((stdshim.Coin("ugnot", 10), stdshim.Coin("ugnot", 5), stdshim.Coin("foo", 1)))
	assert coins.amount_of("ugnot") == 15
	assert str(stdshim.Coin("ugnot", 10)) == "10ugnot"


@pytest.mark.parametrize("fn", [stdshim.GetHeight, stdshim.GetOrigCaller, stdshim.PrevRealm, stdshim.GetBanker])
def test_chain_bound_calls_raise(fn) -> None:
	with pytest.raises(stdshim.ShimError):
		fn()
