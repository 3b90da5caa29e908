# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""gnopy: precompiles Gno-flavoured Python (`.gno`) into host Python."""

__version__ = "0.1.0"
