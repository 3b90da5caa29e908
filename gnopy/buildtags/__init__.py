# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Build constraint expressions (`#gno:build ...`) shared by codegen and the host build driver."""

from gnopy.buildtags.constraint import (
	BUILD_MARKER_PREFIX,
	BuildConstraintError,
	eval_constraint,
	find_build_constraint,
	parse_constraint,
	satisfied,
)

__all__ = [
	"BUILD_MARKER_PREFIX",
	"BuildConstraintError",
	"eval_constraint",
	"find_build_constraint",
	"parse_constraint",
	"satisfied",
]
