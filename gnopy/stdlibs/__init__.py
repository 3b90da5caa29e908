# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
"""Host-side implementations that dialect standard-library imports are rewritten to."""
