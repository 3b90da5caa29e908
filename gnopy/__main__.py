# vim: set noexpandtab: -*- indent-tabs-mode: t -*-
from gnopy.cli import main

raise SystemExit(main())
