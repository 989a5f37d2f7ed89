"""Allow ``python -m tagweave``."""

import sys

from tagweave.cli import main

sys.exit(main())
