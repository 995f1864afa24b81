"""Allow running as ``python -m memdiag``."""

import sys

from memdiag.cli import main

sys.exit(main())
