"""Allow running the daemon with ``python -m statsdaemon``."""

import sys

from statsdaemon.cli import main

sys.exit(main())
