"""Allow running closeapps with ``python -m closeapps``."""

import sys

from closeapps.cli import main

sys.exit(main())
