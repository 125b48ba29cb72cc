"""Allow ``python -m diaglog``."""

import sys

from diaglog.cli import main

sys.exit(main())
