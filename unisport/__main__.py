"""Allow ``python -m unisport``."""

import sys

from unisport.cli import main

sys.exit(main())
