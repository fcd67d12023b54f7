# SPDX-License-Identifier: MIT
"""Allow running fbbridge as ``python -m fbbridge``."""

import sys

from fbbridge.cli import main

sys.exit(main())
