"""Allow ``python -m probewatch``."""

import sys

from probewatch.app import main

sys.exit(main())
