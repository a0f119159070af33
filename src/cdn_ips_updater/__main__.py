"""Allow running the updater with ``python -m cdn_ips_updater``."""

import sys

from cdn_ips_updater.cli import main

sys.exit(main())
