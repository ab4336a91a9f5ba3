#!/usr/bin/env python3
"""cbhealth CLI entrypoint -- run without pip install.

Usage:
    python cbrun.py run /opt/scripts/DailyReport/cluster-config.json
    python cbrun.py --help

Suitable for a crontab entry on a host where the package is not installed.
"""

import sys
from pathlib import Path

# Add src/ to import path so the cbhealth package is importable
sys.path.insert(0, str(Path(__file__).resolve().parent / "src"))

from cbhealth.cli import app

if __name__ == "__main__":
    app()
