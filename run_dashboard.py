#!/usr/bin/env python3
"""Launcher for the BC Money dashboard.

Runs Streamlit on ``bc_money/dashboard.py`` with the project root on the
import path.
"""

import subprocess
import sys
from pathlib import Path

project_root = Path(__file__).parent.resolve()
dashboard_path = project_root / "bc_money" / "dashboard.py"

if __name__ == "__main__":
    sys.path.insert(0, str(project_root))
    raise SystemExit(subprocess.run([
        sys.executable, "-m", "streamlit", "run",
        str(dashboard_path),
    ], cwd=project_root).returncode)
