#!/usr/bin/env python
"""
Run the Streamlit REMIT-AI quote application.

The working directory is the project root from settings and the port comes
from REMIT_UI_PORT (default 8501).

Usage:
    python scripts/run_app.py
"""
import os
import subprocess
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / 'src'))

from remit_tool.config.settings import get_settings, get_ui_script


def main():
    settings = get_settings()
    ui_path = get_ui_script()

    if not ui_path.exists():
        print(f"ERROR: UI module not found at {ui_path}")
        sys.exit(1)

    env = os.environ.copy()
    src_path = str(ui_path.parent.parent.parent)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [src_path, env.get("PYTHONPATH")]))

    cmd = [
        sys.executable, '-m', 'streamlit', 'run', str(ui_path),
        '--server.port', str(settings.ui_port),
    ]
    print(f"Starting REMIT-AI UI on http://localhost:{settings.ui_port}")
    print(f"  Project root: {settings.project_root}")
    print(f"  Rate source:  {'live (jittered)' if settings.live_rates else 'fixed'} around {settings.base_rate:,.0f}")

    try:
        subprocess.run(cmd, cwd=str(settings.project_root), env=env)
    except KeyboardInterrupt:
        print("\nApplication stopped.")


if __name__ == "__main__":
    main()
