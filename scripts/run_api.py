import subprocess
import sys
import os
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from remit_tool.config.settings import get_settings


def main():
    settings = get_settings()
    os.chdir(settings.project_root)

    # Ensure src is in python path
    env = os.environ.copy()
    src_path = str(settings.project_root / "src")
    if "PYTHONPATH" in env:
        env["PYTHONPATH"] = f"{src_path}{os.pathsep}{env['PYTHONPATH']}"
    else:
        env["PYTHONPATH"] = src_path

    port = str(settings.api_port)

    print(f"Starting REMIT-AI API (FastAPI) on port {port}...")
    print(f"  Chat:   http://localhost:{port}/chat")
    print(f"  Health: http://localhost:{port}/health")
    try:
        subprocess.run([
            sys.executable, "-m", "uvicorn",
            "remit_tool.api.main:app",
            "--host", settings.api_host,
            "--port", port,
            "--reload"
        ], env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")

if __name__ == "__main__":
    main()
