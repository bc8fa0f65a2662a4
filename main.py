"""LLMings Dungeon — dev launcher. Starts the API server in watch mode."""

import argparse
import logging
import os
import signal
import subprocess
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).parent
load_dotenv(ROOT / ".env")

HOST = os.getenv("HOST", "0.0.0.0")
BACKEND_PORT = os.getenv("BACKEND_PORT", "13013")


def main():
    parser = argparse.ArgumentParser(description="LLMings Dungeon dev launcher")
    parser.add_argument("--data-dir", type=Path, default=None,
                        help="Data storage directory (default: ./data)")
    parser.add_argument("--reset", action="store_true",
                        help="Start today's daily run from scratch")
    parser.add_argument("--log-level", default="info",
                        choices=["debug", "info", "warning", "error"],
                        help="Log level for the server")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper())

    # Handle --reset: wipe today's daily run before the server picks it up
    if args.reset:
        from llmings.run_state import RunStore
        from llmings.storage import Storage
        store = RunStore(Storage(args.data_dir or ROOT / "data"))
        state = store.reset("daily")
        print(f"Fresh daily run for {state.date_key}: "
              + ", ".join(m.name for m in state.party))

    # Build env for the subprocess so the server picks up the same data dir
    env = os.environ.copy()
    if args.data_dir:
        env["DATA_DIR"] = str(args.data_dir.resolve())

    procs: list[subprocess.Popen] = []

    def shutdown(*_):
        print("\nShutting down...")
        for p in procs:
            p.terminate()
        for p in procs:
            p.wait()
        sys.exit(0)

    signal.signal(signal.SIGINT, shutdown)
    signal.signal(signal.SIGTERM, shutdown)

    print(f"Starting backend on http://localhost:{BACKEND_PORT} ...")
    procs.append(subprocess.Popen(
        [sys.executable, "-m", "uvicorn", "llmings.app:app", "--reload",
         "--host", HOST, "--port", BACKEND_PORT, "--log-level", args.log_level],
        cwd=ROOT, env=env,
    ))

    for p in procs:
        p.wait()


if __name__ == "__main__":
    main()
