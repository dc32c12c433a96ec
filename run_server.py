"""Flask server that stays alive"""

import sys

if sys.platform == "win32":
    sys.stdout.reconfigure(encoding="utf-8")

from app.workers.server_cli import main

if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
