from __future__ import annotations

import argparse
import logging
import os

from app import create_app

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Serve the watering API with the Flask development server."""
    parser = argparse.ArgumentParser(prog="plantcare-server")
    parser.add_argument("--host", default=os.environ.get("FLASK_RUN_HOST", "0.0.0.0"))
    parser.add_argument("--port", type=int, default=int(os.environ.get("FLASK_RUN_PORT", 5000)))
    args = parser.parse_args(argv)

    app = create_app()
    logger.info("Server starting on http://%s:%s", args.host, args.port)
    try:
        app.run(host=args.host, port=args.port, debug=False, use_reloader=False)
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
    return 0


if __name__ == "__main__":
    import sys

    raise SystemExit(main(sys.argv[1:]))
