"""Direct Flask development server."""

from __future__ import annotations

from config import load_config
from core import setup_logger
from core.logger import parse_level
from web import create_app

if __name__ == "__main__":
    config = load_config()
    setup_logger(name="", level=parse_level(config.log_level), colored=True)

    app = create_app(config)
    app.run(host=config.web_host, port=config.web_port, debug=config.debug)
