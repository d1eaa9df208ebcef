from __future__ import annotations

import logging

import uvicorn

from renderhub.config import runtime_config


def main() -> None:
    level = runtime_config.get_log_level()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = runtime_config.get_port()
    logging.getLogger(__name__).info(f"Render server starting on port {port}")
    uvicorn.run("renderhub.app:app", host=runtime_config.get_host(), port=port, log_level=level.lower())


if __name__ == "__main__":
    main()
