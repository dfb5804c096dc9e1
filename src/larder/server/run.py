"""Console entry point that serves the Larder API with uvicorn."""

from __future__ import annotations

import os

import uvicorn


def _port_from_env(value: str | None) -> int:
    if not value:
        return 8000
    try:
        return int(value)
    except ValueError as exc:
        raise SystemExit(f"Invalid LARDER_SERVER_PORT '{value}': {exc}") from exc


def main() -> None:
    """Entry point used by the ``larder-server`` script."""

    host = os.environ.get("LARDER_SERVER_HOST", "127.0.0.1")
    port = _port_from_env(os.environ.get("LARDER_SERVER_PORT"))
    reload_enabled = os.environ.get("LARDER_SERVER_RELOAD") == "1"

    # log_config=None keeps the handlers installed by create_app().
    uvicorn.run(
        "larder.server.app:create_app",
        host=host,
        port=port,
        reload=reload_enabled,
        factory=True,
        log_config=None,
    )


if __name__ == "__main__":
    main()
