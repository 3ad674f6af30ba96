"""
Run HTML Showing with uvicorn.

    python -m html_showing --host 0.0.0.0 --port 8000

Storage and limits come from the environment, see PreviewConfig.from_env().
"""
import argparse
import logging

import uvicorn

from .config import PreviewConfig


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="html_showing", description="Shareable code previews")
    p.add_argument("--host", default="127.0.0.1", help="Host (default: 127.0.0.1)")
    p.add_argument("--port", default=8000, type=int, help="Port (default: 8000)")
    p.add_argument("--reload", action="store_true", help="Reload on code changes")
    p.add_argument("--log-level", default=None, help="Overrides HTML_SHOWING_LOG_LEVEL")
    return p


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    config = PreviewConfig.from_env()
    level = (args.log_level or config.log_level).upper()

    logging.basicConfig(level=level, format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    logging.getLogger(__name__).info(
        f"Serving {config.site_title} on http://{args.host}:{args.port} (store={config.store_backend})"
    )

    uvicorn.run(
        "html_showing.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=level.lower(),
    )


if __name__ == "__main__":
    main()
