"""Command line entry point.

Usage:
    pfp-rotator generate path/to/photo.jpg 10
    pfp-rotator serve --port 3000
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pfp_rotator.config import load_backend_config
from pfp_rotator.exceptions import RotatorError
from pfp_rotator.logging_config import setup_logging
from pfp_rotator.storage import ImageStore
from pfp_rotator.variations import build_producer, validate_count

logger = logging.getLogger(__name__)


async def generate(base_photo: Path, count: int) -> int:
    """
    Generate ``count`` variations of ``base_photo`` into STORAGE_PATH.

    Returns:
        Number of images written
    """
    config = load_backend_config()
    validate_count(count)
    if not base_photo.is_file():
        raise FileNotFoundError(f"Base photo not found: {base_photo}")

    store = ImageStore(config.storage_path)
    store.ensure()
    producer = build_producer(config)

    variations = await producer.produce(base_photo.read_bytes(), count)
    written = [store.save(v.data, v.index, v.label) for v in variations]
    store.write_metadata(written)

    logger.info(f"Generated {len(written)}/{count} images in {store.root}")
    for image in written:
        print(store.root / image.filename)
    return len(written)


def serve(host: Optional[str], port: Optional[int], reload: bool) -> None:
    """Run the backend with uvicorn."""
    import uvicorn

    config = load_backend_config()
    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=host or config.host,
        port=port or config.port,
        reload=reload
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pfp-rotator", description="Profile picture rotator")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    gen = subparsers.add_parser("generate", help="Generate variations from a base photo")
    gen.add_argument("base_photo", type=Path, help="Path to the base photo")
    gen.add_argument("count", type=int, nargs="?", default=10, help="Number of variations (1-50)")

    srv = subparsers.add_parser("serve", help="Run the backend service")
    srv.add_argument("--host", default=None)
    srv.add_argument("--port", type=int, default=None)
    srv.add_argument("--reload", action="store_true", help="Reload on code changes")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("pfp_rotator", level=logging.DEBUG if args.verbose else logging.INFO)
    setup_logging("app", level=logging.DEBUG if args.verbose else logging.INFO)

    if args.command == "serve":
        serve(args.host, args.port, args.reload)
        return 0

    try:
        written = asyncio.run(generate(args.base_photo, args.count))
    except (RotatorError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1
    return 0 if written else 1


if __name__ == "__main__":
    sys.exit(main())
