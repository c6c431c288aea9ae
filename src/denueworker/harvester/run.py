"""
Harvester CLI - Dump DENUE establishments for León.

Usage:
    python -m denueworker.harvester.run --mode=fast
    python -m denueworker.harvester.run --mode=full
    python -m denueworker.harvester.run --mode=full --limit=10000 --sector=46

Environment Variables:
    INEGI_TOKEN - DENUE API token (required)
    FETCH_TIMEOUT_MS - Absolute timeout per request (default 30000)
    THROTTLE_MS - Base pause between requests (default 500)
    DENUE_OUTPUT_DIR - Where artifacts are written (default ./data)
    LOG_LEVEL - Root logging level (default INFO; --verbose forces DEBUG)
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from denueworker.config import WorkerConfig

from .config import HarvestConfig
from .orchestrator import run_harvest

logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Dump DENUE establishments around León",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--mode", choices=["fast", "full"], default="fast", help="3x3 or full lattice"
    )
    parser.add_argument("--limit", type=_positive_int, help="Cap on output rows")
    parser.add_argument(
        "--sector", default="0", help="Sector code filter (default: 0 = all)"
    )
    parser.add_argument(
        "--city-km",
        "--cityKm",
        dest="city_km",
        type=float,
        help="Half-width of the tiled area in km (default: 8 fast, 18 full)",
    )
    parser.add_argument(
        "--step-km",
        "--stepKm",
        dest="step_km",
        type=float,
        default=5.0,
        help="Distance between query centres in km (default: 5)",
    )
    parser.add_argument(
        "--seed-center",
        action="store_true",
        help="Query the city centre once before the sweep",
    )
    parser.add_argument("--out-dir", help="Output directory (default: DENUE_OUTPUT_DIR)")
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose logging"
    )
    return parser


def setup_logging(verbose: bool, level: str = "INFO") -> None:
    """Configure root logging; --verbose always wins over LOG_LEVEL."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        worker_config = WorkerConfig.from_env()
    except ValueError as e:
        setup_logging(args.verbose)
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(args.verbose, worker_config.log_level)
    if not worker_config.inegi_token:
        logger.error("INEGI_TOKEN is not set (put it in .env without quotes)")
        return 1

    try:
        harvest_config = HarvestConfig(
            mode=args.mode,
            limit=args.limit,
            sector=args.sector,
            city_km=args.city_km,
            step_km=args.step_km,
            seed_center=args.seed_center,
        )
    except ValidationError as e:
        parser.error(str(e))

    logger.info(
        f"Timeout: {worker_config.fetch_timeout_ms}ms | "
        f"Base delay: {worker_config.throttle_ms}ms"
    )

    try:
        result = asyncio.run(
            run_harvest(
                harvest_config,
                token=worker_config.inegi_token,
                base_url=worker_config.denue_api_url,
                output_dir=args.out_dir or worker_config.denue_output_dir,
                timeout_s=worker_config.fetch_timeout_s,
                base_delay_ms=worker_config.throttle_ms,
                user_agent=worker_config.denue_user_agent,
            )
        )
        logger.debug(f"Harvest result: {result}")
    except KeyboardInterrupt:
        logger.info("Harvest interrupted")
        return 1
    except Exception as e:
        logger.exception(f"Harvest failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
