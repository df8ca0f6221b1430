import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError

from .core.config import load_config
from .core.constants import CONVERTED_SUFFIX, SHARED_DB_RETRIES, SHARED_DB_RETRY_DELAY
from .core.conversion.cache import LocalCache, SharedCache, TwoTierCache
from .core.conversion.converter import LLMConverter
from .core.conversion.models import ConversionResult, ConversionStatus, SourceUnit
from .core.conversion.orchestrator import ConversionOrchestrator
from .core.conversion.report import generate_conversion_report
from .core.db import DatabaseManager, get_database_manager, wait_for_db
from .core.gateway import build_llm


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
    logging.getLogger("backoff").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


def _read_units(paths: List[str]) -> List[SourceUnit]:
    units = []
    for path in paths:
        p = Path(path)
        units.append(SourceUnit(
            identifier=p.name,
            text=p.read_text(encoding="utf-8", errors="replace"),
        ))
    return units


def _write_outputs(paths: List[str], results: List[ConversionResult]) -> None:
    for path, result in zip(paths, results):
        if result.status == ConversionStatus.ERROR:
            logger.warning(f"Skipping output for {path}: conversion failed")
            continue
        target = Path(path).with_suffix(CONVERTED_SUFFIX)
        target.write_text(result.converted_text + "\n", encoding="utf-8")
        logger.info(f"Wrote {target}")


def _connect_shared_tier(db_manager: DatabaseManager) -> Optional[SharedCache]:
    """Shared cache tier, or None when its database cannot be used."""
    if not wait_for_db(db_manager, retries=SHARED_DB_RETRIES, delay=SHARED_DB_RETRY_DELAY):
        logger.warning("Shared cache database unreachable. Continuing with the local cache only.")
        return None
    try:
        db_manager.init_db()
    except SQLAlchemyError as e:
        logger.warning(f"Shared cache table unavailable ({e}). Continuing with the local cache only.")
        return None
    return SharedCache(db_manager)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for SQLShift."""
    parser = argparse.ArgumentParser(description="SQLShift - Sybase to Oracle PL/SQL conversion")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser("convert", help="Convert Sybase SQL files")
    convert.add_argument("files", nargs="+", help="Sybase SQL files to convert")
    convert.add_argument("--config", type=str, default=None, help="Path to YAML config")
    convert.add_argument("--model", type=str, default=None, help="Model identifier")
    convert.add_argument("--provider", type=str, default=None,
                         choices=["ollama", "openai", "anthropic", "gemini"],
                         help="LLM provider")
    convert.add_argument("--no-cache", action="store_true", help="Bypass both cache tiers")
    convert.add_argument("--report", type=str, default=None, help="Write Markdown report here")
    convert.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level"
    )
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    conversion_config, llm_config = load_config(args.config)
    if args.model:
        conversion_config = replace(conversion_config, model_id=args.model)
        llm_config = replace(llm_config, model=args.model)
    if args.provider:
        llm_config = replace(llm_config, provider=args.provider)
    if args.no_cache:
        conversion_config = replace(conversion_config, cache_enabled=False)

    # Shared tier only when DATABASE_URL is configured
    shared = None
    db_manager = get_database_manager()
    if db_manager:
        shared = _connect_shared_tier(db_manager)
    else:
        logger.warning("DATABASE_URL not set. Shared conversion cache will be unavailable.")

    cache = TwoTierCache(LocalCache(), shared, conversion_config.promote_shared_hits)
    llm = build_llm(llm_config.provider, llm_config.model, llm_config.temperature)
    orchestrator = ConversionOrchestrator(LLMConverter(llm), cache, conversion_config)

    units = _read_units(args.files)
    logger.info(f"Converting {len(units)} file(s) with {llm_config.provider}/{conversion_config.model_id}")
    results = asyncio.run(orchestrator.convert_many(units))

    _write_outputs(args.files, results)

    report = generate_conversion_report(results)
    if args.report:
        Path(args.report).write_text(report, encoding="utf-8")
        logger.info(f"Report written to {args.report}")
    else:
        print(report)

    logger.info(f"LLM usage: {llm.get_metrics()}")
    if db_manager:
        db_manager.dispose()

    return 1 if any(r.status == ConversionStatus.ERROR for r in results) else 0


if __name__ == "__main__":
    sys.exit(main())
