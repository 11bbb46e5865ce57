#!/usr/bin/env python3
"""
CLI script for running the ai-i18n pipeline.

This script provides a command-line interface for extracting localizable
texts from source files with an LLM, rewriting the sources with generated
keys, writing the primary locale file and translating it into the display
language. It also exposes the response cache maintenance operations.

Usage:
    python run_i18n.py --all
    python run_i18n.py --all --concurrency 5 --skip-translation
    python run_i18n.py --translate-only --target ja-JP
    python run_i18n.py --cache-stats

Author: ai-i18n contributors
License: MIT
"""

import sys
from pathlib import Path

# Allow running without package installation
_script_dir = Path(__file__).parent
_project_root = _script_dir.parent
_src_dir = _project_root / "src"
if _src_dir.exists() and str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import argparse
import asyncio
import dataclasses
import logging
from typing import Any, Dict


def parse_arguments() -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        argparse.Namespace: The parsed arguments.
    """
    parser = argparse.ArgumentParser(
        description="Extract, key and translate UI texts with an LLM",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Process every configured source file and translate the result
    python run_i18n.py --all

    # Use a specific configuration file and five concurrent files
    python run_i18n.py --all --config i18n.config.json --concurrency 5

    # Skip the translation step
    python run_i18n.py --all --skip-translation

    # Translate the existing primary locale file only
    python run_i18n.py --translate-only --target ja-JP

    # Show or clear the response cache
    python run_i18n.py --cache-stats
    python run_i18n.py --clear-cache
        """
    )

    # Main operation modes (mutually exclusive)
    mode_group = parser.add_mutually_exclusive_group(required=True)
    mode_group.add_argument(
        "--all",
        action="store_true",
        help="Run the full pipeline (extraction, keys, rewrite, translation)"
    )
    mode_group.add_argument(
        "--translate-only",
        action="store_true",
        help="Only translate an existing locale file"
    )
    mode_group.add_argument(
        "--cache-stats",
        action="store_true",
        help="Show response cache statistics only"
    )
    mode_group.add_argument(
        "--cleanup-cache",
        action="store_true",
        help="Remove expired response cache entries"
    )
    mode_group.add_argument(
        "--clear-cache",
        action="store_true",
        help="Remove every response cache entry"
    )
    mode_group.add_argument(
        "--test-connection",
        action="store_true",
        help="Check that the configured provider answers"
    )

    # Configuration options
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON configuration file (default: search i18n.config.json, .i18nrc.json)"
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Number of files processed at the same time (default: from config)"
    )

    # Translation options
    parser.add_argument(
        "--skip-translation",
        action="store_true",
        help="Skip the translation step after extraction"
    )
    parser.add_argument(
        "--source",
        type=str,
        default=None,
        help="Locale file to translate with --translate-only (default: primary locale file)"
    )
    parser.add_argument(
        "--target",
        type=str,
        default=None,
        help="Target locale for --translate-only (default: display_language)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file for --translate-only (default: from locale file pattern)"
    )

    # Other options
    parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable live progress display"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output"
    )

    return parser.parse_args()


def print_cache_stats(stats: Dict[str, Any], logger) -> None:
    """Print response cache statistics."""
    if not stats:
        logger.info("Response cache is disabled")
        return

    logger.info("=" * 60)
    logger.info("Response Cache Statistics")
    logger.info("=" * 60)
    logger.info(f"Cache file: {stats['cache_file']}")
    logger.info(f"Entries: {stats['entries']:,} (max {stats['max_entries']:,})")
    logger.info(f"Hit rate: {stats['hit_rate']:.1%} ({stats['hits']} hits, {stats['misses']} misses)")
    logger.info("=" * 60)


async def run_pipeline(orchestrator, args: argparse.Namespace, logger) -> int:
    """
    Run the full pipeline.

    Args:
        orchestrator: Orchestrator built from the configuration.
        args: Parsed command-line arguments.
        logger: Logger instance.

    Returns:
        int: Exit code (0 when every file was processed).
    """
    from ai_i18n.utils.progress import ProgressDisplay

    config = orchestrator.config
    logger.info("Starting i18n extraction...")
    logger.info(f"  Locale: {config.locale} -> {config.display_language}")
    logger.info(f"  Concurrency: {config.concurrency}")
    logger.info(f"  Translation: {'disabled' if args.skip_translation else 'enabled'}")

    display = None
    if orchestrator.tracker is not None:
        display = ProgressDisplay(orchestrator.tracker)
        display.start()

    try:
        stats = await orchestrator.process_all(translate=not args.skip_translation)
    finally:
        if display is not None:
            display.stop()

    if display is not None:
        display.print_summary(stats)

    for warning in stats.warnings:
        logger.warning(warning)

    if stats.failed_units:
        logger.warning(f"{len(stats.failed_units)} files failed: {', '.join(stats.failed_units)}")
        return 1

    logger.info("Extraction completed successfully!")
    return 0


async def run_translation(orchestrator, args: argparse.Namespace, logger) -> int:
    """Translate an existing locale file."""
    config = orchestrator.config
    source = args.source or orchestrator.writer.locale_file_path(config.locale)
    target = args.target or config.display_language

    result = await orchestrator.translate_locale_file(source, target, output=args.output)
    logger.info(f"Translated {len(result.values) - len(result.degraded_keys)} of {len(result.values)} texts")
    if result.failed_batches:
        logger.warning(f"{result.failed_batches} batches failed; their texts were kept untranslated")
        return 1
    return 0


async def run(args: argparse.Namespace, logger) -> int:
    """Dispatch the selected operation."""
    from ai_i18n.config.logging_config import level_from_name, set_log_level
    from ai_i18n.config.schema import load_config, validate_config
    from ai_i18n.processing.orchestrator import Orchestrator
    from ai_i18n.utils.progress import ProgressTracker

    config = load_config(args.config)
    if not args.verbose:
        set_log_level(level_from_name(config.log_level))
    if args.concurrency is not None:
        config = dataclasses.replace(config, concurrency=args.concurrency)
        validate_config(config)

    tracker = None
    if args.all and not args.no_progress:
        tracker = ProgressTracker(title="i18n - Processing Files")

    orchestrator = Orchestrator.from_config(config, tracker=tracker)

    # Cache-only modes
    if args.cache_stats:
        print_cache_stats(orchestrator.cache_stats(), logger)
        return 0

    if args.cleanup_cache:
        removed = await orchestrator.cleanup_cache()
        logger.info(f"Removed {removed} expired cache entries")
        return 0

    if args.clear_cache:
        await orchestrator.clear_cache()
        return 0

    if args.test_connection:
        ok = await orchestrator.client.test_connection()
        return 0 if ok else 1

    # Translate-only mode
    if args.translate_only:
        return await run_translation(orchestrator, args, logger)

    # Full pipeline mode
    if args.all:
        return await run_pipeline(orchestrator, args, logger)

    # Should not reach here
    logger.error("No operation specified")
    return 1


def main() -> int:
    """
    Main entry point for the i18n CLI.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    args = parse_arguments()

    # Set up logging
    from ai_i18n.config.logging_config import setup_logging, get_logger
    from ai_i18n.core.errors import I18nError, is_recoverable

    setup_logging(level=logging.DEBUG if args.verbose else logging.INFO)
    logger = get_logger(__name__)

    try:
        return asyncio.run(run(args, logger))

    except I18nError as e:
        logger.error(str(e))
        return 1 if is_recoverable(e) else 2

    except KeyboardInterrupt:
        logger.warning("Run interrupted by user")
        return 130

    except Exception as e:
        logger.error(f"Run failed with error: {str(e)}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
