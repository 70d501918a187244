"""CLI for enhancing stored articles with reference-backed rewrites."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from article_enhancer.citations import format_markdown
from article_enhancer.config import ConfigError, load_config
from article_enhancer.pipeline import open_pipeline
from article_enhancer.report import format_summary, write_report
from article_enhancer.store import StoreError


logger = logging.getLogger(__name__)


EPILOG = """\
Commands:
  enhance [limit]    Enhance articles (default: 5)
  test               Test all components
  help               Show this help message

Examples:
  python -m article_enhancer                 # Enhance 5 articles
  python -m article_enhancer enhance 10      # Enhance 10 articles
  python -m article_enhancer test            # Test components

Environment Variables:
  API_BASE_URL          Article store API URL
  OPENROUTER_API_KEY    Generative model API key (required)
  OPENROUTER_MODEL      Model name override
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="article_enhancer",
        description="Rewrite stored articles using top-ranking reference articles.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("command", nargs="?", default="enhance", choices=["enhance", "test", "help"])
    parser.add_argument("limit", nargs="?", type=int, default=None, help="Max articles to enhance.")
    parser.add_argument("--config", default="config.yaml", help="YAML tunables file (default: config.yaml).")
    parser.add_argument(
        "--all",
        action="store_true",
        help="Consider already enhanced articles too (their enhancement is replaced).",
    )
    parser.add_argument("--report", default=None, help="Upsert per-article outcomes into this CSV file.")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    for name in ("aiohttp", "asyncio"):
        logging.getLogger(name).setLevel(logging.WARNING)


async def _enhance(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    limit = args.limit if args.limit and args.limit > 0 else cfg.default_limit
    skip_enhanced = cfg.skip_enhanced and not args.all

    logger.info("Enhancing up to %d articles", limit)
    async with open_pipeline(cfg) as pipeline:
        report = await pipeline.run(limit=limit, skip_enhanced=skip_enhanced)

    print(format_summary(report))

    first = report.first_enhanced()
    if first is not None and first.citations:
        print("\nCitation Formatting Example:")
        print("=" * 50)
        print(format_markdown(first.citations))

    if args.report:
        write_report(args.report, report)
        logger.info("Saved run report to %s", args.report)

    return 0


async def _test(args: argparse.Namespace) -> int:
    cfg = load_config(args.config)
    async with open_pipeline(cfg) as pipeline:
        results = await pipeline.test_components()

    all_passed = all(results.values())
    print("=" * 50)
    for name, ok in results.items():
        print(f"{name}: {'PASSED' if ok else 'FAILED'}")
    print("All tests passed!" if all_passed else "Some tests failed")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "help":
        parser.print_help()
        return 0

    _setup_logging(args.verbose)

    runner = _test if args.command == "test" else _enhance
    try:
        return asyncio.run(runner(args))
    except (ConfigError, StoreError) as e:
        logger.error("%s", e)
        return 1
    except Exception:
        logger.exception("Pipeline failed")
        return 1


if __name__ == "__main__":
    sys.exit(main())
