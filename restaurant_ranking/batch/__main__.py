"""
Score every restaurant in a snapshot against one profile.

Usage:
    python -m restaurant_ranking.batch --snapshot data/restaurants.json
    python -m restaurant_ranking.batch --snapshot data/restaurants.json --limit 50 --report out/report.csv
"""
from __future__ import annotations

import argparse
import asyncio
import contextlib
import json
import logging
import signal
from dataclasses import replace
from pathlib import Path

from ..embeddings.provider import build_provider
from ..errors import ConfigurationError, NotFound
from ..scoring.ambiance import AmbianceScorer
from ..scoring.profiles import PROFILES, get_profile
from ..tags.aggregator import TagAggregator
from ..tags.store import load_snapshot, save_snapshot
from .config import DEFAULT_BATCH_CONFIG
from .report import write_report
from .runner import BatchRunner
from .stats import RunState

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute restaurant profile scores from tag embeddings")
    parser.add_argument("--snapshot", type=Path, required=True, help="JSON snapshot of restaurants and tags")
    parser.add_argument("--output", type=Path, help="Where to write the scored snapshot (default: --snapshot)")
    parser.add_argument("--profile", default="ambiance", choices=sorted(PROFILES))
    parser.add_argument("--provider", default="openai", choices=["openai", "local"])
    parser.add_argument("--page-size", type=int, default=DEFAULT_BATCH_CONFIG.page_size)
    parser.add_argument("--concurrency", type=int, default=DEFAULT_BATCH_CONFIG.concurrency)
    parser.add_argument("--limit", type=int, help="Only process the first N restaurants")
    parser.add_argument("--start-from", type=int, default=0, help="Skip the first N restaurants")
    parser.add_argument("--skip-existing", action="store_true", help="Skip restaurants that already have the score")
    parser.add_argument("--report", type=Path, help="CSV file with one row per restaurant")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


async def _run(runner: BatchRunner):
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        # Not available on Windows event loops.
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, runner.request_stop)
    return await runner.run()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = replace(
        DEFAULT_BATCH_CONFIG,
        page_size=args.page_size,
        concurrency=args.concurrency,
        limit=args.limit,
        start_from=args.start_from,
        skip_existing=args.skip_existing,
    )

    try:
        profile = get_profile(args.profile)
        store = load_snapshot(args.snapshot)
        provider = build_provider(args.provider)
        scorer = AmbianceScorer(TagAggregator(store), provider)
        runner = BatchRunner(store, scorer, store, profile=profile, config=config)
    except (ConfigurationError, NotFound) as exc:
        logger.error("%s", exc)
        return 1

    summary = asyncio.run(_run(runner))

    if summary.state is not RunState.FATAL:
        out_path = save_snapshot(store, args.output or args.snapshot)
        logger.info("Saved scored snapshot to %s", out_path)
    if args.report:
        logger.info("Wrote report to %s", write_report(summary, args.report))

    print(json.dumps(summary.as_dict(), indent=2))
    return 1 if summary.state is RunState.FATAL else 0


if __name__ == "__main__":
    raise SystemExit(main())
