"""CLI entry point: python -m trendtracker."""

import argparse
import json
from pathlib import Path

from .log import set_verbose


def _print_items(items, limit: int = 15):
    for i, item in enumerate(items[:limit], 1):
        marker = " (curated)" if item.is_fallback else ""
        print(f"  {i:2d}. [{item.source_name}] {item.title} [{item.score}]{marker}")


def _print_ranked(ranked):
    for entry in ranked:
        item = entry.item
        marker = " (curated)" if item.is_fallback else ""
        method = "AI" if entry.ai_selected else "manual"
        print(f"  {entry.viral_rank:2d}. [{item.source_name}] {item.title} "
              f"[viral {entry.viral_score}, {method}]{marker}")


def cmd_run(args):
    from .engine import TrendEngine

    result = TrendEngine().run()

    print("\n  Summary:")
    for name, count in result.summary.items():
        print(f"    {name:<14} {count}")

    if result.clusters:
        print(f"\n  Cross-source topics ({len(result.clusters)}):\n")
        for i, cluster in enumerate(result.clusters[:5], 1):
            kinds = ", ".join(sorted(k.value for k in cluster.source_kinds))
            print(f"  {i}. {cluster.representative_title}")
            print(f"      {kinds} | confidence {cluster.confidence:.2f} | score {cluster.total_score}")

    print("\n  Top viral items:\n")
    _print_ranked(result.ranked)

    if args.json:
        out = Path(args.json)
        out.write_text(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
        print(f"\n  Saved: {out}")


def cmd_viral(args):
    from .engine import TrendEngine

    report = TrendEngine().detect_viral_news()
    print(f"\n  {report['viral_news']} viral of {report['total_news']} news items "
          f"({report['analysis_time']}s)\n")
    for item, assessment in report["items"]:
        tw, rd = assessment.twitter, assessment.reddit
        estimated = " est." if tw.estimated else ""
        print(f"  [{assessment.viral_score:3d}] {item.title}")
        print(f"        tweets {tw.count}{estimated} (avg {tw.average_impressions} impressions), "
              f"posts {rd.count} ({rd.total_upvotes} upvotes, {rd.good_engagement_count} engaged)")


def cmd_fetch(args):
    from .engine import TrendEngine

    engine = TrendEngine()
    fetchers = {
        "news": engine.fetch_news,
        "videos": engine.fetch_videos,
        "trends": engine.fetch_search_trends,
        "twitter": engine.fetch_social_a,
        "reddit": engine.fetch_social_b,
    }
    items = fetchers[args.source]()
    if not items:
        print(f"  No {args.source} items.")
        return
    print(f"\n  {args.source} ({len(items)} items):\n")
    _print_items(items, limit=len(items))


def main():
    parser = argparse.ArgumentParser(
        description="Trend tracker: multi-source trend aggregation and viral validation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd")

    # run
    p_run = sub.add_parser("run", help="Fetch every source, cross-match and rank")
    p_run.add_argument("--json", default=None, help="Write the full result to this file")

    # viral
    sub.add_parser("viral", help="Validate top news items against social signals")

    # fetch
    p_fetch = sub.add_parser("fetch", help="Fetch a single source")
    p_fetch.add_argument("source", choices=["news", "videos", "trends", "twitter", "reddit"])

    args = parser.parse_args()

    if args.verbose:
        set_verbose(True)

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "run":
        cmd_run(args)
    elif args.cmd == "viral":
        cmd_viral(args)
    elif args.cmd == "fetch":
        cmd_fetch(args)


if __name__ == "__main__":
    main()
