#!/usr/bin/env python3
"""AI News Agent - CLI entrypoint for turning today's AI news into social posts."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .agent import NewsAgent
from .config import TIMEFRAME_LABELS, AgentConfig, config_from_env
from .fetchers import get_available_providers, get_provider
from .models import Post, RunResult
from .persistence import MemorySeenStore, SeenStore, create_seen_store
from .utils import generate_filename

logger = logging.getLogger(__name__)


def apply_overrides(config: AgentConfig, args: argparse.Namespace) -> AgentConfig:
    """Apply command-line overrides on top of the environment configuration."""
    search_updates = {}
    if args.keywords:
        search_updates["keywords"] = args.keywords
    if args.timeframe:
        search_updates["timeframe"] = args.timeframe
    if args.provider:
        search_updates["provider"] = args.provider

    updates = {}
    if search_updates:
        updates["search"] = config.search.model_copy(update=search_updates)
    if args.seen_file:
        updates["seen_backend"] = "json"
        updates["seen_path"] = args.seen_file
    return config.model_copy(update=updates) if updates else config


def build_seen_store(config: AgentConfig, dry_run: bool) -> SeenStore:
    """Create the seen store; a dry run reads the real store but never writes it."""
    store = create_seen_store(config.seen_backend, config.seen_path)
    if dry_run:
        return MemorySeenStore(store.load())
    return store


def print_posts(posts: List[Post]) -> None:
    print("\n" + "=" * 80)
    print("GENERATED POSTS - READY TO COPY & PASTE")
    print("=" * 80)
    for i, post in enumerate(posts, 1):
        print(f"\nPOST {i} ({post.style.value.upper()}) - {post.character_count} characters")
        print("-" * 60)
        print(post.content)
        print("-" * 60)
        print(f"Source: {post.article_source} | Style: {post.style.value} | Generator: {post.generator}")
        print(f"Hashtags: {', '.join(post.hashtags)}")


def save_posts(posts: List[Post], out_dir: Path) -> List[Path]:
    """Write each post to '<out_dir>/YYYY-MM-DD-<slug>-<n>-<style>.txt'.

    ``n`` is the post's 1-based position, so posts about the same article
    never share a file.

    Raises:
        OSError: If a file cannot be written.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for i, post in enumerate(posts, 1):
        suffix = f"-{i}-{post.style.value}"
        filepath = out_dir / generate_filename(post.article_title or post.source_url, suffix=suffix)
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(post.content)
        paths.append(filepath)
    return paths


def print_summary(result: RunResult) -> None:
    summary = result.summary
    print("\n" + "=" * 60)
    print("RUN SUMMARY")
    print(f"  Articles found: {summary.articles_found}")
    print(f"  Posts generated: {summary.posts_generated}")
    if summary.sources:
        print(f"  Sources: {', '.join(summary.sources)}")
    if summary.styles:
        print(f"  Styles: {', '.join(summary.styles)}")
    if result.analysis and result.analysis.overall_trend:
        print(f"  Trend: {result.analysis.overall_trend}")
    print(f"  Runtime: {result.runtime_ms} ms")
    print("=" * 60)


async def run_agent(agent: NewsAgent) -> RunResult:
    try:
        return await agent.generate()
    finally:
        await agent.aclose()


def main(argv: Optional[List[str]] = None):
    """Main entry point for the AI News Agent CLI."""
    available = get_available_providers()

    parser = argparse.ArgumentParser(
        description="AI News Agent - Discover AI news and write social posts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Available providers: {', '.join(available)}

Examples:
  # Default keywords, past day, DuckDuckGo
  python -m ai_news_agent

  # Custom keywords over the past week, saving posts to ./posts
  python -m ai_news_agent --keywords "OpenAI" "AI regulation" --timeframe w --out-dir posts

  # Try a run without updating the seen-articles file
  python -m ai_news_agent --dry-run
""",
    )
    parser.add_argument(
        "--keywords",
        type=str,
        nargs="+",
        default=None,
        help="Keywords to search for (default: AI_NEWS_KEYWORDS or built-in list)",
    )
    parser.add_argument(
        "--timeframe",
        type=str,
        default=None,
        choices=sorted(TIMEFRAME_LABELS),
        help="Initial recency window: d (day), w (week), m (month)",
    )
    parser.add_argument(
        "--provider",
        type=str,
        default=None,
        choices=available,
        help="Search provider (default: AI_NEWS_PROVIDER or duckduckgo)",
    )
    parser.add_argument(
        "--seen-file",
        type=str,
        default=None,
        help="Path of the seen-articles JSON file",
    )
    parser.add_argument(
        "--out-dir",
        type=str,
        default=None,
        help="Directory to save each post as a text file",
    )
    parser.add_argument(
        "--list-providers",
        action="store_true",
        help="List all search providers and exit",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Run the pipeline without marking articles as seen",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )

    args = parser.parse_args(argv)

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    try:
        config = apply_overrides(config_from_env(), args)
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}")
        sys.exit(1)

    if args.list_providers:
        print("Available providers:")
        for name in available:
            provider = get_provider(name, config)
            if provider:
                status = "✓" if provider.is_available() else "✗ (missing API key)"
                print(f"  {name}: {provider.description} [{status}]")
        return

    provider = get_provider(config.search.provider, config)
    if provider and not provider.is_available():
        print(provider.get_missing_key_message())

    if not config.llm.api_key:
        print("Warning: no generative backend key set - using local analysis and post templates")

    print("=" * 60)
    print("AI NEWS AGENT - Finding today's AI news")
    print("=" * 60)
    print(f"  Provider: {config.search.provider}")
    print(f"  Keywords: {', '.join(config.search.keywords)}")
    print(f"  Timeframe: {TIMEFRAME_LABELS[config.search.timeframe]}")
    if args.dry_run:
        print("  Dry run: seen articles will not be updated")

    agent = NewsAgent(config, seen_store=build_seen_store(config, args.dry_run))
    result = asyncio.run(run_agent(agent))

    if not result.success:
        print(f"\nError: {result.error}")
        if result.message:
            print(f"  {result.message}")
        if result.posts:
            print_posts(result.posts)
        print_summary(result)
        sys.exit(1)

    print_posts(result.posts)

    if args.out_dir:
        try:
            paths = save_posts(result.posts, Path(args.out_dir))
        except (OSError, UnicodeEncodeError) as e:
            print(f"Error: Failed to write posts to '{args.out_dir}': {e}")
            sys.exit(1)
        for path in paths:
            print(f"  Saved: {path}")

    print_summary(result)


if __name__ == "__main__":
    main()
