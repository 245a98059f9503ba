"""Main entry point for the content pipeline.

Usage:
    content-pipeline run TOPIC KEYWORD [options]   # Generate one piece of content
    content-pipeline help                          # Show this message

Run options:
    --secondary K [K ...]     Secondary keywords
    --words N                 Target word count (default 1500)
    --type T                  article | blog-post | guide | how-to
    --brand NAME              Brand name
    --url URL                 Brand website URL
    --notes TEXT              Additional notes for the planner
    --site-context-file PATH  Text file with verified site facts
    --output-dir DIR          Where to write .md/.html/.json (default: output)
    --stream                  Print events as NDJSON instead of progress lines
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional, Sequence

from dotenv import find_dotenv, load_dotenv

from content_pipeline.constants import CONTENT_TYPES
from content_pipeline.errors import InputValidationError
from content_pipeline.llm_client import TextModelClient, resolve_model
from content_pipeline.models import PipelineProgressEvent, PipelineResult
from content_pipeline.pipeline import ContentPipeline
from content_pipeline.streaming import StreamingAdapter
from content_pipeline.tools.file_writer import write_output

logger = logging.getLogger(__name__)


def setup_environment(banner_file=None) -> bool:
    """Load .env, configure logging and verify required keys."""
    load_dotenv(find_dotenv(usecwd=True))

    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "WARNING").upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        print("❌ Missing ANTHROPIC_API_KEY in .env file", file=banner_file)
        return False

    print(f"🔧 Model: {resolve_model()}", file=banner_file)
    print(f"🔑 Anthropic API Key: ...{api_key[-4:]}", file=banner_file)
    return True


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="content-pipeline run", description="Generate one piece of content.")
    parser.add_argument("topic")
    parser.add_argument("keyword")
    parser.add_argument("--secondary", nargs="+", default=[], metavar="K")
    parser.add_argument("--words", type=int, default=None, metavar="N")
    parser.add_argument("--type", dest="content_type", choices=CONTENT_TYPES, default=None)
    parser.add_argument("--brand", default=None, metavar="NAME")
    parser.add_argument("--url", default=None)
    parser.add_argument("--notes", default=None, metavar="TEXT")
    parser.add_argument("--site-context-file", default=None, metavar="PATH")
    parser.add_argument("--output-dir", default="output", metavar="DIR")
    parser.add_argument("--stream", action="store_true")
    return parser


def _print_progress(event: PipelineProgressEvent) -> None:
    icon = {"running": "⏳", "completed": "✅", "failed": "❌"}.get(event.status or "", "🏁")
    print(f"{icon} [{event.progress:3d}%] {event.message}")


class _StdoutTransport:
    def write(self, chunk: str) -> None:
        sys.stdout.write(chunk)
        sys.stdout.flush()

    def close(self) -> None:
        sys.stdout.flush()


def run(argv: Sequence[str]) -> int:
    """Run the full content pipeline."""
    args = build_parser().parse_args(argv)

    if not setup_environment(sys.stderr if args.stream else None):
        return 1

    site_context = None
    if args.site_context_file:
        try:
            with open(args.site_context_file, encoding="utf-8") as f:
                site_context = f.read()
        except OSError as e:
            print(f"❌ Cannot read site context file: {e}", file=sys.stderr if args.stream else None)
            return 1

    pipeline_input = {
        "topic": args.topic,
        "target_keyword": args.keyword,
        "secondary_keywords": args.secondary,
        "target_word_count": args.words,
        "content_type": args.content_type,
        "brand_name": args.brand,
        "website_url": args.url,
        "additional_notes": args.notes,
        "site_context": site_context,
    }
    pipeline = ContentPipeline(client=TextModelClient())

    if args.stream:
        adapter = StreamingAdapter(pipeline, _StdoutTransport())
        result: Optional[PipelineResult] = adapter.serve(pipeline_input)
    else:
        print("\n🚀 Starting Content Pipeline...")
        print("=" * 60 + "\n")
        try:
            result = pipeline.run(pipeline_input, on_progress=_print_progress)
        except InputValidationError as e:
            print(f"❌ {e}")
            return 1

    if result is None or not result.success:
        if not args.stream and result is not None:
            print(f"\n❌ {result.error}")
        return 1

    paths = write_output(result.final_output, args.output_dir, args.topic)
    if not args.stream:
        print(f"\n🏁 Pipeline complete in {result.duration:.1f}s")
        for path in paths:
            print(f"📄 {path}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """CLI entry point."""
    args = list(sys.argv[1:] if argv is None else argv) or ["help"]
    command = args[0].lower()

    if command == "run":
        return run(args[1:])
    if command == "help":
        print(__doc__)
        return 0

    print(f"Unknown command: {command}")
    print(__doc__)
    return 1


if __name__ == "__main__":
    sys.exit(main())
