#!/usr/bin/env python3
"""
Social Marketer Video - Main Entry Point

Renders wisdom entries into videos through the Social Effects companion.

Usage:
    # Render one video, then stop the companion
    python main.py generate --title "Wisdom" --content "The fear of the Lord..."

    # Check whether the companion is reachable
    python main.py status
"""

import argparse
import asyncio
import logging
import sys

from core.config import get_config
from services.companion import SubprocessSupervisor
from services.video_generation import (
    GenerationClient,
    GenerationError,
    GenerationRequest,
    VideoGenerationOrchestrator,
)

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("socialmarketer")


def build_orchestrator() -> VideoGenerationOrchestrator:
    """Wire the orchestrator with its client and supervisor."""
    config = get_config()

    for issue in config.validate():
        logger.warning(f"Config: {issue}")

    def print_progress(phase: str, message: str):
        print(f"[{phase}] {message}")

    return VideoGenerationOrchestrator(
        client=GenerationClient(config=config),
        supervisor=SubprocessSupervisor(config=config),
        config=config,
        on_progress=print_progress,
    )


async def close_orchestrator(orchestrator: VideoGenerationOrchestrator):
    await orchestrator.client.close()
    if isinstance(orchestrator.supervisor, SubprocessSupervisor):
        await orchestrator.supervisor.close()


async def generate_video(
    title: str,
    content: str,
    content_type: str = "thought",
    source: str = "wisdombook.life",
    keep_running: bool = False,
) -> bool:
    """
    Render a single video.

    Args:
        title: Entry title
        content: Entry body text
        content_type: Entry category (e.g. "thought", "daily")
        source: Source label
        keep_running: Leave the companion running afterwards
    """
    orchestrator = build_orchestrator()
    request = GenerationRequest(
        title=title,
        content=content,
        content_type=content_type.lower(),
        source_label=source,
    )

    try:
        if keep_running:
            result = await orchestrator.generate(request)
        else:
            result = await orchestrator.run_full_workflow(request)
        print(result.video_path)
        return True
    except GenerationError as e:
        logger.error(f"Video generation failed [{e.error_code}]: {e}")
        return False
    finally:
        await close_orchestrator(orchestrator)


async def check_status() -> bool:
    orchestrator = build_orchestrator()
    try:
        health = await orchestrator.health()
        base_url = orchestrator.config.companion.base_url
        print(f"Social Effects: {base_url}")
        print(f"Status: {'Online' if health['social_effects'] else 'Offline'}")
        return health["social_effects"]
    finally:
        await close_orchestrator(orchestrator)


def main():
    parser = argparse.ArgumentParser(
        description="Social Marketer - companion video generation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Render a video and stop the companion afterwards
    python main.py generate --title "On Patience" --content "..."

    # Render and leave the companion running for the next call
    python main.py generate --title "On Patience" --content "..." --keep-running

    # Check the companion
    python main.py status
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    gen_parser = subparsers.add_parser("generate", help="Generate a video")
    gen_parser.add_argument("--title", "-t", required=True, help="Entry title")
    gen_parser.add_argument("--content", "-c", required=True, help="Entry content")
    gen_parser.add_argument("--content-type", default="thought", help="Entry category")
    gen_parser.add_argument("--source", "-s", default="wisdombook.life", help="Source label")
    gen_parser.add_argument(
        "--keep-running",
        action="store_true",
        help="Do not stop the companion after rendering",
    )

    subparsers.add_parser("status", help="Check companion status")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    if args.command == "generate":
        ok = asyncio.run(
            generate_video(
                title=args.title,
                content=args.content,
                content_type=args.content_type,
                source=args.source,
                keep_running=args.keep_running,
            )
        )
    else:
        ok = asyncio.run(check_status())

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
