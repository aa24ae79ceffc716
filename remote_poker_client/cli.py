"""Command line interface for the remote poker client."""

from __future__ import annotations

import argparse
import logging
import pathlib
import signal
import sys
from typing import Optional

from dotenv import load_dotenv

from .config import ClientConfig
from .decision import DecisionPipeline
from .gateway import HttpGameGateway
from .logging_utils import EventSink, NDJSONLogger
from .parser import ResponseParser
from .runtime import AgentRuntime, OpenAIAgentRuntime, ScriptedAgentRuntime
from .scheduler import PollingScheduler

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Connect an LLM agent to a remote poker table")
    parser.add_argument("--config", default=None, help="Path to a client config (YAML or JSON)")
    parser.add_argument("--api-url", default=None, help="Poker server base URL (overrides POKER_API_URL)")
    parser.add_argument("--api-key", default=None, help="Poker server API key (overrides POKER_API_KEY)")
    parser.add_argument("--agent-name", default=None, help="Player name used at the table")
    parser.add_argument("--interval", type=float, default=None, help="Poll interval in seconds (2-5)")
    parser.add_argument("--event-log", default=None, help="Append session events to this NDJSON file")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Do not call the language model; always answer CHECK",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (e.g. DEBUG, INFO, WARNING).",
    )
    return parser.parse_args(argv)


def build_runtime(config: ClientConfig) -> AgentRuntime:
    if config.dry_run:
        return ScriptedAgentRuntime(config.agent_name or "PokerBot")
    return OpenAIAgentRuntime(name=config.agent_name)


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # keep the HTTP client libraries quiet unless debugging
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        config = ClientConfig.load(
            args.config,
            overrides={
                "api_base_url": args.api_url,
                "api_key": args.api_key,
                "agent_name": args.agent_name,
                "poll_interval_s": args.interval,
                "event_log": args.event_log,
                "dry_run": args.dry_run,
            },
        )
    except (OSError, ValueError) as exc:
        print(f"[CLI] invalid configuration: {exc}", file=sys.stderr)
        return 2

    runtime = build_runtime(config)
    journal: Optional[EventSink] = None
    if config.event_log:
        journal = NDJSONLogger(pathlib.Path(config.event_log), agent_name=runtime.agent_name)

    gateway = HttpGameGateway(config.api_base_url, config.api_key, timeout=config.request_timeout_s)
    pipeline = DecisionPipeline(runtime, parser=ResponseParser(config.default_raise_amount))
    scheduler = PollingScheduler(
        gateway,
        pipeline,
        interval_s=config.poll_interval_s,
        create_game_when_empty=config.create_game_when_empty,
        journal=journal,
    )
    signal.signal(signal.SIGTERM, lambda signum, frame: scheduler.request_stop())
    logger.info("[CLI] connecting %s to %s", runtime.agent_name, config.api_base_url)

    try:
        scheduler.run_forever()
    except KeyboardInterrupt:
        logger.info("[CLI] interrupted")
    finally:
        scheduler.stop()
        gateway.close()
        if journal is not None:
            journal.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
