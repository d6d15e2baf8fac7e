#!/usr/bin/env python3
"""
Quiz relay entry point.

Usage:
    1. Start Chrome with debugging and log in to chat.deepseek.com
    2. Serve questions from the host:
           python -m quizrelay --host-url http://localhost:3000 --secret ... serve
    3. Or ask a single question from a JSON file:
           python -m quizrelay ask question.json
"""

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path

from .browser_connection import BrowserConnection, check_chrome_debugging, get_chrome_launch_command
from .channel import ConsoleChannel, HostChannel
from .config import CDPConfig, RelayConfig, config, load_selectors
from .errors import ConfigError
from .observer import ObservationState
from .utils.logging import console, logger, setup_logging, log_error
from .worker import RelayWorker, build_relay, wait_for_outcome


def _build_parser(defaults: RelayConfig) -> argparse.ArgumentParser:
    """Options default to the environment-backed settings in defaults."""
    parser = argparse.ArgumentParser(
        description="Relay quiz questions to DeepSeek chat and report the JSON answer"
    )
    parser.add_argument(
        "--cdp-url",
        type=str,
        default=defaults.cdp.cdp_url,
        help="Chrome DevTools endpoint"
    )
    parser.add_argument(
        "--selectors",
        type=str,
        default=os.getenv("RELAY_SELECTORS_FILE"),
        help="JSON file overriding selector lists"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=defaults.error.log_file,
        help="Log file path"
    )
    parser.add_argument(
        "--host-url",
        type=str,
        default=defaults.channel.host_url,
        help="Host application URL"
    )
    parser.add_argument(
        "--secret",
        type=str,
        default=defaults.channel.secret,
        help="Host bearer token"
    )

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Serve questions from the host (default)")

    ask = subparsers.add_parser("ask", help="Submit one question and print the response")
    ask.add_argument("question_file", type=str, help="JSON file with the question object")

    return parser


def _serve(args, relay_config: RelayConfig, selectors) -> int:
    if not relay_config.channel.secret:
        log_error("RELAY_SECRET is required")
        print("\nSet it in .env or pass --secret")
        return 1

    channel = HostChannel(
        relay_config.channel.host_url,
        secret=relay_config.channel.secret,
        timeout=relay_config.channel.request_timeout,
    )

    with BrowserConnection(relay_config.cdp) as browser:
        page = browser.get_chat_page()
        relay = build_relay(page, channel, relay_config, selectors)
        worker = RelayWorker(
            page,
            relay,
            channel,
            pump_interval_ms=relay_config.observation.pump_interval_ms,
            poll_interval=relay_config.channel.poll_interval,
        )
        return worker.run()


def _ask(args, relay_config: RelayConfig, selectors) -> int:
    try:
        question = json.loads(Path(args.question_file).read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log_error(f"Could not read question file: {e}")
        return 1

    channel = ConsoleChannel()

    with BrowserConnection(relay_config.cdp) as browser:
        page = browser.get_chat_page()
        relay = build_relay(page, channel, relay_config, selectors)

        ack = relay.handle_message({"type": "receiveQuestion", "question": question})
        console.print_json(json.dumps(ack))
        if not ack.get("received"):
            return 1

        outcome = wait_for_outcome(page, relay.observer, relay_config.observation.pump_interval_ms)

    if outcome is ObservationState.DELIVERED and channel.sent:
        return 0

    log_error(f"No answer received ({outcome.value})")
    return 1


def main(argv=None) -> int:
    """Main entry point."""
    args = _build_parser(config).parse_args(argv)
    command = args.command or "serve"

    setup_logging(args.log_file, logging.DEBUG if args.verbose else logging.INFO)

    try:
        selectors = load_selectors(args.selectors)
    except ConfigError as e:
        log_error(str(e))
        return 1

    relay_config = RelayConfig(
        cdp=CDPConfig(cdp_url=args.cdp_url),
        channel=replace(config.channel, host_url=args.host_url, secret=args.secret),
        error=replace(config.error, log_file=args.log_file),
        selectors=selectors,
    )

    if not check_chrome_debugging(args.cdp_url):
        log_error(f"Chrome debugging is not reachable at {args.cdp_url}")
        print(f"\nStart Chrome with:\n  {get_chrome_launch_command()}")
        return 1

    logger.debug(f"Running command: {command}")
    if command == "ask":
        return _ask(args, relay_config, selectors)
    return _serve(args, relay_config, selectors)


if __name__ == "__main__":
    sys.exit(main())
