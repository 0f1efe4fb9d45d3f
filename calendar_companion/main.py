"""Main entry point for Calendar Companion."""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from .companion import CalendarCompanion, build_companion
from .config.config_loader import load_config
from .conversation.orchestrator import SubmitStatus
from .utils.logging import setup_logging

logger = logging.getLogger(__name__)

HELP_TEXT = """Commands:
  /new            start a new chat
  /sessions       list your chats
  /switch <id>    open a chat
  /delete <id>    delete a chat
  /quit           exit"""


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Chat with your Google Calendar")
    parser.add_argument("-c", "--config", default="config.yaml", help="Path to the YAML configuration")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv, -vvv)")
    parser.add_argument("--serve", action="store_true", help="Run the JSON web API instead of the console chat")
    return parser.parse_args(argv)


def print_messages(companion: CalendarCompanion, replies_only: bool = False) -> None:
    """Print the active chat, or only what follows the last user message."""
    messages = companion.display_messages()
    if replies_only:
        last_user = max((i for i, m in enumerate(messages) if m.sender == "user"), default=-1)
        messages = messages[last_user + 1:]
    for message in messages:
        prefix = "you" if message.sender == "user" else "bot"
        print(f"{prefix}> {message.text}")


async def print_sessions(companion: CalendarCompanion) -> None:
    active = companion.active_session
    for summary in await companion.list_sessions():
        marker = "*" if active and active.session_id == summary.session_id else " "
        print(f"{marker} {summary.session_id}  {summary.name}")


async def run_console(companion: CalendarCompanion) -> None:
    """Interactive chat on stdin/stdout."""
    await companion.bootstrap()
    print(HELP_TEXT)
    print_messages(companion)

    while True:
        try:
            line = await asyncio.to_thread(input, "you> ")
        except EOFError:
            break
        line = line.strip()
        if not line:
            continue

        command, _, argument = line.partition(" ")
        argument = argument.strip()

        if command == "/quit":
            break
        elif command == "/new":
            await companion.new_session()
            print_messages(companion)
        elif command == "/sessions":
            await print_sessions(companion)
        elif command == "/switch" and argument:
            await companion.switch_session(argument)
            print_messages(companion)
        elif command == "/delete" and argument:
            deleted = await companion.delete_session(argument)
            print("Deleted." if deleted else "No such chat.")
            print_messages(companion)
        elif command.startswith("/"):
            print(HELP_TEXT)
        else:
            status = await companion.submit_user_message(line)
            if status == SubmitStatus.REJECTED:
                print("(message not sent)")
            else:
                print_messages(companion, replies_only=True)


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(verbosity=min(args.verbose, 3))

    logger.info("=" * 60)
    logger.info("Calendar Companion - Starting")
    logger.info("=" * 60)

    logger.info(f"[1/3] Loading configuration from: {args.config}")
    try:
        config = load_config(args.config)
        config.validate()
        logger.info("✓ Configuration loaded successfully")
    except Exception as e:
        logger.error(f"✗ Failed to load configuration: {e}")
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        return 1

    logger.info(f"[2/3] Initializing companion")
    logger.info(f"  Provider: {config.llm.provider}")
    logger.info(f"  Timezone: {config.calendar.timezone}")
    logger.info(f"  Datetime injection: {'enabled' if config.agent.inject_datetime else 'disabled'}")
    companion = build_companion(config)
    logger.info("✓ Companion ready")

    logger.info("[3/3] Starting " + ("web server" if args.serve else "console chat"))
    try:
        if args.serve:
            from .web.server import CompanionWebServer

            server = CompanionWebServer(companion, host=config.web.host, port=config.web.port)
            print(f"Serving on {server.get_url()}")
            await server.start()
        else:
            await run_console(companion)
    except KeyboardInterrupt:
        logger.info("Shutdown initiated")
    finally:
        await companion.shutdown()
        logger.info("✓ Calendar Companion shutdown complete")

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
