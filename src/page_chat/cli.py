"""Command-line driver: ask about a page, list or clear stored histories."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from page_chat.conversation.session import (
    clear_history,
    clear_page,
    index_url,
    open_session,
    submit_question,
)
from page_chat.conversation.store import ConversationStore
from page_chat.exceptions import PageChatError
from page_chat.llm.orchestrator import ChatOrchestrator
from page_chat.llm.providers import RELAY_PROVIDERS, ProviderName, get_provider
from page_chat.relay.client import RelayClient
from page_chat.storage.sqlite import SqliteKeyValueStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="page-chat", description=__doc__)
    parser.add_argument("--db", help="History database path")
    parser.add_argument("--relay", help="Relay base URL")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    ask = sub.add_parser("ask", help="Ask a question about a page")
    ask.add_argument("url")
    ask.add_argument("question")
    ask.add_argument(
        "--provider",
        default=ProviderName.OPENAI.value,
        choices=[p.value for p in ProviderName],
    )
    ask.add_argument("--title", help="Page title to use if the page cannot be fetched")
    ask.add_argument("--reindex", action="store_true", help="Fetch the page again")

    sub.add_parser("history", help="List pages with stored conversations")

    clear = sub.add_parser("clear", help="Clear one page's messages, or everything")
    clear.add_argument("url", nargs="?")

    ping = sub.add_parser("ping", help="Check which providers the relay can reach")
    ping.add_argument("--provider", choices=[p.value for p in RELAY_PROVIDERS])

    return parser


async def _run(args: argparse.Namespace) -> int:
    store = ConversationStore(SqliteKeyValueStore(args.db))
    relay = RelayClient(args.relay)

    if args.command == "ask":
        provider = get_provider(args.provider)
        session = await open_session(store, args.url)
        if session.record.snapshot is None or args.reindex:
            session = await index_url(store, relay, args.url, title=args.title)
        message = await submit_question(
            session, args.question, store, ChatOrchestrator(relay), provider
        )
        if message is None:
            return 1
        print(message.content)
        return 1 if message.is_error else 0

    if args.command == "history":
        for record in await store.load_all():
            print(f"{record.title}\t{len(record.turns())} messages\t{record.url}")
        return 0

    if args.command == "clear":
        if args.url:
            await clear_page(store, await open_session(store, args.url))
        else:
            await clear_history(store)
        return 0

    if args.command == "ping":
        names = [args.provider] if args.provider else [p.value for p in RELAY_PROVIDERS]
        for name in names:
            status = "Connected" if await relay.ping(name) else "Disconnected"
            print(f"{get_provider(name).label} ({status})")
        return 0

    return 2


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(_run(args))
    except PageChatError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
