"""Run the relay: ``python -m page_chat.relay`` or ``page-chat-relay``."""

from __future__ import annotations

import logging


def main() -> None:
    try:
        import uvicorn
        from dotenv import load_dotenv
    except ImportError:
        raise ImportError(
            "uvicorn and python-dotenv are required to run the relay. "
            "Install with: pip install page-chat[relay]"
        )

    load_dotenv()

    from page_chat.relay.app import create_app
    from page_chat.relay.config import RelaySettings

    settings = RelaySettings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger(__name__).info(
        "Relay starting on %s:%s (providers configured: %s)",
        settings.host,
        settings.port,
        ", ".join(sorted(settings.api_keys)) or "none",
    )
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
