"""Lightweight HTTP server exposing the three functions locally.

Routes mirror the Netlify function paths. Routes accept every method:
method gating is the handlers' job.
"""

import asyncio
import logging
import signal
from typing import Optional

from aiohttp import web

from kitbridge.config.settings import get_config
from kitbridge.functions.base import FunctionEvent
from kitbridge.payments import (
    create_checkout_session,
    handle_webhook,
    verify_checkout_session,
)

logger = logging.getLogger(__name__)

FUNCTIONS_PREFIX = "/.netlify/functions"


async def checkout_endpoint(request: web.Request) -> web.Response:
    """Handle /create-checkout-session."""
    event = await FunctionEvent.from_request(request)
    return create_checkout_session(event).to_web_response()


async def webhook_endpoint(request: web.Request) -> web.Response:
    """Handle /stripe-webhook.

    The raw body is passed through byte-for-byte for signature verification.
    """
    event = await FunctionEvent.from_request(request)
    response = await handle_webhook(event)
    return response.to_web_response()


async def status_endpoint(request: web.Request) -> web.Response:
    """Handle /verify-checkout-session."""
    event = await FunctionEvent.from_request(request)
    return verify_checkout_session(event).to_web_response()


async def create_app() -> web.Application:
    """Create aiohttp application with the function routes.

    Returns:
        Configured aiohttp Application
    """
    app = web.Application()
    app.router.add_route("*", f"{FUNCTIONS_PREFIX}/create-checkout-session", checkout_endpoint)
    app.router.add_route("*", f"{FUNCTIONS_PREFIX}/stripe-webhook", webhook_endpoint)
    app.router.add_route("*", f"{FUNCTIONS_PREFIX}/verify-checkout-session", status_endpoint)
    return app


async def run_server(shutdown_event: Optional[asyncio.Event] = None) -> None:
    """Run the server until shutdown signal.

    Args:
        shutdown_event: Optional event to signal shutdown
    """
    config = get_config()
    app = await create_app()

    runner = web.AppRunner(app)
    await runner.setup()

    site = web.TCPSite(runner, "0.0.0.0", config.server_port)
    await site.start()

    logger.info(f"Function server listening on port {config.server_port}")

    if shutdown_event:
        await shutdown_event.wait()
    else:
        await asyncio.Event().wait()

    logger.info("Shutting down function server...")
    await runner.cleanup()


def serve() -> None:
    """Run the function server until SIGTERM/SIGINT is received.

    Logging is configured by the caller (kitbridge.main).
    """
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    shutdown_event = asyncio.Event()

    def signal_handler(sig, frame):
        logger.info(f"Received signal {sig}")
        loop.call_soon_threadsafe(shutdown_event.set)

    signal.signal(signal.SIGTERM, signal_handler)
    signal.signal(signal.SIGINT, signal_handler)

    try:
        loop.run_until_complete(run_server(shutdown_event=shutdown_event))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    finally:
        loop.close()
        logger.info("Function server stopped")

