"""
Main entry point for the Volume Bot.
"""

import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI
from volumebot.api.routes import router
from volumebot.config.settings import settings
from volumebot.core.chains.gateway import build_gateway
from volumebot.core.scheduler import ExecutionScheduler
from volumebot.core.session_store import SessionStore
from volumebot.core.state_machine import SessionStateMachine
from volumebot.core.token_info import TokenInfoClient
from volumebot.core.validator import PreconditionValidator
from volumebot.interfaces.telegram_bot import TelegramBot
from volumebot.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Volume Bot")

    store = SessionStore()
    gateway = build_gateway()
    token_client = TokenInfoClient()
    app.state.store = store
    app.state.bot = None

    try:
        await token_client.initialize()

        validator = PreconditionValidator(gateway)
        scheduler = ExecutionScheduler(gateway)

        def build_machine(messenger):
            return SessionStateMachine(store, messenger, gateway, token_client, validator, scheduler)

        bot = TelegramBot(build_machine)
        await bot.start_polling()
        app.state.bot = bot

        logger.info("Volume Bot started successfully")

    except Exception as e:
        logger.error("Failed to start application", error=str(e))
        sys.exit(1)

    yield

    # Shutdown
    logger.info("Shutting down Volume Bot")

    try:
        if app.state.bot:
            await app.state.bot.stop()
        await token_client.close()
        await gateway.close()

        logger.info("Volume Bot shutdown complete")

    except Exception as e:
        logger.error("Error during shutdown", error=str(e))


# Create FastAPI application
app = FastAPI(
    title="Volume Bot",
    description="Telegram volume bot for Solana, BSC and Ethereum tokens",
    version="1.0.0",
    lifespan=lifespan
)

# Include health routes
app.include_router(router)


def main():
    import uvicorn

    logger.info("Starting Volume Bot server", port=settings.api_port)

    uvicorn.run(
        "volumebot.main:app",
        host="0.0.0.0",
        port=settings.api_port,
        reload=False,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
