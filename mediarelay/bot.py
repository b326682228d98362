# bot.py - process entry point: config, logging, database, polling
import asyncio
import logging
import sys

import asyncpg
from telegram.ext import Application, ApplicationBuilder

from mediarelay.archiver import Archiver
from mediarelay.config import Settings
from mediarelay.dispatcher import Dispatcher, error_handler
from mediarelay.errors import PersistenceError, StartupConfigError
from mediarelay.health import start_health_server
from mediarelay.membership import MembershipChecker
from mediarelay.store import DB_ERRORS, MediaStore

logger = logging.getLogger("mediarelay")


# ---------- Logging ----------
def setup_logging(level:str="INFO"):
    logging.basicConfig(level=getattr(logging, level, logging.INFO),
                        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s")
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ---------- Application ----------
def build_application(settings:Settings, store:MediaStore) -> Application:
    app = ApplicationBuilder().token(settings.bot_token).concurrent_updates(True).build()
    checker = MembershipChecker(app.bot, settings.required_channels)
    archiver = Archiver(app.bot, store, settings)
    dispatcher = Dispatcher(settings, store, checker, archiver)
    for handler in dispatcher.handlers():
        app.add_handler(handler)
    app.add_error_handler(error_handler)
    return app


# ---------- Main ----------
async def main(settings:Settings):
    logger.info("Starting media relay...")
    try:
        pool = await asyncpg.create_pool(settings.database_url, min_size=1, max_size=6)
    except DB_ERRORS as e:
        logger.critical(f"Could not connect to the database: {e}")
        raise SystemExit(1)
    try:
        store = MediaStore(pool)
        try:
            await store.init()
            logger.info(f"{await store.count()} media records on file")
        except PersistenceError as e:
            logger.critical(f"Database setup failed: {e}")
            raise SystemExit(1)

        httpd = start_health_server(settings.port)
        app = build_application(settings, store)
        try:
            await app.initialize(); await app.start(); await app.updater.start_polling()
            logger.info(f"Polling as @{app.bot.username}")
            await asyncio.Event().wait()
        finally:
            if app.updater.running:
                await app.updater.stop()
            if app.running:
                await app.stop()
            await app.shutdown()
            httpd.shutdown()
    finally:
        await pool.close()


def run():
    try:
        settings = Settings.from_env()
    except StartupConfigError as e:
        setup_logging()
        logger.critical(f"Invalid configuration: {e}")
        sys.exit(1)
    setup_logging(settings.log_level)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.info("Stopping...")


if __name__=="__main__":
    run()
