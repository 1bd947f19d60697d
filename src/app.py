"""Application entry point for the repowatch update checker."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.git_api import GitApi
from adapters.html_renderer import HtmlRenderer
from adapters.local_checkouts import LocalCheckoutDiscovery
from adapters.sqlite_state_store import SQLiteStateStore
from adapters.telegram_delivery import TelegramDelivery, TelegramRequester
from client import build_client, start_bot
from core.branches import BranchCache, resolve_default_branches
from core.checker import CheckCycleController
from core.config import CodeUpdateConfig
from core.dedup import KEY_ROOT, DedupEngine
from core.delivery import DeliveryFanOut
from core.fetcher import FetchOrchestrator
from core.models import RenderedArtifact
from core.ports import DeliveryPort

NAME = "REPOWATCH"
FONT = "tarty-1"

NO_UPDATES_REPLY = "No new commits or releases found."


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(config: dict) -> list[str]:
    redact_cfg = config.get("redact", {}) if config else {}
    if not redact_cfg.get("enabled", False):
        return []
    values = []
    for name in redact_cfg.get("patterns", []):
        value = os.getenv(name)
        if value:
            values.append(value)
    return sorted(set(values), key=len, reverse=True)


def _configure_logging() -> None:
    config = settings.LOGGING or {}
    if not config.get("enabled", False):
        return

    load_dotenv()
    level_name = str(config.get("level", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    secrets = _collect_redaction_values(config)
    formatter = _RedactingFormatter(secrets, fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    if config.get("console", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        path = file_cfg.get("path", "logs/repowatch.log")
        if not os.path.isabs(path):
            path = os.path.join(settings.PROJECT_ROOT, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        max_bytes = int(file_cfg.get("max_bytes", 5 * 1024 * 1024))
        backup_count = int(file_cfg.get("backup_count", 5))
        file_handler = RotatingFileHandler(
            path,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    logging.basicConfig(level=level, handlers=handlers)
    # httpx logs every request at INFO, which would drown the cycle summary.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))


class _ConfigHolder:
    """Keeps the current config; branch resolution swaps in a pinned copy."""

    def __init__(self, config: CodeUpdateConfig) -> None:
        self.current = config

    def __call__(self) -> CodeUpdateConfig:
        return self.current


class _ConsoleRequester:
    """Requester for the ``check`` command: prints instead of replying."""

    requester_id = "cli"

    def __init__(self, output_dir: str) -> None:
        self._output_dir = output_dir

    async def reply(self, text: str) -> None:
        print(text)

    async def reply_artifact(self, artifact: RenderedArtifact) -> None:
        print(f"Rendered {artifact.filename} into {self._output_dir}")


def _build_controller(
    holder: _ConfigHolder,
    api: GitApi,
    storage: SQLiteStateStore,
    branch_cache: BranchCache,
    transport: Optional[DeliveryPort],
) -> CheckCycleController:
    fetcher = FetchOrchestrator(api, DedupEngine(storage), branch_cache)
    delivery = DeliveryFanOut(
        HtmlRenderer(settings.TEMPLATE_DIR, settings.OUTPUT_DIR),
        transport,
        send_delay=holder.current.send_delay_seconds,
    )
    return CheckCycleController(holder, fetcher, delivery, LocalCheckoutDiscovery(settings.CHECKOUT_DIRS))


async def _prepare(api: GitApi, branch_cache: BranchCache) -> tuple[_ConfigHolder, SQLiteStateStore]:
    logger = logging.getLogger(__name__)
    storage = SQLiteStateStore(settings.DB_PATH)
    storage.init_db()
    logger.info("%s dedup markers stored", storage.count_keys(KEY_ROOT))

    holder = _ConfigHolder(settings.CODE_UPDATE)
    logger.info("%s repository groups are loaded", len(holder.current.groups))
    holder.current = await resolve_default_branches(holder.current, api, branch_cache)
    return holder, storage


async def _scheduled_loop(controller: CheckCycleController, interval_minutes: int) -> None:
    logger = logging.getLogger(__name__)
    while True:
        try:
            await controller.check_updates(scheduled=True)
        except Exception:
            logger.exception("Scheduled update check failed")
        await asyncio.sleep(interval_minutes * 60)


def _command_pattern(command: str) -> str:
    # Accept both "/cmd" and "/cmd@BotName".
    return rf"^{re.escape(command)}(?:@\w+)?\s*$"


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting repowatch")

    client = build_client()
    client.loop.run_until_complete(start_bot(client))

    api = GitApi(timeout=settings.CODE_UPDATE.request_timeout_seconds)
    branch_cache = BranchCache()
    holder, storage = client.loop.run_until_complete(_prepare(api, branch_cache))
    controller = _build_controller(holder, api, storage, branch_cache, TelegramDelivery(client))

    # On-demand checks always report the current state and reply in place.
    @client.on(events.NewMessage(incoming=True, pattern=_command_pattern(settings.COMMAND)))
    async def handler(event) -> None:
        try:
            total = await controller.check_updates(scheduled=False, requester=TelegramRequester(event))
            if total is not False and not total:
                await event.reply(NO_UPDATES_REPLY)
        except Exception:
            logger.exception("Error while handling on-demand check")

    client.loop.create_task(_scheduled_loop(controller, holder.current.interval_minutes))
    logger.info(
        "Client connected. Checking every %s minutes, listening for %s...",
        holder.current.interval_minutes,
        settings.COMMAND,
    )
    try:
        client.run_until_disconnected()
    finally:
        client.loop.run_until_complete(api.aclose())


def _check() -> None:
    _print_banner()
    _configure_logging()

    async def _run_check() -> None:
        api = GitApi(timeout=settings.CODE_UPDATE.request_timeout_seconds)
        try:
            branch_cache = BranchCache()
            holder, storage = await _prepare(api, branch_cache)
            controller = _build_controller(holder, api, storage, branch_cache, transport=None)
            total = await controller.check_updates(
                scheduled=False,
                requester=_ConsoleRequester(settings.OUTPUT_DIR),
            )
            if total is not False:
                print(f"{total} updates found.")
        finally:
            await api.aclose()

    asyncio.run(_run_check())


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="repowatch")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the scheduled checker and the Telegram bot")
    subparsers.add_parser(
        "check",
        help="Run one on-demand check and write the rendered report to the output directory.",
    )

    args = parser.parse_args(argv)
    if args.command == "check":
        _check()
        return
    _run()


if __name__ == "__main__":
    main()
