#!/usr/bin/env python3

import argparse
import asyncio
import json
import sqlite3
from importlib.metadata import PackageNotFoundError, version

from .config import Settings
from .db import get_sqlite_version
from .engine import BookmarkEngine
from .errors import BookmarksError
from .logger import logger, set_log_level
from .models import BookmarkEntry
from .scheduler import Scheduler
from .store import SessionStore
from .utils import get_env_bool, print_table


class CustomHelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog):
        super().__init__(prog, max_help_position=30, width=120)


def print_entry(entry: BookmarkEntry) -> bool:
    print(json.dumps({"user": entry.user, "tweet": entry.tweet}, default=str), flush=True)
    return True


def print_and_remove(engine: BookmarkEngine):
    async def on_item(entry: BookmarkEntry) -> bool:
        print_entry(entry)
        try:
            await engine.delete_item(entry.id or entry.rest_id)
        except BookmarksError as e:
            logger.error(f"Could not remove bookmark {entry.id}: {e}")
            return False
        return True

    return on_item


async def load_settings(args, store: SessionStore) -> Settings:
    settings = await store.load(args.profile) or Settings()
    if args.config:
        settings = Settings.load_file(args.config)

    settings = settings.with_env()
    if args.cookie:
        settings.cookie = args.cookie
    return settings


async def main(args):
    debug = args.debug or get_env_bool("TWB_DEBUG")
    if debug:
        set_log_level("DEBUG")

    if args.command == "version":
        try:
            print(f"twbookmarks: {version('twbookmarks')}")
        except PackageNotFoundError:
            print("twbookmarks: <not installed>")
        print(f"SQLite runtime: {sqlite3.sqlite_version} ({await get_sqlite_version()})")
        return

    store = SessionStore(args.db)
    if args.command == "profiles":
        print_table(await store.info())
        return

    settings = await load_settings(args, store)
    if not settings.cookie:
        logger.error("Session cookie is required: use --cookie, --config or TWB_COOKIE")
        exit(1)

    async with BookmarkEngine.from_settings(settings, print_entry, debug=debug) as engine:
        if args.command == "bootstrap":
            res = await engine.bootstrap()
            await store.save(args.profile, engine.settings())
            print_table([res.dict()])
            return

        if args.command == "run":
            if args.remove:
                engine.on_item = print_and_remove(engine)
            engine.set_cursor(await store.load_cursor(args.profile) if args.resume else "")
            try:
                if args.once:
                    await engine.bootstrap()
                    await engine.run_chain(args.resume)
                else:
                    scheduler = Scheduler(engine, resume=args.resume)
                    await scheduler.run_forever()
            finally:
                await store.save(args.profile, engine.settings())
                if args.resume:
                    await store.save_cursor(args.profile, engine.cursor)
            return

        if not settings.list_operation_id:
            await engine.bootstrap()

        if args.command == "delete":
            print(await engine.delete_item(args.tweet_id))
            return

        if args.command == "detail":
            print(json.dumps(await engine.tweet_detail(args.tweet_id), default=str))
            return

        if args.command == "download":
            print(await engine.download_to(args.url, args.path))
            return

    logger.error(f"Unknown command: {args.command}")
    exit(1)


def run():
    p = argparse.ArgumentParser(add_help=True, formatter_class=CustomHelpFormatter)
    p.add_argument("--db", default="bookmarks.db", help="Sessions database file")
    p.add_argument("--profile", default="default", help="Session profile name")
    p.add_argument("--config", default=None, help="JSON file with session settings")
    p.add_argument("--cookie", default=None, help="Session cookie (must contain ct0)")
    p.add_argument("--debug", action="store_true", help="Enable debug mode")
    subparsers = p.add_subparsers(dest="command")

    subparsers.add_parser("version", help="Show version")
    subparsers.add_parser("profiles", help="List saved session profiles")
    subparsers.add_parser("bootstrap", help="Discover access token and operation ids")

    run_cmd = subparsers.add_parser("run", help="Print bookmarks as JSON lines")
    run_cmd.add_argument("--remove", action="store_true", help="Remove every printed bookmark")
    run_cmd.add_argument(
        "--resume", action="store_true", help="Keep cursor between chains (needs --remove)"
    )
    run_cmd.add_argument("--once", action="store_true", help="Run a single chain and exit")

    delete_cmd = subparsers.add_parser("delete", help="Delete one bookmark")
    delete_cmd.add_argument("tweet_id", help="Tweet ID")

    detail_cmd = subparsers.add_parser("detail", help="Get conversation of a tweet")
    detail_cmd.add_argument("tweet_id", help="Tweet ID")

    download_cmd = subparsers.add_parser("download", help="Download url with session auth")
    download_cmd.add_argument("url", help="Source url")
    download_cmd.add_argument("path", help="Target file")

    args = p.parse_args()
    if args.command is None:
        return p.print_help()

    if args.command == "run" and args.resume and not args.remove:
        p.error("run --resume only makes progress with --remove")

    try:
        asyncio.run(main(args))
    except KeyboardInterrupt:
        pass
    except BookmarksError as e:
        logger.error(f"{type(e).__name__}: {e}")
        exit(1)
