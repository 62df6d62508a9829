"""
This example downloads photos of every bookmarked tweet and removes the bookmark afterwards.
Runs in resume mode: the cursor only moves on once every tweet of a page was taken.
Set TWB_COOKIE to a logged-in session cookie (must contain ct0) before running.
"""

import asyncio
import os

from twbookmarks import BookmarkEngine, BookmarkEntry, BookmarksError, Scheduler, Settings
from twbookmarks.utils import get_or

OUTDIR = "data_bookmarks"


async def main():
    os.makedirs(OUTDIR, exist_ok=True)
    engine = BookmarkEngine.from_settings(Settings.from_env())

    async def on_item(entry: BookmarkEntry) -> bool:
        for media in get_or(entry.tweet, "extended_entities.media", []):
            url = media["media_url_https"]
            path = os.path.join(OUTDIR, f"{entry.id}_{url.split('/')[-1]}")
            try:
                await engine.download_to(url, path)
            except BookmarksError as e:
                print(f"Failed {url}: {e}")
                return False  # keep the bookmark, retry on next tick

        try:
            await engine.delete_item(entry.id or "")
        except BookmarksError as e:
            print(f"Failed to remove bookmark {entry.id}: {e}")
            return False

        print(f"@{entry.username} {entry.id} done")
        return True

    engine.on_item = on_item
    async with engine:
        await Scheduler(engine, resume=True).run_forever()


if __name__ == "__main__":
    asyncio.run(main())
