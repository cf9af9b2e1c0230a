#!/usr/bin/env python3
"""
Insert a post into the blog database and print every stored post.

Handy for checking that the database is reachable and migrated before
starting the API.  Without arguments a sample post is created.

Usage:
    python seed_posts.py --db ./blog.db --title "Hello SQLite!" --author "Naa Gyamfi" --tag sqlite --tag python
"""

import argparse
import asyncio
import json
import sys

from blog_api.app.core.db import DocumentStore, init_db
from blog_api.app.core.exceptions import StoreUnavailableError, ValidationError
from blog_api.app.core.logging_config import setup_logging
from blog_api.app.services.post_service import PostService


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Seed a post into the blog database.")
    ap.add_argument("--db", default=None, help="Path to SQLite DB file (defaults to DATABASE_URL or ./blog.db)")
    ap.add_argument("--title", default="Hello SQLite!", help="Post title")
    ap.add_argument("--author", default="Naa Gyamfi", help="Post author")
    ap.add_argument("--contents", default="Connecting to the document store", help="Post contents")
    ap.add_argument("--tag", dest="tags", action="append", help="Tag to attach; repeat for several tags")
    ap.add_argument("--log-level", default="WARNING", help="Logging level")
    return ap.parse_args(argv)


async def seed(store: DocumentStore, args) -> list:
    service = PostService(store)
    await service.create_post(
        {
            "title": args.title,
            "author": args.author,
            "contents": args.contents,
            "tags": args.tags if args.tags is not None else ["sqlite", "python"],
        }
    )
    return await service.list_all_posts()


def main(argv=None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        with DocumentStore(args.db) as store:
            init_db(store)
            posts = asyncio.run(seed(store, args))
    except ValidationError as exc:
        print(f"[!] Invalid post: {exc}", file=sys.stderr)
        return 1
    except StoreUnavailableError as exc:
        print(f"[!] Database unavailable: {exc}", file=sys.stderr)
        return 2

    for post in posts:
        print(json.dumps(post.model_dump(mode="json", by_alias=True), ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
