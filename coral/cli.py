"""
CLI for interacting with a deployed coral API.

Usage:
    coral upload <image-file> <gallery>
    coral publish <image-name> <gallery>

The API host is read from CORAL_HOST.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path

from coral import client


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="coral", description=__doc__.split("\n\n")[0].strip())
    sub = parser.add_subparsers(dest="operation", required=True)

    upload = sub.add_parser("upload", help="upload an image to a gallery")
    upload.add_argument("image", type=Path)
    upload.add_argument("gallery")

    publish = sub.add_parser("publish", help="publish a staged image to the CDN")
    publish.add_argument("image")
    publish.add_argument("gallery")
    return parser


async def run(args: argparse.Namespace, host: str) -> str:
    if args.operation == "upload":
        result = await client.upload(args.image.read_bytes(), args.gallery, host=host)
        return f"uploaded image: {result['name']}"

    result = await client.publish(args.image, args.gallery, host=host)
    if "href" in result:
        return f"image published to {result['href']}"
    return f"image queued for publishing: {result.get('messageId')}"


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    host = os.getenv("CORAL_HOST", client.DEFAULT_HOST)
    try:
        print(asyncio.run(run(args, host)))
    except (client.ClientError, OSError, TypeError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
