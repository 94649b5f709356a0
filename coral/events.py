"""
Trigger payload parsing.

Object-change notifications arrive as S3 event notifications, either
directly or wrapped in SQS records. Both are reduced to a list of
`ObjectRef` before any stage sees them.
"""
from __future__ import annotations

import json
import logging
import urllib.parse
from typing import Any

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class ObjectRef(BaseModel):
    """A single blob addressed by bucket and key."""
    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str


def _s3_records(event: dict[str, Any]) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for record in event.get("Records", []) or []:
        # SQS wrapper: unwrap the S3 event from the SQS message body
        if record.get("eventSource") == "aws:sqs":
            try:
                body = json.loads(record.get("body") or "{}")
            except json.JSONDecodeError as exc:
                logger.warning("Dropping SQS record with malformed body: %s", exc)
                continue
            if not isinstance(body, dict):
                logger.warning("Dropping SQS record whose body is not an S3 event")
                continue
            records.extend(body.get("Records", []) or [])
        else:
            records.append(record)
    return records


def parse_object_refs(event: dict[str, Any]) -> list[ObjectRef]:
    """Extract `ObjectRef`s from a raw trigger payload.

    Records without a bucket name or object key are dropped with a warning.
    Keys are URL-decoded the way S3 notifications encode them.
    """
    refs: list[ObjectRef] = []
    for record in _s3_records(event):
        s3_info = record.get("s3", {})
        bucket = s3_info.get("bucket", {}).get("name", "")
        key = urllib.parse.unquote_plus(s3_info.get("object", {}).get("key", ""))
        if not bucket or not key:
            logger.warning("Missing bucket or key in event record: %s", record)
            continue
        refs.append(ObjectRef(bucket=bucket, key=key))
    return refs


def object_created_event(bucket: str, *keys: str) -> dict[str, Any]:
    """Build an S3 notification payload for the given keys (local runs and tests)."""
    return {
        "Records": [
            {
                "eventVersion": "2.0",
                "eventSource": "aws:s3",
                "eventName": "ObjectCreated:Put",
                "s3": {
                    "s3SchemaVersion": "1.0",
                    "bucket": {"name": bucket},
                    "object": {"key": urllib.parse.quote_plus(key, safe="/")},
                },
            }
            for key in keys
        ]
    }
