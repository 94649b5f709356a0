"""End-to-end: upload -> resize -> index over one in-memory store."""
import io
import json
import re

import pytest
from PIL import Image

from coral.events import ObjectRef
from coral.gallery.index import build_index
from coral.gallery.resize import resize_images
from coral.gallery.upload import upload_image
from tests.conftest import STAGING


@pytest.mark.asyncio
async def test_landscape_jpeg_end_to_end(store, settings, context, make_image) -> None:
    uploaded = await upload_image(make_image(1000, 500), "demo", store=store, settings=settings, context=context)
    key = uploaded.result["path"]
    stem = uploaded.result["id"]
    assert re.fullmatch(r"galleries/demo/[0-9a-f-]{36}\.jpg", key)

    resized = await resize_images([ObjectRef(bucket=STAGING, key=key)], store=store, settings=settings, context=context)
    assert resized.status == 200

    for bp in (576, 768, 992, 1200):
        variant = f"galleries/demo/{stem}_{bp}.jpg"
        with Image.open(io.BytesIO(store.buckets[STAGING][variant])) as img:
            assert img.size == (bp, bp // 2)

    meta_key = f"_meta/galleries/demo/{stem}.json"
    metadata = json.loads(store.buckets[STAGING][meta_key])
    assert metadata["width"] == 1000
    assert metadata["height"] == 500
    assert metadata["linkTo"] == key

    indexed = await build_index(ObjectRef(bucket=STAGING, key=meta_key), store=store, settings=settings, context=context)
    assert indexed.status == 201
    assert json.loads(store.buckets[STAGING]["galleries/demo/index.json"]) == [metadata]
