import io
import json

import pytest
from PIL import Image

from coral.config import Settings
from coral.events import ObjectRef
from coral.gallery.resize import build_metadata, resize_images
from coral.gallery.schemas import ResizedVariant
from coral.results import Err, ErrorKind, Ok
from tests.conftest import CDN

KEY = "galleries/demo/abc.jpg"


def _size(store, key: str) -> tuple[int, int]:
    with Image.open(io.BytesIO(store.buckets[CDN][key])) as img:
        return img.size


def _meta(store, key: str = "_meta/galleries/demo/abc.json") -> dict:
    return json.loads(store.buckets[CDN][key])


@pytest.mark.asyncio
async def test_landscape_constrains_width(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(1000, 500), CDN)

    outcome = await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert isinstance(outcome, Ok)
    assert outcome.status == 200
    assert _size(store, "galleries/demo/abc_576.jpg") == (576, 288)
    assert _size(store, "galleries/demo/abc_768.jpg") == (768, 384)
    assert _size(store, "galleries/demo/abc_992.jpg") == (992, 496)
    assert _size(store, "galleries/demo/abc_1200.jpg") == (1200, 600)

    meta = _meta(store)
    assert meta == {
        "src": "galleries/demo/abc_576.jpg",
        "srcSet": [
            "galleries/demo/abc_576.jpg 576w",
            "galleries/demo/abc_768.jpg 768w",
            "galleries/demo/abc_992.jpg 992w",
            "galleries/demo/abc_1200.jpg 1200w",
        ],
        "width": 1000,
        "height": 500,
        "linkTo": KEY,
    }
    assert outcome.result == [
        {"filename": "abc", "directory": "galleries/demo", "bucket": CDN, "payload": meta},
    ]


@pytest.mark.asyncio
async def test_portrait_constrains_height(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(600, 900), CDN)

    await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert _size(store, "galleries/demo/abc_576.jpg") == (384, 576)
    assert _size(store, "galleries/demo/abc_768.jpg") == (512, 768)
    assert _size(store, "galleries/demo/abc_992.jpg") == (661, 992)
    assert _size(store, "galleries/demo/abc_1200.jpg") == (800, 1200)


@pytest.mark.asyncio
async def test_variant_content_type_follows_source(store, settings, context, make_image) -> None:
    key = "galleries/demo/pic.png"
    store.seed(key, make_image(300, 200, fmt="PNG"), CDN)

    await resize_images([ObjectRef(bucket=CDN, key=key)], store=store, settings=settings, context=context)

    assert store.content_types[(CDN, "galleries/demo/pic_576.png")] == "image/png"
    assert store.content_types[(CDN, "_meta/galleries/demo/pic.json")] == "application/json"


@pytest.mark.asyncio
async def test_multi_picture_jpeg_variants_are_jpeg(store, settings, context, make_mpo) -> None:
    store.seed(KEY, make_mpo(1000, 500), CDN)

    outcome = await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert isinstance(outcome, Ok)
    assert store.content_types[(CDN, "galleries/demo/abc_576.jpg")] == "image/jpeg"
    with Image.open(io.BytesIO(store.buckets[CDN]["galleries/demo/abc_576.jpg"])) as img:
        assert img.format == "JPEG"
        assert img.size == (576, 288)


@pytest.mark.asyncio
async def test_one_failed_breakpoint_is_dropped(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(1000, 500), CDN)
    store.fail("put", "galleries/demo/abc_768.jpg")

    outcome = await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert isinstance(outcome, Ok)
    meta = _meta(store)
    assert len(meta["srcSet"]) == 3
    assert all("768w" not in entry for entry in meta["srcSet"])
    assert meta["src"] == "galleries/demo/abc_576.jpg"


@pytest.mark.asyncio
async def test_src_is_smallest_surviving_variant(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(1000, 500), CDN)
    store.fail("put", "galleries/demo/abc_576.jpg")

    await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert _meta(store)["src"] == "galleries/demo/abc_768.jpg"


@pytest.mark.asyncio
async def test_all_breakpoints_failing_is_an_error(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(1000, 500), CDN)
    for bp in settings.breakpoints:
        store.fail("put", f"galleries/demo/abc_{bp}.jpg")

    outcome = await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert isinstance(outcome, Err)
    assert outcome.status == 500
    assert "_meta/galleries/demo/abc.json" not in store.buckets[CDN]


@pytest.mark.asyncio
async def test_missing_original_is_skipped(store, settings, context) -> None:
    outcome = await resize_images(
        [ObjectRef(bucket=CDN, key="galleries/demo/gone.jpg")],
        store=store, settings=settings, context=context,
    )
    assert outcome == Ok(200, [])
    assert store.mutations == []


@pytest.mark.asyncio
async def test_derived_objects_are_not_reprocessed(store, settings, context, make_image) -> None:
    store.seed("galleries/demo/abc_576.jpg", make_image(576, 288), CDN)
    store.seed("_meta/galleries/demo/abc.json", b"{}", CDN)

    outcome = await resize_images(
        [
            ObjectRef(bucket=CDN, key="galleries/demo/abc_576.jpg"),
            ObjectRef(bucket=CDN, key="_meta/galleries/demo/abc.json"),
        ],
        store=store, settings=settings, context=context,
    )
    assert outcome == Ok(200, [])
    assert store.mutations == []


@pytest.mark.asyncio
async def test_failed_reference_does_not_abort_siblings(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(800, 400), CDN)
    store.seed("galleries/demo/broken.jpg", b"not an image", CDN)
    store.seed("galleries/demo/flaky.jpg", make_image(800, 400), CDN)
    store.fail("get", "galleries/demo/flaky.jpg")

    outcome = await resize_images(
        [
            ObjectRef(bucket=CDN, key="galleries/demo/broken.jpg"),
            ObjectRef(bucket=CDN, key=KEY),
            ObjectRef(bucket=CDN, key="galleries/demo/flaky.jpg"),
        ],
        store=store, settings=settings, context=context,
    )

    assert isinstance(outcome, Ok)
    assert [p["filename"] for p in outcome.result] == ["abc"]
    assert "_meta/galleries/demo/abc.json" in store.buckets[CDN]


@pytest.mark.asyncio
async def test_batch_where_everything_fails_reports_first_error(store, settings, context) -> None:
    store.seed(KEY, b"", CDN)
    store.fail("get", KEY)

    outcome = await resize_images([ObjectRef(bucket=CDN, key=KEY)], store=store, settings=settings, context=context)

    assert isinstance(outcome, Err)
    assert outcome.kind is ErrorKind.STORAGE_FAULT


@pytest.mark.asyncio
async def test_reprocessing_is_idempotent(store, settings, context, make_image) -> None:
    store.seed(KEY, make_image(1000, 500), CDN)
    ref = ObjectRef(bucket=CDN, key=KEY)

    await resize_images([ref], store=store, settings=settings, context=context)
    keys_after_first = set(store.buckets[CDN])
    meta_first = store.buckets[CDN]["_meta/galleries/demo/abc.json"]
    await resize_images([ref], store=store, settings=settings, context=context)

    assert set(store.buckets[CDN]) == keys_after_first
    assert store.buckets[CDN]["_meta/galleries/demo/abc.json"] == meta_first


def test_build_metadata_uses_cdn_host() -> None:
    settings = Settings(_env_file=None, cdn_host="https://cdn.example.com/")
    variants = [
        ResizedVariant(breakpoint_width=992, derived_key="g/d/a_992.jpg"),
        ResizedVariant(breakpoint_width=576, derived_key="g/d/a_576.jpg"),
    ]
    meta = build_metadata("g/d/a.jpg", 1000, 500, variants, settings)
    assert meta.src == "https://cdn.example.com/g/d/a_576.jpg"
    assert meta.src_set == [
        "https://cdn.example.com/g/d/a_576.jpg 576w",
        "https://cdn.example.com/g/d/a_992.jpg 992w",
    ]
    assert meta.link_to == "https://cdn.example.com/g/d/a.jpg"


def test_custom_breakpoints_are_sorted() -> None:
    settings = Settings(_env_file=None, breakpoints=(1200, 300, 300))
    assert settings.breakpoints == (300, 1200)
