"""
Gallery upload tests.

Files land in the bucket under public/<epoch-millis>.<ext> and are
removed from the bucket before the row is deleted.
"""

import re
import threading

import pytest

from conftest import API
from utsav.core import storage

IMAGES = f"{API}/organizations/ganesh-utsav/images"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def upload(client, content=PNG, content_type="image/png", filename="pandal.PNG", **form):
    return await client.post(
        IMAGES,
        data={"title": "Pandal", **form},
        files={"file": (filename, content, content_type)},
    )


@pytest.mark.asyncio
async def test_upload_stores_file_and_row(client, admin, bucket):
    resp = await upload(client, description="Night view")
    assert resp.status_code == 201, resp.text
    image = resp.json()

    assert re.fullmatch(r"public/\d{13}\.png", image["image_path"])
    assert image["image_url"].endswith(f"/user-images/{image['image_path']}")
    assert bucket.exists(image["image_path"])

    listed = (await client.get(IMAGES)).json()
    assert [i["id"] for i in listed] == [image["id"]]


@pytest.mark.asyncio
async def test_delete_removes_file_then_row(client, admin, bucket):
    image = (await upload(client)).json()

    resp = await client.delete(f"{IMAGES}/{image['id']}")
    assert resp.status_code == 200
    assert not bucket.exists(image["image_path"])
    assert (await client.get(IMAGES)).json() == []


@pytest.mark.asyncio
async def test_delete_with_file_already_gone(client, admin, bucket):
    image = (await upload(client)).json()
    await bucket.remove(image["image_path"])

    resp = await client.delete(f"{IMAGES}/{image['id']}")
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_rejects_non_images(client, admin):
    resp = await upload(client, content=b"%PDF-1.4", content_type="application/pdf", filename="bill.pdf")
    assert resp.status_code == 415
    assert resp.json()["detail"]["code"] == "UNSUPPORTED_FILE"


@pytest.mark.asyncio
async def test_rejects_empty_file(client, admin):
    resp = await upload(client, content=b"")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "EMPTY_FILE"


@pytest.mark.asyncio
async def test_bucket_refuses_paths_outside_itself(bucket):
    with pytest.raises(ValueError):
        await bucket.upload("../escape.png", b"x")


@pytest.mark.asyncio
async def test_bucket_writes_off_the_event_loop(bucket, monkeypatch):
    threads = []
    write = storage._write

    def recording_write(target, content):
        threads.append(threading.get_ident())
        write(target, content)

    monkeypatch.setattr(storage, "_write", recording_write)
    await bucket.upload("public/1700000000000.png", b"png")

    assert threads and threads[0] != threading.get_ident()
    assert bucket.exists("public/1700000000000.png")
