import io
import json

import numpy as np
from PIL import Image


def make_png_bytes(w=400, h=300) -> bytes:
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[:, :] = (128, 64, 32)
    buf = io.BytesIO()
    Image.fromarray(arr).save(buf, format="PNG")
    return buf.getvalue()


def picture_metadata(name="51234", tags=None) -> str:
    return json.dumps(
        {
            "origin": "flickr",
            "name": name,
            "origin_id": "51234",
            "extension": "png",
            "sizes": {
                "size-0": {
                    "creation_date": "2024-01-01T00:00:00+00:00",
                    "box": {"left": 0, "top": 0, "width": 400, "height": 300},
                }
            },
            "tags": tags or {},
        }
    )


def create_picture(client, stage="pending", name="51234", tags=None, with_file=True):
    files = {"file": ("p.png", make_png_bytes(), "image/png")} if with_file else None
    return client.post(
        f"/pictures/{stage}", data={"metadata": picture_metadata(name, tags)}, files=files
    )


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "healthy"}


def test_create_get_and_download(client):
    r = create_picture(client)
    assert r.status_code == 201, r.text
    assert r.json()["stage"] == "pending"

    r2 = client.get("/pictures/pending/flickr/51234")
    assert r2.status_code == 200
    assert r2.json()["picture"]["sizes"]["size-0"]["box"]["width"] == 400

    r3 = client.get("/pictures/pending/flickr/51234/file")
    assert r3.status_code == 200
    assert r3.headers["content-type"] == "image/png"


def test_create_conflict_and_bad_stage(client):
    assert create_picture(client).status_code == 201
    assert create_picture(client).status_code == 409
    assert create_picture(client, stage="archived").status_code == 400


def test_create_rejects_bad_metadata(client):
    r = client.post("/pictures/pending", data={"metadata": "{\"origin\": 1}"})
    assert r.status_code == 422


def test_list_with_tag_filter(client):
    tag = {"t1": {"name": "cat", "origin": "reviewer"}}
    create_picture(client, name="a", tags=tag, with_file=False)
    create_picture(client, name="b", with_file=False)

    r = client.get("/pictures/pending", params={"origin": "flickr"})
    assert r.json()["total"] == 2
    r2 = client.get("/pictures/pending", params={"origin": "flickr", "tag": "cat"})
    assert [p["name"] for p in r2.json()["pictures"]] == ["a"]


def test_transfer_then_block(client):
    create_picture(client)
    r = client.post(
        "/pictures/transfer",
        json={"origin": "flickr", "name": "51234", "source": "pending", "destination": "validated"},
    )
    assert r.status_code == 200, r.text
    assert client.get("/pictures/pending/flickr/51234").status_code == 404
    assert client.get("/pictures/validated/flickr/51234").status_code == 200

    r2 = client.post("/pictures/block", json={"origin": "flickr", "name": "51234", "stage": "validated"})
    assert r2.status_code == 200
    assert r2.json()["stage"] == "blocked"
    assert client.get("/pictures/blocked/flickr/51234").status_code == 200
    assert client.get("/pictures/blocked/flickr/51234/file").status_code == 404


def test_transfer_to_blocked_is_rejected(client):
    create_picture(client)
    r = client.post(
        "/pictures/transfer",
        json={"origin": "flickr", "name": "51234", "source": "pending", "destination": "blocked"},
    )
    assert r.status_code == 400


def test_crop_reanchors_tags(client):
    create_picture(client)
    r = client.post(
        "/pictures/pending/flickr/51234/tags",
        json={
            "name": "dog",
            "origin": "reviewer",
            "box_information": {
                "image_size_id": "size-0",
                "box": {"left": 10, "top": 10, "width": 100, "height": 100},
            },
        },
    )
    assert r.status_code == 201, r.text
    tag_id = r.json()["tag_id"]

    r2 = client.post(
        "/pictures/crop",
        json={
            "origin": "flickr",
            "name": "51234",
            "box": {"left": 50, "top": 0, "width": 200, "height": 200},
            "size_id": "size-1",
        },
    )
    assert r2.status_code == 200, r2.text
    picture = r2.json()["picture"]
    assert set(picture["sizes"]) == {"size-0", "size-1"}
    info = picture["tags"][tag_id]["box_information"]
    assert info["image_size_id"] == "size-1"
    assert info["box"] == {"left": 0, "top": 10, "width": 60, "height": 100}

    data = client.get("/pictures/pending/flickr/51234/file").content
    assert Image.open(io.BytesIO(data)).size == (200, 200)


def test_crop_outside_raster(client):
    create_picture(client)
    r = client.post(
        "/pictures/crop",
        json={"origin": "flickr", "name": "51234", "box": {"left": 900, "top": 0, "width": 10, "height": 10}},
    )
    assert r.status_code == 400


def test_tag_with_unknown_size_and_missing_tag(client):
    create_picture(client, with_file=False)
    r = client.post(
        "/pictures/pending/flickr/51234/tags",
        json={
            "name": "dog",
            "box_information": {
                "image_size_id": "nope",
                "box": {"left": 0, "top": 0, "width": 100, "height": 100},
            },
        },
    )
    assert r.status_code == 400
    assert client.delete("/pictures/pending/flickr/51234/tags/missing").status_code == 404


def test_copy_and_delete(client):
    create_picture(client)
    r = client.post("/pictures/copy", json={"origin": "flickr", "name": "51234"})
    assert r.status_code == 201, r.text
    copy_name = r.json()["picture"]["name"]
    assert copy_name.startswith("51234_")

    r2 = client.post(
        "/pictures/delete",
        json={"stage": "pending", "keys": [{"origin": "flickr", "name": copy_name}]},
    )
    assert r2.status_code == 200
    assert client.delete("/pictures/pending/flickr/51234", params={"with_file": True}).status_code == 200
    assert client.get("/pictures/pending", params={"origin": "flickr"}).json()["total"] == 0


def test_crop_after_naive_size_dates(client):
    metadata = json.loads(picture_metadata())
    metadata["sizes"]["size-0"]["creation_date"] = "2024-01-01T00:00:00"
    files = {"file": ("p.png", make_png_bytes(), "image/png")}
    r = client.post("/pictures/pending", data={"metadata": json.dumps(metadata)}, files=files)
    assert r.status_code == 201, r.text

    r2 = client.post(
        "/pictures/crop",
        json={
            "origin": "flickr",
            "name": "51234",
            "box": {"left": 0, "top": 0, "width": 200, "height": 200},
            "size_id": "size-1",
        },
    )
    assert r2.status_code == 200, r2.text
    picture = r2.json()["picture"]
    assert picture["creation_date"] == picture["sizes"]["size-1"]["creation_date"]
