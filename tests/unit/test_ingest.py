import base64

import pytest

import ai_image_organizer.ingest as ingest_mod
from ai_image_organizer import ValidationError, decode_data_url, items_from_request


def data_url(b: bytes, media_type: str = "image/png") -> str:
    return f"data:{media_type};base64,{base64.b64encode(b).decode('ascii')}"


def test_decode_data_url():
    assert decode_data_url(data_url(b"abc", "image/jpeg")) == (b"abc", "image/jpeg")
    # bare base64 defaults to PNG
    assert decode_data_url(base64.b64encode(b"xyz").decode()) == (b"xyz", "image/png")


@pytest.mark.parametrize("payload", ["", "data:image/png,abc", "data:image/png;base64,***", "not base64!"])
def test_decode_data_url_rejects(payload):
    with pytest.raises(ValidationError):
        decode_data_url(payload)


def test_files_then_data_urls_in_order():
    items = items_from_request(
        files=[("a.jpg", "image/jpeg", b"A"), ("b.png", "image/png", base64.b64encode(b"B").decode())],
        images=[data_url(b"C")],
    )
    assert [it.index for it in items] == [0, 1, 2]
    assert [it.data for it in items] == [b"A", b"B", b"C"]
    assert [it.name for it in items] == ["a.jpg", "b.png", None]
    assert items[2].display_name == "image_3"


def test_empty_batch():
    with pytest.raises(ValidationError, match="No images provided"):
        items_from_request()
    with pytest.raises(ValidationError, match="No images provided"):
        items_from_request(files=[("notes.txt", "text/plain", b"hi")])


def test_too_many_is_rejected_before_decoding(monkeypatch):
    calls = []
    monkeypatch.setattr(ingest_mod, "decode_data_url", lambda p: calls.append(p))
    with pytest.raises(ValidationError, match="Maximum 10 images allowed"):
        items_from_request(images=["x"] * 11)
    assert calls == []
    with pytest.raises(ValidationError, match="Maximum 3 images allowed"):
        items_from_request(images=["x"] * 4, max_items=3)


def test_heic_is_transcoded(monkeypatch):
    monkeypatch.setattr(ingest_mod, "convert_heic_to_jpeg", lambda data, quality=90: b"JPEG")
    items = items_from_request(files=[("IMG_1.HEIC", None, b"heic")])
    assert items[0].data == b"JPEG"
    assert items[0].media_type == "image/jpeg"


def test_heic_conversion_failure_keeps_original(monkeypatch, capsys):
    def boom(data, quality=90):
        raise OSError("no decoder")

    monkeypatch.setattr(ingest_mod, "convert_heic_to_jpeg", boom)
    items = items_from_request(files=[("IMG_2.heic", "image/heic", b"heic")])
    assert items[0].data == b"heic"
    assert items[0].media_type == "image/heic"
    assert "WARNING: HEIC conversion failed for IMG_2.heic" in capsys.readouterr().err
