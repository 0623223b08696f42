import io
import json
import struct
import zlib

import pytest

from wechaty_puppet.filebox import (
    FileBoxError,
    FileBoxType,
    NoBase64DataError,
    NoPathError,
    NoQRCodeError,
    NoUrlError,
    NoUuidError,
    from_base64,
    from_file,
    from_json,
    from_qrcode,
    from_stream,
    from_url,
    from_uuid,
    set_uuid_loader,
    set_uuid_saver,
)

BASE64 = "RmlsZUJveEJhc2U2NAo="
WANT_JSON = (
    '{"base64":"RmlsZUJveEJhc2U2NAo=","boxType":1,"md5":"",'
    '"mediaType":"text/plain; charset=utf-8","metadata":{},'
    '"name":"test.txt","size":14,"type":1}'
)


@pytest.fixture(autouse=True)
def reset_uuid_hooks():
    set_uuid_loader(None)
    set_uuid_saver(None)
    yield
    set_uuid_loader(None)
    set_uuid_saver(None)


@pytest.fixture
def text_file(tmp_path):
    path = tmp_path / "dchaofei.txt"
    path.write_bytes(b"https://github.com/dchaofei\n")
    return path


def test_from_json_invalid_json():
    with pytest.raises(FileBoxError, match="FromJSON json.Unmarshal"):
        from_json("abcd")


def test_from_json_invalid_box_type():
    with pytest.raises(FileBoxError, match="FromJSON invalid value boxType"):
        from_json("{}")


def test_from_json_success():
    text = (
        '{"base64":"RmlsZUJveEJhc2U2NAo=","boxType":1,"md5":"","metadata":null,'
        '"name":"test.txt","size":14,"type":1}'
    )
    box = from_json(text)
    assert box.type == FileBoxType.BASE64
    assert box.name == "test.txt"
    assert box.size == 14


def test_from_json_deprecated_box_type():
    box = from_json('{"boxType":2,"url":"https://example.com/a.png","size":7}')
    assert box.type == FileBoxType.URL
    assert box.name == "a.png"
    assert box.size == 7


def test_from_base64_no_data():
    with pytest.raises(NoBase64DataError):
        from_base64("")


def test_from_base64_success():
    box = from_base64(BASE64)
    assert box.name == "base64.dat"
    assert box.to_bytes() == b"FileBoxBase64\n"


def test_from_url_no_url():
    with pytest.raises(NoUrlError):
        from_url("")


def test_from_url_success():
    box = from_url("https://github.com//dchaofei.jpg?t=123")
    assert box.name == "dchaofei.jpg"
    assert box.media_type == "image/jpeg"


def test_from_file_no_path():
    with pytest.raises(NoPathError):
        from_file("")


def test_from_file_success(text_file):
    box = from_file(str(text_file))
    assert box.name == "dchaofei.txt"
    assert box.size == len(b"https://github.com/dchaofei\n")


def test_from_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        from_file(str(tmp_path / "missing.txt"))


def test_from_qrcode_no_code():
    with pytest.raises(NoQRCodeError):
        from_qrcode("")


def test_from_qrcode_success():
    box = from_qrcode("hello")
    assert box.name == "qrcode.png"
    assert box.media_type == "image/png"


def _png_chunks(data):
    offset = 8
    while offset < len(data):
        (length,) = struct.unpack(">I", data[offset:offset + 4])
        tag = data[offset + 4:offset + 8]
        yield tag, data[offset + 8:offset + 8 + length]
        offset += 12 + length


def test_qrcode_renders_png():
    data = from_qrcode("hello").to_bytes()
    assert data.startswith(b"\x89PNG\r\n\x1a\n")
    chunks = dict(_png_chunks(data))
    width, height = struct.unpack(">II", chunks[b"IHDR"][:8])
    assert width == height
    pixels = zlib.decompress(chunks[b"IDAT"])
    assert len(pixels) == height * (width + 1)
    assert pixels[0] == 0
    assert pixels[1] == 255
    assert 0 in pixels[1:width + 1] or 0 in pixels


def test_from_uuid_no_uuid():
    with pytest.raises(NoUuidError):
        from_uuid("")


def test_from_uuid_success():
    box = from_uuid("xxx-xxx-xxx")
    assert box.name == "xxx-xxx-xxx.dat"
    assert box.to_uuid() == "xxx-xxx-xxx"


def test_to_json_and_back():
    text = from_base64(BASE64, name="test.txt").to_json()
    assert text == WANT_JSON
    assert from_json(WANT_JSON).to_base64() == BASE64


def test_to_json_unsupported_type(text_file):
    with pytest.raises(FileBoxError, match="only supports"):
        from_file(str(text_file)).to_json()


def test_to_json_url():
    document = json.loads(from_url("https://example.com/x.gif").to_json())
    assert document["url"] == "https://example.com/x.gif"
    assert document["headers"] is None
    assert document["type"] == 2
    assert document["name"] == "x.gif"


def test_set_uuid_loader():
    set_uuid_loader(lambda uuid: io.BytesIO(b"hello"))
    assert from_uuid("xxxx-xxxx").to_bytes() == b"hello"


def test_uuid_loader_missing():
    with pytest.raises(FileBoxError, match="loader"):
        from_uuid("xxxx-xxxx").to_bytes()


def test_set_uuid_saver(text_file):
    set_uuid_saver(lambda stream: "xxxx-xxxx")
    assert from_file(str(text_file)).to_uuid() == "xxxx-xxxx"


def test_uuid_saver_missing(text_file):
    with pytest.raises(FileBoxError, match="saver"):
        from_file(str(text_file)).to_uuid()


def test_to_data_url():
    box = from_base64(BASE64, name="test.txt")
    assert box.to_data_url() == "data:text/plain; charset=utf-8;base64," + BASE64


def test_silk_renamed():
    box = from_base64("AAAA", name="voice.silk")
    assert box.name == "voice.sil"
    assert box.media_type == "audio/silk"
    assert box.metadata == {"voiceLength": 1000}


def test_voice_length_kept():
    box = from_base64("AAAA", name="voice.slk", metadata={"voiceLength": 2000})
    assert box.name == "voice.sil"
    assert box.metadata["voiceLength"] == 2000


def test_to_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    box = from_base64(BASE64, name="out.txt")
    written = box.to_file()
    assert (tmp_path / "out.txt").read_bytes() == b"FileBoxBase64\n"
    assert written.endswith("out.txt")
    with pytest.raises(FileExistsError):
        box.to_file("out.txt")
    box.to_file("out.txt", overwrite=True)
    assert (tmp_path / "out.txt").read_bytes() == b"FileBoxBase64\n"


def test_from_stream():
    box = from_stream(io.BytesIO(b"streamed"))
    assert box.name == "stream.dat"
    assert box.type == FileBoxType.STREAM
    assert box.to_bytes() == b"streamed"
    with pytest.raises(FileBoxError):
        box.to_json()


def test_file_to_base64(text_file):
    box = from_file(str(text_file))
    assert from_base64(box.to_base64()).to_bytes() == text_file.read_bytes()


def test_str():
    assert str(from_base64(BASE64, name="test.txt")) == "FileBox#BASE64<test.txt>"