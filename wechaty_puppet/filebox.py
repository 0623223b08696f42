"""File boxes: files from base64 data, URLs, local paths, QR codes, streams or UUIDs."""

from __future__ import annotations

import base64
import binascii
import errno
import io
import itertools
import json
import mimetypes
import os
import posixpath
import re
import shutil
import struct
import zlib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, BinaryIO
from urllib.parse import urlparse

from .helper import base64_orig_length, file_exists, http_get
from .log import get_logger

_log = get_logger("filebox")

UuidLoader = Callable[[str], BinaryIO]
UuidSaver = Callable[[BinaryIO], str]
Headers = Mapping[str, Sequence[str]]


class FileBoxType(IntEnum):
    UNKNOWN = 0
    BASE64 = 1
    URL = 2
    QRCODE = 3
    BUFFER = 4
    FILE = 5
    STREAM = 6
    UUID = 7


class FileBoxError(Exception):
    """Raised when a file box cannot be built or converted."""


class NoBase64DataError(FileBoxError):
    """No base64 data was given."""


class NoUrlError(FileBoxError):
    """No URL was given."""


class NoPathError(FileBoxError):
    """No path was given."""


class NoQRCodeError(FileBoxError):
    """No QR code text was given."""


class NoUuidError(FileBoxError):
    """No UUID was given."""


_JSON_TYPES = frozenset(
    {FileBoxType.URL, FileBoxType.QRCODE, FileBoxType.BASE64, FileBoxType.UUID}
)


class _UuidHooks:
    loader: UuidLoader | None = None
    saver: UuidSaver | None = None


_hooks = _UuidHooks()


def set_uuid_loader(loader: UuidLoader | None) -> None:
    """Set the function that opens the content stored under a UUID."""
    _hooks.loader = loader


def set_uuid_saver(saver: UuidSaver | None) -> None:
    """Set the function that stores a stream and returns its UUID."""
    _hooks.saver = saver


# media types

_BUILTIN_MEDIA_TYPES = {
    ".avif": "image/avif",
    ".css": "text/css; charset=utf-8",
    ".gif": "image/gif",
    ".htm": "text/html; charset=utf-8",
    ".html": "text/html; charset=utf-8",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "text/javascript; charset=utf-8",
    ".json": "application/json",
    ".mjs": "text/javascript; charset=utf-8",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".txt": "text/plain; charset=utf-8",
    ".wasm": "application/wasm",
    ".webp": "image/webp",
    ".xml": "text/xml; charset=utf-8",
}


def _extension(name: str) -> str:
    base = name.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    return base[dot:] if dot >= 0 else ""


def _media_type_by_extension(ext: str) -> str:
    if not ext:
        return ""
    for candidate in (ext, ext.lower()):
        if candidate in _BUILTIN_MEDIA_TYPES:
            return _BUILTIN_MEDIA_TYPES[candidate]
    guessed, _ = mimetypes.guess_type("file" + ext.lower(), strict=False)
    if guessed is None:
        return ""
    if guessed.startswith("text/") and "charset" not in guessed:
        guessed += "; charset=utf-8"
    return guessed


def _dumps(obj: Any) -> str:
    text = json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    for char, escaped in (
        ("&", "\\u0026"),
        ("<", "\\u003c"),
        (">", "\\u003e"),
        ("\u2028", "\\u2028"),
        ("\u2029", "\\u2029"),
    ):
        text = text.replace(char, escaped)
    return text


def _b64decode(data: str) -> bytes:
    return base64.b64decode(data.replace("\r", "").replace("\n", ""), validate=True)


# sources

@dataclass(frozen=True)
class _Base64Source:
    data: str

    def json_fields(self) -> dict[str, Any]:
        return {"base64": self.data}

    def open(self) -> BinaryIO:
        return io.BytesIO(_b64decode(self.data))


@dataclass(frozen=True)
class _UrlSource:
    url: str
    headers: Headers | None

    def json_fields(self) -> dict[str, Any]:
        headers = None if self.headers is None else {k: list(v) for k, v in self.headers.items()}
        return {"headers": headers, "url": self.url}

    def open(self) -> BinaryIO:
        return io.BytesIO(http_get(self.url, self.headers))


@dataclass(frozen=True)
class _FileSource:
    path: str

    def json_fields(self) -> dict[str, Any]:
        return {}

    def open(self) -> BinaryIO:
        return open(self.path, "rb")


@dataclass(frozen=True)
class _QRCodeSource:
    qr_code: str

    def json_fields(self) -> dict[str, Any]:
        return {"qrCode": self.qr_code}

    def open(self) -> BinaryIO:
        return io.BytesIO(_qr_png(self.qr_code.encode("utf-8")))


@dataclass(frozen=True)
class _StreamSource:
    stream: BinaryIO

    def json_fields(self) -> dict[str, Any]:
        return {}

    def open(self) -> BinaryIO:
        return self.stream


@dataclass(frozen=True)
class _UuidSource:
    uuid: str

    def json_fields(self) -> dict[str, Any]:
        return {"uuid": self.uuid}

    def open(self) -> BinaryIO:
        if _hooks.loader is None:
            raise FileBoxError("need to call set_uuid_loader() to set UUID loader first")
        return _hooks.loader(self.uuid)


_Source = _Base64Source | _UrlSource | _FileSource | _QRCodeSource | _StreamSource | _UuidSource


def _correct_name(name: str) -> str:
    if name.endswith(".silk") or name.endswith(".slk"):
        _log.warning(
            "detect that you want to send voice file which should be <name>.sil pattern. "
            "So we help you rename it."
        )
        if name.endswith(".silk"):
            name = name.replace(".silk", ".sil")
        if name.endswith(".slk"):
            name = name.replace(".slk", ".sil")
    return name


class FileBox:
    """A file whose content comes from one of several kinds of source."""

    def __init__(
        self,
        box_type: FileBoxType,
        source: _Source,
        name: str = "",
        metadata: Mapping[str, Any] | None = None,
        size: int = 0,
        md5: str = "",
    ) -> None:
        self.type = FileBoxType(box_type)
        self._source = source
        self.name = _correct_name(name)
        self.metadata: dict[str, Any] = dict(metadata or {})
        self.size = size
        self.md5 = md5
        self.media_type = self._guess_media_type()

    def _guess_media_type(self) -> str:
        if self.name.endswith(".sil"):
            if "voiceLength" not in self.metadata:
                _log.warning(
                    "detect that you want to send voice file, but no voiceLength setting, "
                    "so use the default setting: 1000, you should set it manually: "
                    'metadata={"voiceLength": 2000}'
                )
                self.metadata["voiceLength"] = 1000
            return "audio/silk"
        return _media_type_by_extension(_extension(self.name))

    def __str__(self) -> str:
        return f"FileBox#{self.type.name}<{self.name}>"

    def open(self) -> BinaryIO:
        """Return a binary stream of the content."""
        return self._source.open()

    def _release(self, stream: BinaryIO) -> None:
        if self.type is not FileBoxType.STREAM:
            stream.close()

    def to_json(self) -> str:
        """Serialise url, QR code, base64 and UUID boxes."""
        if self.type not in _JSON_TYPES:
            raise FileBoxError(
                "FileBox.to_json() only supports url, qrcode, base64 and uuid boxes"
            )
        document: dict[str, Any] = {
            "name": self.name,
            "metadata": self.metadata,
            "type": int(self.type),
            "boxType": int(self.type),
            "size": self.size,
            "md5": self.md5,
            "mediaType": self.media_type,
        }
        document.update(self._source.json_fields())
        return _dumps(document)

    def to_file(self, path: str | None = None, overwrite: bool = False) -> str:
        """Write the content to path (default: the box's name) and return the full path."""
        full_path = os.path.join(os.getcwd(), path or self.name)
        if not overwrite and file_exists(full_path):
            raise FileExistsError(errno.EEXIST, "file already exists", full_path)
        stream = self.open()
        try:
            with open(full_path, "wb") as out:
                shutil.copyfileobj(stream, out)
        finally:
            self._release(stream)
        return full_path

    def to_bytes(self) -> bytes:
        stream = self.open()
        try:
            return stream.read()
        finally:
            self._release(stream)

    def to_base64(self) -> str:
        if isinstance(self._source, _Base64Source):
            return self._source.data
        return base64.b64encode(self.to_bytes()).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.media_type};base64,{self.to_base64()}"

    def to_uuid(self) -> str:
        """Return the box's UUID, storing the content through the UUID saver if needed."""
        if isinstance(self._source, _UuidSource):
            return self._source.uuid
        stream = self.open()
        try:
            if _hooks.saver is None:
                raise FileBoxError("need to use set_uuid_saver() before dealing with UUID")
            return _hooks.saver(stream)
        finally:
            self._release(stream)


# constructors

def from_base64(
    data: str,
    name: str = "",
    metadata: Mapping[str, Any] | None = None,
    md5: str = "",
) -> FileBox:
    if not data:
        raise NoBase64DataError("FromBase64 no Base64 data")
    return FileBox(
        FileBoxType.BASE64,
        _Base64Source(data),
        name=name or "base64.dat",
        metadata=metadata,
        size=base64_orig_length(data),
        md5=md5,
    )


def from_url(
    url: str,
    name: str = "",
    metadata: Mapping[str, Any] | None = None,
    headers: Headers | None = None,
) -> FileBox:
    if not url:
        raise NoUrlError("FromUrl no url")
    if not name:
        name = urlparse(url).path.lstrip("/")
    return FileBox(FileBoxType.URL, _UrlSource(url, headers), name=name, metadata=metadata)


def from_file(
    path: str,
    name: str = "",
    metadata: Mapping[str, Any] | None = None,
) -> FileBox:
    if not path:
        raise NoPathError("FromFile no path")
    if not name:
        stripped = path.rstrip("/")
        name = posixpath.basename(stripped) if stripped else "/"
    size = os.stat(path).st_size
    return FileBox(FileBoxType.FILE, _FileSource(path), name=name, metadata=metadata, size=size)


def from_qrcode(qr_code: str, metadata: Mapping[str, Any] | None = None) -> FileBox:
    if not qr_code:
        raise NoQRCodeError("FromQRCode no QR Code")
    return FileBox(
        FileBoxType.QRCODE, _QRCodeSource(qr_code), name="qrcode.png", metadata=metadata
    )


def from_stream(
    stream: BinaryIO,
    name: str = "",
    metadata: Mapping[str, Any] | None = None,
) -> FileBox:
    return FileBox(
        FileBoxType.STREAM, _StreamSource(stream), name=name or "stream.dat", metadata=metadata
    )


def from_uuid(
    uuid: str,
    name: str = "",
    metadata: Mapping[str, Any] | None = None,
) -> FileBox:
    if not uuid:
        raise NoUuidError("FromUuid no uuid")
    return FileBox(
        FileBoxType.UUID, _UuidSource(uuid), name=name or f"{uuid}.dat", metadata=metadata
    )


def _json_error(detail: str) -> FileBoxError:
    return FileBoxError(f"FromJSON json.Unmarshal: {detail}")


def _json_int(document: dict[str, Any], key: str) -> int:
    value = document.get(key)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise _json_error(f"field {key!r} is not an integer")
    return value


def _json_str(document: dict[str, Any], key: str) -> str:
    value = document.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise _json_error(f"field {key!r} is not a string")
    return value


def _json_object(document: dict[str, Any], key: str) -> dict[str, Any] | None:
    value = document.get(key)
    if value is not None and not isinstance(value, dict):
        raise _json_error(f"field {key!r} is not an object")
    return value


def from_json(text: str) -> FileBox:
    """Rebuild a file box from the output of FileBox.to_json()."""
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise _json_error(str(exc)) from exc
    if not isinstance(document, dict):
        raise _json_error("expected a JSON object")

    box_type = _json_int(document, "type")
    deprecated_type = _json_int(document, "boxType")
    if deprecated_type and not box_type:
        box_type = deprecated_type

    name = _json_str(document, "name")
    metadata = _json_object(document, "metadata")
    size = _json_int(document, "size")
    md5 = _json_str(document, "md5")

    if box_type == FileBoxType.BASE64:
        return from_base64(_json_str(document, "base64"), name=name, metadata=metadata, md5=md5)
    if box_type == FileBoxType.QRCODE:
        box = from_qrcode(_json_str(document, "qrCode"), metadata=metadata)
    elif box_type == FileBoxType.URL:
        box = from_url(
            _json_str(document, "url"),
            name=name,
            metadata=metadata,
            headers=_json_object(document, "headers"),
        )
    elif box_type == FileBoxType.UUID:
        box = from_uuid(_json_str(document, "uuid"), name=name, metadata=metadata)
    else:
        raise FileBoxError(f"FromJSON invalid value boxType: {box_type}")
    box.size = size
    box.md5 = md5
    return box


# QR code rendering (byte mode, error correction level M)

_ECC_PER_BLOCK_M = (
    10, 16, 26, 18, 24, 16, 18, 22, 22, 26,
    30, 22, 22, 24, 24, 28, 28, 26, 26, 26,
    26,
) + (28,) * 19

_BLOCKS_M = (
    1, 1, 1, 2, 2, 4, 4, 4, 5, 5,
    5, 8, 9, 9, 10, 10, 11, 13, 14, 16,
    17, 17, 18, 20, 21, 23, 25, 26, 28, 29,
    31, 33, 35, 37, 38, 40, 43, 45, 47, 49,
)

_FORMAT_BITS_M = 0

_MASKS: tuple[Callable[[int, int], bool], ...] = (
    lambda x, y: (x + y) % 2 == 0,
    lambda x, y: y % 2 == 0,
    lambda x, y: x % 3 == 0,
    lambda x, y: (x + y) % 3 == 0,
    lambda x, y: (x // 3 + y // 2) % 2 == 0,
    lambda x, y: x * y % 2 + x * y % 3 == 0,
    lambda x, y: (x * y % 2 + x * y % 3) % 2 == 0,
    lambda x, y: ((x + y) % 2 + x * y % 3) % 2 == 0,
)

_FINDER_LIKE = re.compile(r"(?=(10111010000|00001011101))")


def _raw_modules(version: int) -> int:
    result = (16 * version + 128) * version + 64
    if version >= 2:
        num_align = version // 7 + 2
        result -= (25 * num_align - 10) * num_align - 55
        if version >= 7:
            result -= 36
    return result


def _data_codewords(version: int) -> int:
    return _raw_modules(version) // 8 - _ECC_PER_BLOCK_M[version - 1] * _BLOCKS_M[version - 1]


def _alignment_positions(version: int) -> list[int]:
    if version == 1:
        return []
    num_align = version // 7 + 2
    size = version * 4 + 17
    step = (version * 8 + num_align * 3 + 5) // (num_align * 4 - 4) * 2
    return [6] + sorted(size - 7 - k * step for k in range(num_align - 1))


def _gf_multiply(x: int, y: int) -> int:
    z = 0
    for i in reversed(range(8)):
        z = (z << 1) ^ ((z >> 7) * 0x11D)
        z ^= ((y >> i) & 1) * x
    return z


def _rs_divisor(degree: int) -> list[int]:
    result = [0] * (degree - 1) + [1]
    root = 1
    for _ in range(degree):
        for j in range(degree):
            result[j] = _gf_multiply(result[j], root)
            if j + 1 < degree:
                result[j] ^= result[j + 1]
        root = _gf_multiply(root, 0x02)
    return result


def _rs_remainder(data: list[int], divisor: list[int]) -> list[int]:
    result = [0] * len(divisor)
    for byte in data:
        factor = byte ^ result.pop(0)
        result.append(0)
        result = [r ^ _gf_multiply(coef, factor) for r, coef in zip(result, divisor)]
    return result


def _append_bits(bits: list[int], value: int, count: int) -> None:
    bits.extend((value >> i) & 1 for i in reversed(range(count)))


def _add_ecc(data: list[int], version: int) -> list[int]:
    num_blocks = _BLOCKS_M[version - 1]
    ecc_len = _ECC_PER_BLOCK_M[version - 1]
    raw = _raw_modules(version) // 8
    num_short = num_blocks - raw % num_blocks
    short_len = raw // num_blocks
    divisor = _rs_divisor(ecc_len)
    blocks = []
    pos = 0
    for i in range(num_blocks):
        length = short_len - ecc_len + (0 if i < num_short else 1)
        chunk = data[pos:pos + length]
        pos += length
        ecc = _rs_remainder(chunk, divisor)
        if i < num_short:
            chunk = chunk + [0]
        blocks.append(chunk + ecc)
    result = []
    for i in range(len(blocks[0])):
        for j, block in enumerate(blocks):
            if i != short_len - ecc_len or j >= num_short:
                result.append(block[i])
    return result


class _QrGrid:
    def __init__(self, version: int) -> None:
        self.version = version
        self.size = version * 4 + 17
        self.modules = [[False] * self.size for _ in range(self.size)]
        self.function = [[False] * self.size for _ in range(self.size)]

    def _set(self, x: int, y: int, dark: bool) -> None:
        self.modules[y][x] = dark
        self.function[y][x] = True

    def draw_function_patterns(self) -> None:
        size = self.size
        for i in range(size):
            self._set(6, i, i % 2 == 0)
            self._set(i, 6, i % 2 == 0)
        for cx, cy in ((3, 3), (size - 4, 3), (3, size - 4)):
            for dy in range(-4, 5):
                for dx in range(-4, 5):
                    x, y = cx + dx, cy + dy
                    if 0 <= x < size and 0 <= y < size:
                        self._set(x, y, max(abs(dx), abs(dy)) not in (2, 4))
        positions = _alignment_positions(self.version)
        last = len(positions) - 1
        for i, px in enumerate(positions):
            for j, py in enumerate(positions):
                if (i, j) in ((0, 0), (0, last), (last, 0)):
                    continue
                for dy in range(-2, 3):
                    for dx in range(-2, 3):
                        self._set(px + dx, py + dy, max(abs(dx), abs(dy)) != 1)
        self.draw_format(0)
        self._draw_version()

    def draw_format(self, mask: int) -> None:
        data = (_FORMAT_BITS_M << 3) | mask
        rem = data
        for _ in range(10):
            rem = (rem << 1) ^ ((rem >> 9) * 0x537)
        bits = ((data << 10) | rem) ^ 0x5412
        size = self.size

        def bit(i: int) -> bool:
            return ((bits >> i) & 1) == 1

        for i in range(6):
            self._set(8, i, bit(i))
        self._set(8, 7, bit(6))
        self._set(8, 8, bit(7))
        self._set(7, 8, bit(8))
        for i in range(9, 15):
            self._set(14 - i, 8, bit(i))
        for i in range(8):
            self._set(size - 1 - i, 8, bit(i))
        for i in range(8, 15):
            self._set(8, size - 15 + i, bit(i))
        self._set(8, size - 8, True)

    def _draw_version(self) -> None:
        if self.version < 7:
            return
        rem = self.version
        for _ in range(12):
            rem = (rem << 1) ^ ((rem >> 11) * 0x1F25)
        bits = (self.version << 12) | rem
        for i in range(18):
            dark = ((bits >> i) & 1) == 1
            a, b = self.size - 11 + i % 3, i // 3
            self._set(a, b, dark)
            self._set(b, a, dark)

    def draw_codewords(self, data: list[int]) -> None:
        bits = ((byte >> (7 - k)) & 1 == 1 for byte in data for k in range(8))
        size = self.size
        columns = list(range(size - 1, 6, -2)) + list(range(5, 0, -2))
        for right in columns:
            upward = ((right + 1) & 2) == 0
            rows = reversed(range(size)) if upward else range(size)
            for y in rows:
                for x in (right, right - 1):
                    if not self.function[y][x]:
                        self.modules[y][x] = next(bits, False)

    def _apply_mask(self, mask: int) -> None:
        condition = _MASKS[mask]
        for y, (row, fixed) in enumerate(zip(self.modules, self.function)):
            for x, is_function in enumerate(fixed):
                if not is_function and condition(x, y):
                    row[x] = not row[x]

    def _penalty(self) -> int:
        grid = self.modules
        score = 0
        for line in itertools.chain(grid, zip(*grid)):
            for _, run in itertools.groupby(line):
                length = sum(1 for _ in run)
                if length >= 5:
                    score += length - 2
            text = "".join("1" if dark else "0" for dark in line)
            score += 40 * len(_FINDER_LIKE.findall(text))
        for upper, lower in zip(grid, grid[1:]):
            for a, b, c, d in zip(upper, upper[1:], lower, lower[1:]):
                if a == b == c == d:
                    score += 3
        dark = sum(map(sum, grid))
        total = self.size * self.size
        k = (abs(dark * 20 - total * 10) + total - 1) // total - 1
        return score + k * 10

    def _score_mask(self, mask: int) -> int:
        self._apply_mask(mask)
        self.draw_format(mask)
        score = self._penalty()
        self._apply_mask(mask)
        return score

    def choose_mask(self) -> None:
        best = min(range(8), key=self._score_mask)
        self._apply_mask(best)
        self.draw_format(best)


def _qr_matrix(data: bytes) -> list[list[bool]]:
    length = len(data)
    for version in range(1, 41):
        # byte-mode character count field: 8 bits up to version 9, 16 bits beyond
        count_bits = 8 if version <= 9 else 16
        if 4 + count_bits + 8 * length <= _data_codewords(version) * 8:
            break
    else:
        raise FileBoxError("data too long for a QR code")
    capacity = _data_codewords(version) * 8
    bits: list[int] = []
    _append_bits(bits, 0b0100, 4)
    _append_bits(bits, length, count_bits)
    for byte in data:
        _append_bits(bits, byte, 8)
    _append_bits(bits, 0, min(4, capacity - len(bits)))
    _append_bits(bits, 0, -len(bits) % 8)
    pads = itertools.cycle((0xEC, 0x11))
    while len(bits) < capacity:
        _append_bits(bits, next(pads), 8)
    codewords = [int("".join(map(str, chunk)), 2) for chunk in zip(*[iter(bits)] * 8)]
    grid = _QrGrid(version)
    grid.draw_function_patterns()
    grid.draw_codewords(_add_ecc(codewords, version))
    grid.choose_mask()
    return grid.modules


def _png_chunk(tag: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + tag + data + struct.pack(">I", zlib.crc32(tag + data))


def _qr_png(data: bytes, target: int = 256, border: int = 4) -> bytes:
    modules = _qr_matrix(data)
    count = len(modules) + 2 * border
    scale = max(1, target // count)
    light = [False] * count
    padded = (
        [light] * border
        + [[False] * border + row + [False] * border for row in modules]
        + [light] * border
    )
    raw = bytearray()
    for row in padded:
        line = b"\x00" + bytes(0 if dark else 255 for dark in row for _ in range(scale))
        raw += line * scale
    width = count * scale
    header = struct.pack(">IIBBBBB", width, width, 8, 0, 0, 0, 0)
    return (
        b"\x89PNG\r\n\x1a\n"
        + _png_chunk(b"IHDR", header)
        + _png_chunk(b"IDAT", zlib.compress(bytes(raw)))
        + _png_chunk(b"IEND", b"")
    )


__all__ = [
    "FileBox",
    "FileBoxError",
    "FileBoxType",
    "NoBase64DataError",
    "NoPathError",
    "NoQRCodeError",
    "NoUrlError",
    "NoUuidError",
    "from_base64",
    "from_file",
    "from_json",
    "from_qrcode",
    "from_stream",
    "from_url",
    "from_uuid",
    "set_uuid_loader",
    "set_uuid_saver",
]


def _reset_hooks() -> None:
    _hooks.loader = None
    _hooks.saver = None


if binascii.Error is None:  # pragma: no cover - keeps binascii import explicit
    raise ImportError("binascii unavailable")