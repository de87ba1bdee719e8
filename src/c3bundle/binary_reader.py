"""Binary cursor, bundle header and reference table for ``.c3b`` bundles.

Layout::

    [4-byte magic "C3B\\0"][major u8][minor u8][u32 ref_count]
    ref_count x (v32 id, u32 type, u32 offset)

followed by type-tagged sections reachable only through the reference table.
All integers are little-endian; a v32 string is a u32 byte length followed by
UTF-8 bytes.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterator

import numpy as np

from c3bundle.errors import InvalidReference, MalformedHeader, TruncatedStream

MAGIC = b"C3B\x00"


class SectionType(IntEnum):
    SCENE = 1
    NODE = 2
    ANIMATIONS = 3
    ANIMATION = 4
    ANIMATION_CHANNEL = 5
    MODEL = 10
    MATERIAL = 16
    EFFECT = 18
    CAMERA = 32
    LIGHT = 33
    MESH = 34
    MESHPART = 35
    MESHSKIN = 36


class BinaryReader:
    """Forward cursor over an in-memory byte buffer.

    Every read checks the remaining length first and raises
    ``TruncatedStream`` on a short read, so callers can tell a section that
    ran out of bytes apart from one holding a bad value.
    """

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    @property
    def position(self) -> int:
        return self._pos

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def seek(self, offset: int) -> None:
        if offset < 0 or offset > len(self._data):
            raise TruncatedStream(
                f"Cannot seek to offset {offset}: stream is {len(self._data)} bytes"
            )
        self._pos = offset

    def _take(self, size: int, label: str) -> bytes:
        if size < 0 or self._pos + size > len(self._data):
            raise TruncatedStream(
                f"Cannot read {label}: need {size} bytes at offset {self._pos}, "
                f"{self.remaining} remaining"
            )
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def read_bytes(self, size: int, label: str = "bytes") -> bytes:
        return self._take(size, label)

    def read_u8(self, label: str = "u8") -> int:
        return self._take(1, label)[0]

    def read_bool(self, label: str = "bool") -> bool:
        return self.read_u8(label) != 0

    def read_u32(self, label: str = "u32") -> int:
        return struct.unpack("<I", self._take(4, label))[0]

    def read_f32(self, label: str = "f32") -> float:
        return struct.unpack("<f", self._take(4, label))[0]

    def read_floats(self, count: int, label: str = "floats") -> np.ndarray:
        raw = self._take(4 * count, label)
        return np.frombuffer(raw, dtype="<f4").astype(np.float32)

    def read_matrix(self, label: str = "matrix") -> np.ndarray:
        """Read 16 floats as a row-major 4x4 matrix."""
        return self.read_floats(16, label).reshape(4, 4)

    def read_indices(self, count: int, width: int, label: str = "indices") -> np.ndarray:
        if width == 16:
            dtype, out = "<u2", np.uint16
        elif width == 32:
            dtype, out = "<u4", np.uint32
        else:
            raise ValueError(f"Unsupported index width: {width}")
        raw = self._take(count * (width // 8), label)
        return np.frombuffer(raw, dtype=dtype).astype(out)

    def read_string(self, label: str = "string") -> str:
        length = self.read_u32(f"{label} length")
        raw = self._take(length, label)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise InvalidReference(f"{label} is not valid UTF-8: {raw!r}") from e


@dataclass(frozen=True)
class BundleReference:
    """One entry of the binary section index."""

    id: str
    type: int
    offset: int


class ReferenceTable:
    """Immutable reference table with a (type, id) index built once."""

    def __init__(self, references: list[BundleReference] | tuple[BundleReference, ...]) -> None:
        self._references = tuple(references)
        self._first_by_type: dict[int, BundleReference] = {}
        self._first_by_key: dict[tuple[int, str], BundleReference] = {}
        for ref in self._references:
            self._first_by_type.setdefault(ref.type, ref)
            self._first_by_key.setdefault((ref.type, ref.id), ref)

    def __len__(self) -> int:
        return len(self._references)

    def __iter__(self) -> Iterator[BundleReference]:
        return iter(self._references)

    def find(self, section_type: int, ref_id: str = "") -> BundleReference | None:
        """Return the first entry of ``section_type`` (and ``ref_id``, if given)."""
        if ref_id:
            return self._first_by_key.get((int(section_type), ref_id))
        return self._first_by_type.get(int(section_type))

    def seek_to_first_of_type(
        self, reader: BinaryReader, section_type: int, ref_id: str = ""
    ) -> BundleReference | None:
        """Reposition ``reader`` at the first matching section.

        Returns the matched entry, or None when the bundle has no such
        section. An entry whose offset lies past the end of the stream raises
        ``TruncatedStream``.
        """
        ref = self.find(section_type, ref_id)
        if ref is None:
            return None
        try:
            reader.seek(ref.offset)
        except TruncatedStream as e:
            raise TruncatedStream(e.message, reference_id=ref.id) from e
        return ref


@dataclass(frozen=True)
class BinaryHeader:
    version: str
    references: ReferenceTable


def read_header(reader: BinaryReader) -> BinaryHeader:
    """Parse magic, version pair and reference table from the stream start.

    Raises:
        MalformedHeader: On a magic tag mismatch.
        TruncatedStream: When any header field is cut short.
        InvalidReference: On a reference with an empty id.
    """
    reader.seek(0)
    magic = reader.read_bytes(4, "magic")
    if magic != MAGIC:
        raise MalformedHeader(f"Invalid identifier {magic!r}")

    major = reader.read_u8("version major")
    minor = reader.read_u8("version minor")
    version = f"{major}.{minor}"

    count = reader.read_u32("reference count")
    references: list[BundleReference] = []
    for i in range(count):
        ref_id = reader.read_string(f"reference {i} id")
        if not ref_id:
            raise InvalidReference(f"Reference number {i} has an empty id")
        ref_type = reader.read_u32(f"reference {ref_id!r} type")
        offset = reader.read_u32(f"reference {ref_id!r} offset")
        references.append(BundleReference(id=ref_id, type=ref_type, offset=offset))

    return BinaryHeader(version=version, references=ReferenceTable(references))
