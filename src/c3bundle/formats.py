"""Enumeration tokens of the bundle format and their lookup tables."""

from __future__ import annotations

from enum import Enum

from c3bundle.errors import UnknownEnumerationToken


class VertexFormat(str, Enum):
    FLOAT = "float"
    FLOAT2 = "float2"
    FLOAT3 = "float3"
    FLOAT4 = "float4"
    INT = "int"
    INT2 = "int2"
    INT3 = "int3"
    INT4 = "int4"
    USHORT2 = "ushort2"
    USHORT4 = "ushort4"
    UBYTE4 = "ubyte4"

    @property
    def component_count(self) -> int:
        return _COMPONENT_COUNTS[self]


_COMPONENT_COUNTS: dict[VertexFormat, int] = {
    VertexFormat.FLOAT: 1,
    VertexFormat.FLOAT2: 2,
    VertexFormat.FLOAT3: 3,
    VertexFormat.FLOAT4: 4,
    VertexFormat.INT: 1,
    VertexFormat.INT2: 2,
    VertexFormat.INT3: 3,
    VertexFormat.INT4: 4,
    VertexFormat.USHORT2: 2,
    VertexFormat.USHORT4: 4,
    VertexFormat.UBYTE4: 4,
}


def _int_formats() -> dict[int, VertexFormat]:
    return {1: VertexFormat.INT, 2: VertexFormat.INT2, 3: VertexFormat.INT3, 4: VertexFormat.INT4}


# (primitive type name, component count) -> format
_VERTEX_FORMATS: dict[tuple[str, int], VertexFormat] = {
    ("GL_BYTE", 4): VertexFormat.UBYTE4,
    ("GL_UNSIGNED_BYTE", 4): VertexFormat.UBYTE4,
    ("GL_SHORT", 2): VertexFormat.USHORT2,
    ("GL_SHORT", 4): VertexFormat.USHORT4,
    ("GL_UNSIGNED_SHORT", 2): VertexFormat.USHORT2,
    ("GL_UNSIGNED_SHORT", 4): VertexFormat.USHORT4,
    **{("GL_INT", n): fmt for n, fmt in _int_formats().items()},
    **{("GL_UNSIGNED_INT", n): fmt for n, fmt in _int_formats().items()},
    ("GL_FLOAT", 1): VertexFormat.FLOAT,
    ("GL_FLOAT", 2): VertexFormat.FLOAT2,
    ("GL_FLOAT", 3): VertexFormat.FLOAT3,
    ("GL_FLOAT", 4): VertexFormat.FLOAT4,
}


class VertexSemantic(str, Enum):
    POSITION = "position"
    COLOR = "color"
    TEX_COORD = "tex_coord"
    TEX_COORD1 = "tex_coord1"
    TEX_COORD2 = "tex_coord2"
    TEX_COORD3 = "tex_coord3"
    NORMAL = "normal"
    BLEND_WEIGHT = "blend_weight"
    BLEND_INDEX = "blend_index"
    TANGENT = "tangent"
    BINORMAL = "binormal"


_SEMANTICS: dict[str, VertexSemantic] = {
    "VERTEX_ATTRIB_POSITION": VertexSemantic.POSITION,
    "VERTEX_ATTRIB_COLOR": VertexSemantic.COLOR,
    "VERTEX_ATTRIB_TEX_COORD": VertexSemantic.TEX_COORD,
    "VERTEX_ATTRIB_TEX_COORD1": VertexSemantic.TEX_COORD1,
    "VERTEX_ATTRIB_TEX_COORD2": VertexSemantic.TEX_COORD2,
    "VERTEX_ATTRIB_TEX_COORD3": VertexSemantic.TEX_COORD3,
    "VERTEX_ATTRIB_NORMAL": VertexSemantic.NORMAL,
    "VERTEX_ATTRIB_BLEND_WEIGHT": VertexSemantic.BLEND_WEIGHT,
    "VERTEX_ATTRIB_BLEND_INDEX": VertexSemantic.BLEND_INDEX,
    "VERTEX_ATTRIB_TANGENT": VertexSemantic.TANGENT,
    "VERTEX_ATTRIB_BINORMAL": VertexSemantic.BINORMAL,
}

# Integer usage codes of the oldest binary mesh layout. Code 1 (color) was
# never supported by that layout and stays unmapped.
LEGACY_USAGE_CODES: dict[int, VertexSemantic] = {
    0: VertexSemantic.POSITION,
    2: VertexSemantic.TEX_COORD,
    3: VertexSemantic.NORMAL,
    4: VertexSemantic.BLEND_WEIGHT,
    5: VertexSemantic.BLEND_INDEX,
}


class TextureUsage(str, Enum):
    AMBIENT = "ambient"
    BUMP = "bump"
    DIFFUSE = "diffuse"
    EMISSIVE = "emissive"
    NONE = "none"
    NORMAL = "normal"
    REFLECTION = "reflection"
    SHININESS = "shininess"
    SPECULAR = "specular"
    TRANSPARENCY = "transparency"


_USAGES: dict[str, TextureUsage] = {usage.name: usage for usage in TextureUsage}


class WrapMode(str, Enum):
    REPEAT = "repeat"
    CLAMP_TO_EDGE = "clamp_to_edge"


_WRAP_MODES: dict[str, WrapMode] = {
    "REPEAT": WrapMode.REPEAT,
    "CLAMP": WrapMode.CLAMP_TO_EDGE,
}


def parse_vertex_format(type_name: str | None, size: int | None) -> VertexFormat:
    """Map a primitive type name and component count to a vertex format."""
    fmt = _VERTEX_FORMATS.get((type_name, size))  # type: ignore[arg-type]
    if fmt is None:
        raise UnknownEnumerationToken(f"Unsupported vertex type {type_name!r} x {size}")
    return fmt


def parse_semantic(token: str | None) -> VertexSemantic:
    semantic = _SEMANTICS.get(token)  # type: ignore[arg-type]
    if semantic is None:
        raise UnknownEnumerationToken(f"Unknown vertex attribute {token!r}")
    return semantic


def parse_legacy_usage(code: int) -> VertexSemantic:
    semantic = LEGACY_USAGE_CODES.get(code)
    if semantic is None:
        raise UnknownEnumerationToken(f"Unknown legacy vertex usage code {code}")
    return semantic


def parse_texture_usage(token: str | None) -> TextureUsage:
    usage = _USAGES.get(token)  # type: ignore[arg-type]
    if usage is None:
        raise UnknownEnumerationToken(f"Unknown texture usage {token!r}")
    return usage


def parse_wrap_mode(token: str | None) -> WrapMode:
    mode = _WRAP_MODES.get(token)  # type: ignore[arg-type]
    if mode is None:
        raise UnknownEnumerationToken(f"Unknown texture wrap mode {token!r}")
    return mode
