"""Tests for enumeration token parsing."""

from __future__ import annotations

import pytest

from c3bundle.errors import UnknownEnumerationToken
from c3bundle.formats import (
    TextureUsage,
    VertexFormat,
    VertexSemantic,
    WrapMode,
    parse_legacy_usage,
    parse_semantic,
    parse_texture_usage,
    parse_vertex_format,
    parse_wrap_mode,
)


class TestVertexFormat:
    @pytest.mark.parametrize(
        "type_name, size, expected",
        [
            ("GL_FLOAT", 3, VertexFormat.FLOAT3),
            ("GL_FLOAT", 4, VertexFormat.FLOAT4),
            ("GL_UNSIGNED_BYTE", 4, VertexFormat.UBYTE4),
            ("GL_UNSIGNED_SHORT", 2, VertexFormat.USHORT2),
            ("GL_INT", 3, VertexFormat.INT3),
        ],
    )
    def test_known_pairs(self, type_name, size, expected):
        assert parse_vertex_format(type_name, size) == expected

    def test_component_count(self):
        assert VertexFormat.FLOAT2.component_count == 2
        assert VertexFormat.UBYTE4.component_count == 4

    def test_unsupported_size(self):
        with pytest.raises(UnknownEnumerationToken, match="GL_FLOAT"):
            parse_vertex_format("GL_FLOAT", 5)

    def test_unknown_type(self):
        with pytest.raises(UnknownEnumerationToken):
            parse_vertex_format("GL_DOUBLE", 3)


class TestSemantics:
    def test_named_tokens(self):
        assert parse_semantic("VERTEX_ATTRIB_POSITION") == VertexSemantic.POSITION
        assert parse_semantic("VERTEX_ATTRIB_TEX_COORD3") == VertexSemantic.TEX_COORD3
        assert parse_semantic("VERTEX_ATTRIB_BINORMAL") == VertexSemantic.BINORMAL

    def test_unknown_token(self):
        with pytest.raises(UnknownEnumerationToken):
            parse_semantic("VERTEX_ATTRIB_FOO")

    def test_legacy_usage_codes(self):
        assert parse_legacy_usage(0) == VertexSemantic.POSITION
        assert parse_legacy_usage(3) == VertexSemantic.NORMAL
        with pytest.raises(UnknownEnumerationToken):
            parse_legacy_usage(1)


class TestTextureTokens:
    def test_usage(self):
        assert parse_texture_usage("DIFFUSE") == TextureUsage.DIFFUSE
        assert parse_texture_usage("NORMAL") == TextureUsage.NORMAL
        with pytest.raises(UnknownEnumerationToken):
            parse_texture_usage("GLOSS")

    def test_wrap(self):
        assert parse_wrap_mode("REPEAT") == WrapMode.REPEAT
        assert parse_wrap_mode("CLAMP") == WrapMode.CLAMP_TO_EDGE
        with pytest.raises(UnknownEnumerationToken):
            parse_wrap_mode(None)
