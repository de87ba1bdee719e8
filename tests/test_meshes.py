"""Tests for mesh assembly from binary and text sections."""

from __future__ import annotations

import numpy as np
import pytest

from bundle_builder import legacy_mesh_section, mesh_entry, mesh_section
from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import InvalidReference, MissingRequiredField, UnknownEnumerationToken
from c3bundle.formats import VertexFormat, VertexSemantic
from c3bundle.meshes import compute_aabb, read_meshes_binary, read_meshes_text
from c3bundle.models import MeshAttribute
from c3bundle.text_reader import TextValue
from c3bundle.versions import Strategy

POSITION4 = (4, "GL_FLOAT", "VERTEX_ATTRIB_POSITION")
NORMAL3 = (3, "GL_FLOAT", "VERTEX_ATTRIB_NORMAL")

# three vertices with 4-float positions
TRIANGLE4 = [
    0.0, 0.0, 0.0, 1.0,
    2.0, 0.0, -1.0, 1.0,
    0.0, 3.0, 0.5, 1.0,
]  # fmt: skip


class TestComputeAabb:
    def test_position_after_other_attribute(self):
        attrs = [
            MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.NORMAL),
            MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.POSITION),
        ]
        vertices = np.array([9, 9, 9, 1, 2, 3, 9, 9, 9, -1, 5, 0], dtype=np.float32)
        box = compute_aabb(vertices, attrs, np.array([0, 1], dtype=np.uint16))
        np.testing.assert_allclose(box.min, [-1, 2, 0])
        np.testing.assert_allclose(box.max, [1, 5, 3])

    def test_two_component_position_zero_padded(self):
        attrs = [MeshAttribute(VertexFormat.FLOAT2, VertexSemantic.POSITION)]
        vertices = np.array([1, 2, 3, 4], dtype=np.float32)
        box = compute_aabb(vertices, attrs, np.array([0, 1], dtype=np.uint16))
        np.testing.assert_allclose(box.min, [1, 2, 0])
        np.testing.assert_allclose(box.max, [3, 4, 0])

    def test_empty_indices_give_zero_box(self):
        attrs = [MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.POSITION)]
        box = compute_aabb(np.ones(3, dtype=np.float32), attrs, np.array([], dtype=np.uint16))
        np.testing.assert_array_equal(box.min, [0, 0, 0])
        np.testing.assert_array_equal(box.max, [0, 0, 0])

    def test_index_beyond_buffer(self):
        attrs = [MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.POSITION)]
        with pytest.raises(InvalidReference, match="beyond the buffer"):
            compute_aabb(np.ones(3, dtype=np.float32), attrs, np.array([1], dtype=np.uint16))

    def test_mesh_without_position(self):
        attrs = [MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.NORMAL)]
        with pytest.raises(MissingRequiredField, match="no position attribute"):
            compute_aabb(np.zeros(9, dtype=np.float32), attrs, np.array([0, 1, 2], dtype=np.uint16))


class TestBinaryMeshes:
    def test_computed_box_from_four_float_positions(self):
        data = mesh_section(mesh_entry([POSITION4], TRIANGLE4, [("part0", [0, 1, 2], None)]))
        meshes = read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_COMPUTED_AABB)
        assert len(meshes) == 1
        mesh = meshes[0]
        assert mesh.vertex_stride == 4
        assert mesh.vertex_count == 3
        submesh = mesh.submeshes[0]
        assert submesh.id == "part0"
        np.testing.assert_array_equal(submesh.indices, [0, 1, 2])
        np.testing.assert_allclose(submesh.aabb.min, [0.0, 0.0, -1.0])
        np.testing.assert_allclose(submesh.aabb.max, [2.0, 3.0, 0.5])

    def test_stored_box_is_taken_verbatim(self):
        stored = [-5.0, -5.0, -5.0, 5.0, 5.0, 5.0]
        data = mesh_section(mesh_entry([POSITION4], TRIANGLE4, [("p", [0, 1, 2], stored)]))
        mesh = read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_STORED_AABB)[0]
        np.testing.assert_allclose(mesh.submeshes[0].aabb.min, stored[:3])
        np.testing.assert_allclose(mesh.submeshes[0].aabb.max, stored[3:])

    def test_wide_indices(self):
        vertices = [0.0] * 3 * 3
        data = mesh_section(
            mesh_entry(
                [(3, "GL_FLOAT", "VERTEX_ATTRIB_POSITION")],
                vertices,
                [("p", [0, 1, 2], [0.0] * 6)],
                index_width=32,
            )
        )
        mesh = read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_WIDE_INDEX)[0]
        assert mesh.submeshes[0].index_width == 32

    def test_several_meshes_and_parts(self):
        data = mesh_section(
            mesh_entry([POSITION4, NORMAL3], [0.0] * 7 * 2, [("a", [0, 1], None), ("b", [1], None)]),
            mesh_entry([POSITION4], TRIANGLE4, [("c", [2], None)]),
        )
        meshes = read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_COMPUTED_AABB)
        assert [s.id for s in meshes[0].submeshes] == ["a", "b"]
        assert meshes[0].vertex_stride == 7
        assert meshes[0].attribute_offset(VertexSemantic.NORMAL) == 4
        assert [s.id for s in meshes[1].submeshes] == ["c"]

    def test_zero_attributes_rejected(self):
        data = mesh_section(mesh_entry([], [1.0], []))
        with pytest.raises(MissingRequiredField, match="no vertex attributes"):
            read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_COMPUTED_AABB)

    def test_empty_vertex_buffer_rejected(self):
        data = mesh_section(mesh_entry([POSITION4], [], []))
        with pytest.raises(MissingRequiredField, match="empty vertex buffer"):
            read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_COMPUTED_AABB)

    def test_unknown_semantic(self):
        data = mesh_section(mesh_entry([(3, "GL_FLOAT", "VERTEX_ATTRIB_FOO")], [0.0] * 3, []))
        with pytest.raises(UnknownEnumerationToken):
            read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_COMPUTED_AABB)

    def test_legacy_single_mesh(self):
        data = legacy_mesh_section([(0, 3), (2, 2)], [0, 0, 0, 0, 0, 1, 1, 1, 1, 1], [0, 1, 1])
        meshes = read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_SINGLE)
        assert len(meshes) == 1
        mesh = meshes[0]
        assert [a.semantic for a in mesh.attributes] == [
            VertexSemantic.POSITION,
            VertexSemantic.TEX_COORD,
        ]
        assert mesh.submeshes[0].id == ""
        np.testing.assert_allclose(mesh.submeshes[0].aabb.max, [1, 1, 1])

    def test_legacy_color_usage_is_unknown(self):
        data = legacy_mesh_section([(1, 4)], [0.0] * 4, [0])
        with pytest.raises(UnknownEnumerationToken):
            read_meshes_binary(BinaryReader(data), Strategy.MESH_BINARY_SINGLE)


def _text_mesh_doc(indices: list, aabb: list | None = None) -> TextValue:
    part = {"id": "shape1", "indices": indices}
    if aabb is not None:
        part["aabb"] = aabb
    return TextValue(
        {
            "version": "0.5",
            "meshes": [
                {
                    "attributes": [
                        {"size": 3, "type": "GL_FLOAT", "attribute": "VERTEX_ATTRIB_POSITION"}
                    ],
                    "vertices": [0, 0, 0, 1, 2, 3, -1, 0, 4],
                    "parts": [part],
                }
            ],
        }
    )


class TestTextMeshes:
    def test_current_layout_computes_box(self):
        mesh = read_meshes_text(_text_mesh_doc([0, 1, 2]), Strategy.MESH_TEXT_CURRENT)[0]
        np.testing.assert_allclose(mesh.submeshes[0].aabb.min, [-1, 0, 0])
        np.testing.assert_allclose(mesh.submeshes[0].aabb.max, [1, 2, 4])
        assert mesh.submeshes[0].indices.dtype == np.uint16

    def test_stored_box(self):
        doc = _text_mesh_doc([0], aabb=[0, 0, 0, 9, 9, 9])
        mesh = read_meshes_text(doc, Strategy.MESH_TEXT_CURRENT)[0]
        np.testing.assert_allclose(mesh.submeshes[0].aabb.max, [9, 9, 9])

    def test_index_out_of_16_bit_range(self):
        with pytest.raises(InvalidReference, match="16-bit"):
            read_meshes_text(_text_mesh_doc([70000]), Strategy.MESH_TEXT_CURRENT)

    def test_wide_index_layout_accepts_large_values(self):
        doc = _text_mesh_doc([70000], aabb=[0] * 6)
        mesh = read_meshes_text(doc, Strategy.MESH_TEXT_WIDE_INDEX)[0]
        assert int(mesh.submeshes[0].indices[0]) == 70000

    def test_non_integer_index(self):
        with pytest.raises(InvalidReference):
            read_meshes_text(_text_mesh_doc([0, "x"]), Strategy.MESH_TEXT_CURRENT)

    def test_text_mesh_without_position(self):
        doc = TextValue(
            {
                "version": "0.5",
                "meshes": [
                    {
                        "attributes": [
                            {"size": 3, "type": "GL_FLOAT", "attribute": "VERTEX_ATTRIB_NORMAL"}
                        ],
                        "vertices": [0, 0, 1] * 3,
                        "parts": [{"id": "p", "indices": [0, 1, 2]}],
                    }
                ],
            }
        )
        with pytest.raises(MissingRequiredField, match="no position attribute"):
            read_meshes_text(doc, Strategy.MESH_TEXT_CURRENT)

    def test_no_meshes_key(self):
        assert read_meshes_text(TextValue({"version": "0.5"}), Strategy.MESH_TEXT_CURRENT) == []

    def test_legacy_body_block(self):
        doc = TextValue(
            {
                "version": [1, 2],
                "mesh": [
                    {
                        "attributes": [
                            {"size": 3, "type": "GL_FLOAT", "attribute": "VERTEX_ATTRIB_POSITION"}
                        ],
                        "body": [{"vertices": [0, 0, 0, 1, 1, 1], "indices": [0, 1]}],
                    }
                ],
            }
        )
        meshes = read_meshes_text(doc, Strategy.MESH_TEXT_LEGACY)
        assert len(meshes) == 1
        assert meshes[0].submeshes[0].id == ""
        np.testing.assert_allclose(meshes[0].submeshes[0].aabb.max, [1, 1, 1])
