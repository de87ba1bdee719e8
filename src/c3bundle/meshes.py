"""Mesh assembly: attribute layout, vertex buffer, submeshes and bounding boxes."""

from __future__ import annotations

import numpy as np

from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import InvalidReference, MissingRequiredField
from c3bundle.formats import (
    VertexSemantic,
    parse_legacy_usage,
    parse_semantic,
    parse_vertex_format,
)
from c3bundle.models import AABB, MeshAttribute, MeshRecord, SubmeshRecord
from c3bundle.text_reader import TextValue
from c3bundle.versions import Strategy

# Binary part layouts: strategy -> (stored bounding box, index width)
_BINARY_PART_LAYOUTS: dict[Strategy, tuple[bool, int]] = {
    Strategy.MESH_BINARY_COMPUTED_AABB: (False, 16),
    Strategy.MESH_BINARY_STORED_AABB: (True, 16),
    Strategy.MESH_BINARY_WIDE_INDEX: (True, 32),
}

_TEXT_INDEX_WIDTHS: dict[Strategy, int] = {
    Strategy.MESH_TEXT_LEGACY: 16,
    Strategy.MESH_TEXT_CURRENT: 16,
    Strategy.MESH_TEXT_WIDE_INDEX: 32,
}


def gather_positions(
    vertices: np.ndarray, attributes: list[MeshAttribute], indices: np.ndarray
) -> np.ndarray:
    """(N, 3) positions of the vertices addressed by ``indices``, in index order.

    Strides through the flat vertex buffer using the position attribute's
    offset and component count. Missing position components (a 2-float
    position) are taken as zero.

    Raises:
        MissingRequiredField: If the attributes carry no position.
        InvalidReference: If an index addresses a vertex beyond the buffer.
    """
    stride = sum(attr.size for attr in attributes)
    offset = 0
    for attr in attributes:
        if attr.semantic == VertexSemantic.POSITION:
            count = min(3, attr.size)
            break
        offset += attr.size
    else:
        raise MissingRequiredField("Mesh has no position attribute")

    if len(indices) == 0:
        return np.zeros((0, 3), dtype=np.float32)

    vertex_count = len(vertices) // stride if stride else 0
    idx = indices.astype(np.int64)
    highest = int(idx.max())
    if highest >= vertex_count:
        raise InvalidReference(
            f"Index {highest} addresses a vertex beyond the buffer ({vertex_count} vertices)"
        )

    table = vertices[: vertex_count * stride].reshape(vertex_count, stride)
    points = np.zeros((len(idx), 3), dtype=np.float32)
    points[:, :count] = table[idx, offset : offset + count]
    return points


def compute_aabb(
    vertices: np.ndarray, attributes: list[MeshAttribute], indices: np.ndarray
) -> AABB:
    """Bounding box of the indexed positions; every index counts, duplicates included."""
    return AABB.from_points(gather_positions(vertices, attributes, indices))


# --- binary ---


def read_meshes_binary(reader: BinaryReader, strategy: Strategy) -> list[MeshRecord]:
    """Decode the mesh section the reader is positioned at."""
    if strategy == Strategy.MESH_BINARY_SINGLE:
        return [_read_single_mesh_binary(reader)]

    stored_aabb, index_width = _BINARY_PART_LAYOUTS[strategy]
    meshes: list[MeshRecord] = []
    mesh_count = reader.read_u32("mesh count")
    for i in range(mesh_count):
        attr_count = reader.read_u32("attribute count")
        if attr_count < 1:
            raise MissingRequiredField(f"Mesh {i} has no vertex attributes")
        attributes = []
        for _ in range(attr_count):
            size = reader.read_u32("attribute size")
            type_name = reader.read_string("attribute type")
            semantic = reader.read_string("attribute name")
            attributes.append(
                MeshAttribute(parse_vertex_format(type_name, size), parse_semantic(semantic))
            )

        vertices = _read_vertex_buffer(reader, i)

        submeshes = []
        part_count = reader.read_u32("submesh count")
        for _ in range(part_count):
            part_id = reader.read_string("submesh id")
            index_count = reader.read_u32("index count")
            indices = reader.read_indices(index_count, index_width, f"submesh {part_id!r} indices")
            if stored_aabb:
                aabb = AABB.from_values(reader.read_floats(6, f"submesh {part_id!r} aabb"))
            else:
                aabb = compute_aabb(vertices, attributes, indices)
            submeshes.append(SubmeshRecord(id=part_id, indices=indices, aabb=aabb))

        meshes.append(MeshRecord(attributes=attributes, vertices=vertices, submeshes=submeshes))
    return meshes


def _read_single_mesh_binary(reader: BinaryReader) -> MeshRecord:
    """Oldest layout: one mesh, integer usage codes, one unnamed submesh."""
    attr_count = reader.read_u32("attribute count")
    if attr_count < 1:
        raise MissingRequiredField("Mesh has no vertex attributes")
    attributes = []
    for _ in range(attr_count):
        usage = reader.read_u32("attribute usage")
        size = reader.read_u32("attribute size")
        attributes.append(
            MeshAttribute(parse_vertex_format("GL_FLOAT", size), parse_legacy_usage(usage))
        )

    vertices = _read_vertex_buffer(reader, 0)

    index_count = reader.read_u32("index count")
    indices = reader.read_indices(index_count, 16, "indices")
    submesh = SubmeshRecord(id="", indices=indices, aabb=compute_aabb(vertices, attributes, indices))
    return MeshRecord(attributes=attributes, vertices=vertices, submeshes=[submesh])


def _read_vertex_buffer(reader: BinaryReader, mesh_index: int) -> np.ndarray:
    float_count = reader.read_u32("vertex size")
    if float_count == 0:
        raise MissingRequiredField(f"Mesh {mesh_index} has an empty vertex buffer")
    return reader.read_floats(float_count, "vertices")


# --- text ---


def read_meshes_text(root: TextValue, strategy: Strategy) -> list[MeshRecord]:
    """Decode the mesh collection of a text document."""
    index_width = _TEXT_INDEX_WIDTHS[strategy]
    if strategy == Strategy.MESH_TEXT_LEGACY:
        mesh = root["mesh"].at(0)
        if not mesh.exists:
            return []
        return [_read_legacy_mesh_text(mesh, index_width)]

    meshes_value = root["meshes"]
    if not meshes_value.is_array:
        return []
    meshes: list[MeshRecord] = []
    for i, mesh in enumerate(meshes_value.elements()):
        attributes = _read_attributes_text(mesh["attributes"], i)
        vertices = _text_vertices(mesh["vertices"], i)
        submeshes = []
        for part in mesh["parts"].elements():
            part_id = part["id"].as_str() or ""
            indices = _text_indices(part["indices"], index_width, part_id)
            aabb_values = part["aabb"].as_floats()
            if aabb_values is not None and len(aabb_values) == 6:
                aabb = AABB.from_values(aabb_values)
            else:
                aabb = compute_aabb(vertices, attributes, indices)
            submeshes.append(SubmeshRecord(id=part_id, indices=indices, aabb=aabb))
        meshes.append(MeshRecord(attributes=attributes, vertices=vertices, submeshes=submeshes))
    return meshes


def _read_legacy_mesh_text(mesh: TextValue, index_width: int) -> MeshRecord:
    attributes = _read_attributes_text(mesh["attributes"], 0)
    body = mesh["body"].at(0)
    vertices = _text_vertices(body["vertices"], 0)
    indices = _text_indices(body["indices"], index_width, "")
    submesh = SubmeshRecord(id="", indices=indices, aabb=compute_aabb(vertices, attributes, indices))
    return MeshRecord(attributes=attributes, vertices=vertices, submeshes=[submesh])


def _read_attributes_text(value: TextValue, mesh_index: int) -> list[MeshAttribute]:
    attributes = [
        MeshAttribute(
            parse_vertex_format(attr["type"].as_str(), attr["size"].as_int()),
            parse_semantic(attr["attribute"].as_str()),
        )
        for attr in value.elements()
    ]
    if not attributes:
        raise MissingRequiredField(f"Mesh {mesh_index} has no vertex attributes")
    return attributes


def _text_vertices(value: TextValue, mesh_index: int) -> np.ndarray:
    floats = value.as_floats()
    if not floats:
        raise MissingRequiredField(f"Mesh {mesh_index} has an empty vertex buffer")
    return np.asarray(floats, dtype=np.float32)


def _text_indices(value: TextValue, width: int, part_id: str) -> np.ndarray:
    limit = 1 << width
    out: list[int] = []
    for item in value.elements():
        index = item.as_int()
        if index is None or index < 0 or index >= limit:
            raise InvalidReference(
                f"Submesh {part_id!r} has an invalid {width}-bit index {item.raw!r}"
            )
        out.append(index)
    return np.asarray(out, dtype=np.uint16 if width == 16 else np.uint32)
