"""Wavefront OBJ/MTL ingestion into the same records a bundle decodes to."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from c3bundle.errors import BundleError
from c3bundle.formats import TextureUsage, VertexFormat, VertexSemantic, WrapMode
from c3bundle.materials import bundle_directory
from c3bundle.meshes import compute_aabb
from c3bundle.models import (
    MaterialRecord,
    MeshAttribute,
    MeshRecord,
    NodeRecord,
    PartBinding,
    SubmeshRecord,
    TextureRecord,
)

logger = logging.getLogger(__name__)

_NO_MATERIAL = -1


@dataclass
class ObjModel:
    meshes: list[MeshRecord] = field(default_factory=list)
    materials: list[MaterialRecord] = field(default_factory=list)
    nodes: list[NodeRecord] = field(default_factory=list)


@dataclass
class _Shape:
    """Faces of one ``o``/``g`` group, de-indexed into its own vertex list."""

    name: str
    vertex_keys: list[tuple[int, int, int]] = field(default_factory=list)
    vertex_map: dict[tuple[int, int, int], int] = field(default_factory=dict)
    triangles: list[tuple[int, int, int, int]] = field(default_factory=list)  # a, b, c, material

    def vertex(self, key: tuple[int, int, int]) -> int:
        index = self.vertex_map.get(key)
        if index is None:
            index = len(self.vertex_keys)
            self.vertex_map[key] = index
            self.vertex_keys.append(key)
        return index


def load_obj(path: str | Path, mtl_basepath: str | None = None) -> ObjModel:
    """Load an OBJ file and its material libraries.

    One mesh and one node per shape; the shape's triangles are split into one
    submesh per material. Submesh ids count from "1" across the whole file and
    material ids count from "1" in library order. Diffuse texture names are
    resolved against the OBJ file's directory.

    Raises:
        BundleError: If the file cannot be read or a line cannot be parsed.
    """
    path_str = str(path)
    directory = bundle_directory(path_str)
    mtl_dir = directory if mtl_basepath is None else mtl_basepath
    try:
        text = Path(path_str).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise BundleError(f"Cannot read OBJ file: {e}", path=path_str) from e

    positions: list[list[float]] = []
    normals: list[list[float]] = []
    texcoords: list[list[float]] = []
    material_names: list[str] = []
    material_textures: list[str] = []
    current_material = _NO_MATERIAL
    shapes: list[_Shape] = []
    shape = _Shape(name="")

    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        prefix = parts[0]
        try:
            if prefix == "v":
                positions.append(_floats(parts, 3))
            elif prefix == "vn":
                normals.append(_floats(parts, 3))
            elif prefix == "vt":
                texcoords.append(_floats(parts, 2))
            elif prefix == "f":
                corners = [
                    shape.vertex(_face_key(token, positions, normals, texcoords))
                    for token in parts[1:]
                ]
                for i in range(1, len(corners) - 1):
                    shape.triangles.append(
                        (corners[0], corners[i], corners[i + 1], current_material)
                    )
            elif prefix in ("o", "g"):
                if shape.triangles:
                    shapes.append(shape)
                shape = _Shape(name=" ".join(parts[1:]))
            elif prefix == "usemtl":
                name = " ".join(parts[1:])
                current_material = (
                    material_names.index(name) if name in material_names else _NO_MATERIAL
                )
            elif prefix == "mtllib":
                for library in parts[1:]:
                    _read_mtl(mtl_dir + library, material_names, material_textures)
        except (ValueError, IndexError) as e:
            raise BundleError(f"Invalid OBJ line {line_number}: {line!r}", path=path_str) from e
    if shape.triangles:
        shapes.append(shape)

    model = ObjModel()
    for index, texture_name in enumerate(material_textures):
        texture = TextureRecord(
            id="",
            path=directory + texture_name if texture_name else "",
            usage=TextureUsage.DIFFUSE,
            wrap_s=WrapMode.CLAMP_TO_EDGE,
            wrap_t=WrapMode.CLAMP_TO_EDGE,
        )
        model.materials.append(MaterialRecord(id=str(index + 1), textures=[texture]))

    submesh_counter = 0
    for shape in shapes:
        mesh = _build_mesh(shape, positions, normals, texcoords)
        node = NodeRecord(id=shape.name)
        by_material: dict[int, list[int]] = {}
        for a, b, c, material in shape.triangles:
            by_material.setdefault(material, []).extend((a, b, c))
        for material in sorted(by_material):
            submesh_counter += 1
            submesh_id = str(submesh_counter)
            indices = np.asarray(by_material[material], dtype=np.uint32)
            mesh.submeshes.append(
                SubmeshRecord(
                    id=submesh_id,
                    indices=indices,
                    aabb=compute_aabb(mesh.vertices, mesh.attributes, indices),
                )
            )
            material_id = "" if material == _NO_MATERIAL else str(material + 1)
            node.parts.append(PartBinding(submesh_id=submesh_id, material_id=material_id))
        model.meshes.append(mesh)
        model.nodes.append(node)

    logger.debug(
        "Loaded OBJ %s: %d meshes, %d materials", path_str, len(model.meshes), len(model.materials)
    )
    return model


def _floats(parts: list[str], count: int) -> list[float]:
    if len(parts) < count + 1:
        raise ValueError(f"expected {count} numbers")
    return [float(v) for v in parts[1 : count + 1]]


def _face_key(
    token: str,
    positions: list[list[float]],
    normals: list[list[float]],
    texcoords: list[list[float]],
) -> tuple[int, int, int]:
    """``v``, ``v/vt``, ``v//vn`` or ``v/vt/vn`` to zero-based (v, vt, vn); -1 if absent."""
    fields = token.split("/")
    v = _resolve_index(fields[0], len(positions))
    if v < 0:
        raise ValueError(f"face vertex without position: {token!r}")
    vt = _resolve_index(fields[1], len(texcoords)) if len(fields) > 1 else -1
    vn = _resolve_index(fields[2], len(normals)) if len(fields) > 2 else -1
    return v, vt, vn


def _resolve_index(field_text: str, count: int) -> int:
    if not field_text:
        return -1
    value = int(field_text)
    index = value - 1 if value > 0 else count + value
    if not 0 <= index < count:
        raise IndexError(f"index {value} out of range")
    return index


def _read_mtl(path: str, names: list[str], textures: list[str]) -> None:
    try:
        text = Path(path).read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        logger.warning("Cannot read material library %s: %s", path, e)
        return
    for raw in text.splitlines():
        parts = raw.strip().split()
        if not parts:
            continue
        if parts[0] == "newmtl":
            names.append(" ".join(parts[1:]))
            textures.append("")
        elif parts[0] == "map_Kd" and len(parts) > 1 and textures:
            # Options such as -s come before the file name.
            textures[-1] = parts[-1]


def _build_mesh(
    shape: _Shape,
    positions: list[list[float]],
    normals: list[list[float]],
    texcoords: list[list[float]],
) -> MeshRecord:
    has_normals = any(vn >= 0 for _, _, vn in shape.vertex_keys)
    has_texcoords = any(vt >= 0 for _, vt, _ in shape.vertex_keys)

    attributes = [MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.POSITION)]
    if has_normals:
        attributes.append(MeshAttribute(VertexFormat.FLOAT3, VertexSemantic.NORMAL))
    if has_texcoords:
        attributes.append(MeshAttribute(VertexFormat.FLOAT2, VertexSemantic.TEX_COORD))

    rows = []
    for v, vt, vn in shape.vertex_keys:
        row = list(positions[v])
        if has_normals:
            row.extend(normals[vn] if vn >= 0 else (0.0, 0.0, 0.0))
        if has_texcoords:
            row.extend(texcoords[vt] if vt >= 0 else (0.0, 0.0))
        rows.append(row)
    vertices = np.asarray(rows, dtype=np.float32).reshape(-1)
    return MeshRecord(attributes=attributes, vertices=vertices)
