"""Inspection summaries for decoded bundles."""

from __future__ import annotations

import numpy as np

from c3bundle.binary_reader import SectionType
from c3bundle.bundle import BundleLoader
from c3bundle.models import (
    AnimationTrackSet,
    MaterialRecord,
    MeshRecord,
    NodeForests,
    NodeRecord,
)
from c3bundle.obj_import import ObjModel

INSPECT_SCHEMA_VERSION = "1"


def inspect_bundle(loader: BundleLoader, *, animation_id: str = "") -> dict[str, object]:
    """Decode every category of the open bundle and return a deterministic summary."""
    source = {
        "path": loader.path,
        "encoding": loader.encoding.value if loader.encoding else None,
        "version": loader.version,
        "references": [
            {"id": ref.id, "type": _section_name(ref.type), "offset": ref.offset}
            for ref in loader.references
        ],
    }
    return _payload(
        source,
        loader.load_meshes(),
        loader.load_materials(),
        loader.load_nodes(),
        loader.load_animation(animation_id),
    )


def inspect_obj(model: ObjModel, path: str) -> dict[str, object]:
    """Summary of an OBJ import, in the same shape as ``inspect_bundle``."""
    source = {"path": path, "encoding": "obj", "version": None, "references": []}
    return _payload(source, model.meshes, model.materials, NodeForests(nodes=model.nodes), None)


def _payload(
    source: dict[str, object],
    meshes: list[MeshRecord],
    materials: list[MaterialRecord],
    forests: NodeForests,
    animation: AnimationTrackSet | None,
) -> dict[str, object]:
    boxes = [submesh.aabb for mesh in meshes for submesh in mesh.submeshes]
    if boxes:
        bounds = {
            "min": _to_list(np.min([box.min for box in boxes], axis=0)),
            "max": _to_list(np.max([box.max for box in boxes], axis=0)),
        }
    else:
        bounds = {"min": [0.0, 0.0, 0.0], "max": [0.0, 0.0, 0.0]}

    return {
        "inspect_schema_version": INSPECT_SCHEMA_VERSION,
        "source": source,
        "summary": {
            "mesh_count": len(meshes),
            "submesh_count": sum(len(mesh.submeshes) for mesh in meshes),
            "vertex_count": sum(mesh.vertex_count for mesh in meshes),
            "triangle_count": sum(
                len(submesh.indices) // 3 for mesh in meshes for submesh in mesh.submeshes
            ),
            "material_count": len(materials),
            "skeleton_count": len(forests.skeletons),
            "node_count": len(forests.nodes),
            "bounds": bounds,
        },
        "meshes": [_mesh_payload(i, mesh) for i, mesh in enumerate(meshes)],
        "materials": [
            {
                "id": material.id,
                "textures": [
                    {
                        "id": texture.id,
                        "path": texture.path,
                        "usage": texture.usage.value,
                        "wrap_s": texture.wrap_s.value,
                        "wrap_t": texture.wrap_t.value,
                    }
                    for texture in material.textures
                ],
            }
            for material in materials
        ],
        "skeletons": [entry for root in forests.skeletons for entry in _node_entries(root)],
        "nodes": [entry for root in forests.nodes for entry in _node_entries(root)],
        "node_errors": [str(error) for error in forests.errors],
        "animation": _animation_payload(animation),
    }


def _mesh_payload(index: int, mesh: MeshRecord) -> dict[str, object]:
    return {
        "index": index,
        "vertex_count": mesh.vertex_count,
        "stride": mesh.vertex_stride,
        "attributes": [
            {"semantic": attr.semantic.value, "format": attr.format.value}
            for attr in mesh.attributes
        ],
        "submeshes": [
            {
                "id": submesh.id,
                "index_count": int(len(submesh.indices)),
                "index_width": submesh.index_width,
                "aabb": {"min": _to_list(submesh.aabb.min), "max": _to_list(submesh.aabb.max)},
            }
            for submesh in mesh.submeshes
        ],
    }


def _node_entries(root: NodeRecord) -> list[dict[str, object]]:
    """Flatten a tree pre-order, each entry naming its parent."""
    entries: list[dict[str, object]] = []
    stack: list[tuple[NodeRecord, str | None, int]] = [(root, None, 0)]
    while stack:
        node, parent, depth = stack.pop()
        entries.append(
            {
                "id": node.id,
                "parent": parent,
                "depth": depth,
                "parts": [
                    {
                        "submesh_id": part.submesh_id,
                        "material_id": part.material_id,
                        "bone_count": len(part.bones),
                    }
                    for part in node.parts
                ],
            }
        )
        for child in reversed(node.children):
            stack.append((child, node.id, depth + 1))
    return entries


def _animation_payload(animation: AnimationTrackSet | None) -> dict[str, object] | None:
    if animation is None:
        return None
    return {
        "id": animation.id,
        "duration": float(animation.duration),
        "bones": [
            {
                "name": name,
                "translation_keys": len(animation.translation_keys.get(name, [])),
                "rotation_keys": len(animation.rotation_keys.get(name, [])),
                "scale_keys": len(animation.scale_keys.get(name, [])),
            }
            for name in animation.bone_names
        ],
    }


def _section_name(section_type: int) -> str:
    try:
        return SectionType(section_type).name.lower()
    except ValueError:
        return str(section_type)


def _to_list(vec: np.ndarray) -> list[float]:
    return [float(v) for v in vec.tolist()]


def _fmt_vec(vec: object) -> str:
    if not isinstance(vec, list):
        return str(vec)
    return "[" + ", ".join(f"{float(v):.6g}" for v in vec) + "]"


def render_text(payload: dict[str, object]) -> str:
    """Render human-readable text output for inspect summaries."""
    lines: list[str] = []
    lines.append(f"inspect_schema_version: {payload['inspect_schema_version']}")

    source = payload["source"]
    lines.append("source:")
    lines.append(f"  path: {source['path']}")
    lines.append(f"  encoding: {source['encoding']}")
    lines.append(f"  version: {source['version']}")
    references = source["references"]
    if references:
        lines.append(f"  references: {len(references)}")
        for ref in references:
            lines.append(f"    - {ref['type']} {ref['id']} @ {ref['offset']}")

    summary = payload["summary"]
    bounds = summary["bounds"]
    lines.append("summary:")
    for key in (
        "mesh_count",
        "submesh_count",
        "vertex_count",
        "triangle_count",
        "material_count",
        "skeleton_count",
        "node_count",
    ):
        lines.append(f"  {key}: {summary[key]}")
    lines.append(f"  bounds.min: {_fmt_vec(bounds['min'])}")
    lines.append(f"  bounds.max: {_fmt_vec(bounds['max'])}")

    lines.append("meshes:")
    if payload["meshes"]:
        for mesh in payload["meshes"]:
            attrs = ", ".join(f"{a['semantic']}:{a['format']}" for a in mesh["attributes"])
            lines.append(f"  - index: {mesh['index']}")
            lines.append(f"    vertices: {mesh['vertex_count']} (stride {mesh['stride']})")
            lines.append(f"    attributes: {attrs}")
            for submesh in mesh["submeshes"]:
                lines.append(
                    f"    - submesh {submesh['id']!r}: {submesh['index_count']} indices"
                    f" ({submesh['index_width']}-bit)"
                )
                lines.append(f"      aabb.min: {_fmt_vec(submesh['aabb']['min'])}")
                lines.append(f"      aabb.max: {_fmt_vec(submesh['aabb']['max'])}")
    else:
        lines.append("  []")

    lines.append("materials:")
    if payload["materials"]:
        for material in payload["materials"]:
            lines.append(f"  - id: {material['id']!r}")
            for texture in material["textures"]:
                lines.append(
                    f"    - {texture['usage']} {texture['path']}"
                    f" wrap={texture['wrap_s']}/{texture['wrap_t']}"
                )
    else:
        lines.append("  []")

    for key in ("skeletons", "nodes"):
        lines.append(f"{key}:")
        entries = payload[key]
        if not entries:
            lines.append("  []")
            continue
        for entry in entries:
            indent = "  " * (entry["depth"] + 1)
            parts = ", ".join(
                f"{p['submesh_id']}/{p['material_id']}" for p in entry["parts"]
            )
            suffix = f" parts=[{parts}]" if parts else ""
            lines.append(f"{indent}- {entry['id']}{suffix}")

    if payload["node_errors"]:
        lines.append("node_errors:")
        for error in payload["node_errors"]:
            lines.append(f"  - {error}")

    animation = payload["animation"]
    lines.append("animation:")
    if animation is None:
        lines.append("  null")
    else:
        lines.append(f"  id: {animation['id']}")
        lines.append(f"  duration: {animation['duration']:.6g}")
        for bone in animation["bones"]:
            lines.append(
                f"  - {bone['name']}: t={bone['translation_keys']}"
                f" r={bone['rotation_keys']} s={bone['scale_keys']}"
            )

    return "\n".join(lines) + "\n"
