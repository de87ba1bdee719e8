"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bundle_builder import (
    ANIMATIONS,
    IDENTITY,
    MATERIAL,
    MESH,
    NODE,
    BundleBuilder,
    clip_entry,
    material_section,
    mesh_entry,
    mesh_section,
    node_entry,
    node_section,
    part_entry,
    texture_entry,
)

TEXT_BUNDLE = {
    "version": "0.5",
    "meshes": [
        {
            "attributes": [
                {"size": 3, "type": "GL_FLOAT", "attribute": "VERTEX_ATTRIB_POSITION"},
                {"size": 2, "type": "GL_FLOAT", "attribute": "VERTEX_ATTRIB_TEX_COORD"},
            ],
            "vertices": [
                0, 0, 0, 0, 0,
                1, 0, 0, 1, 0,
                0, 1, 0, 0, 1,
                0, 0, 1, 1, 1,
            ],
            "parts": [
                {"id": "shape1", "indices": [0, 1, 2]},
                {"id": "shape2", "indices": [0, 2, 3]},
            ],
        }
    ],
    "materials": [
        {
            "id": "skin",
            "textures": [
                {
                    "id": "diffuse",
                    "filename": "skin.png",
                    "type": "DIFFUSE",
                    "wrapModeU": "REPEAT",
                    "wrapModeV": "CLAMP",
                }
            ],
        }
    ],
    "nodes": [
        {"id": "root", "skeleton": True, "children": [{"id": "hip"}]},
        {
            "id": "body",
            "parts": [
                {
                    "meshpartid": "shape1",
                    "materialid": "skin",
                    "bones": [{"node": "hip", "transform": IDENTITY}],
                },
                {"meshpartid": "shape2", "materialid": "skin"},
            ],
        },
    ],
    "animations": [
        {
            "id": "wave",
            "length": 1.0,
            "bones": [
                {
                    "boneId": "hip",
                    "keyframes": [
                        {"keytime": 0.0, "rotation": [0, 0, 0, 1]},
                        {"keytime": 1.0, "rotation": [0, 0, 1, 0]},
                    ],
                }
            ],
        }
    ],
}  # fmt: skip

# three vertices with 4-float positions
TRIANGLE4 = [
    0.0, 0.0, 0.0, 1.0,
    2.0, 0.0, -1.0, 1.0,
    0.0, 3.0, 0.5, 1.0,
]  # fmt: skip


@pytest.fixture
def text_bundle(tmp_path: Path) -> Path:
    path = tmp_path / "orc.c3t"
    path.write_text(json.dumps(TEXT_BUNDLE), encoding="utf-8")
    return path


@pytest.fixture
def binary_bundle(tmp_path: Path) -> Path:
    """Version 0.5 bundle with one mesh, material, node tree and clip."""
    builder = BundleBuilder(version=(0, 5))
    builder.add(
        "mesh",
        MESH,
        mesh_section(
            mesh_entry(
                [(4, "GL_FLOAT", "VERTEX_ATTRIB_POSITION")],
                TRIANGLE4,
                [("part0", [0, 1, 2], None)],
            )
        ),
    )
    builder.add("mat", MATERIAL, material_section(("m0", [texture_entry("t0", "tex.png")])))
    builder.add(
        "scene",
        NODE,
        node_section(node_entry("body", parts=[part_entry("part0", "m0")])),
    )
    builder.add(
        "walkanimation",
        ANIMATIONS,
        clip_entry("walk", 2.0, [("body", [(0.0, 0x04, {"translation": [1.0, 0.0, 0.0]})])]),
    )
    return builder.write(tmp_path / "orc.c3b")
