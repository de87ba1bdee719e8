"""Decoded bundle records returned by the category accessors."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator

import numpy as np

from c3bundle.formats import TextureUsage, VertexFormat, VertexSemantic, WrapMode

if TYPE_CHECKING:
    from c3bundle.errors import BundleError


def identity_matrix() -> np.ndarray:
    return np.eye(4, dtype=np.float32)


@dataclass
class AABB:
    """Axis-aligned bounding box."""

    min: np.ndarray  # (3,) float32
    max: np.ndarray  # (3,) float32

    @classmethod
    def from_points(cls, points: np.ndarray) -> AABB:
        """Box around an (N, 3) point array; an empty array gives a zero box."""
        if len(points) == 0:
            return cls(min=np.zeros(3, dtype=np.float32), max=np.zeros(3, dtype=np.float32))
        return cls(
            min=points.min(axis=0).astype(np.float32),
            max=points.max(axis=0).astype(np.float32),
        )

    @classmethod
    def from_values(cls, values: np.ndarray | list[float]) -> AABB:
        """Box from six floats: min xyz then max xyz."""
        arr = np.asarray(values, dtype=np.float32).reshape(6)
        return cls(min=arr[:3].copy(), max=arr[3:].copy())


@dataclass(frozen=True)
class MeshAttribute:
    format: VertexFormat
    semantic: VertexSemantic

    @property
    def size(self) -> int:
        return self.format.component_count


@dataclass
class SubmeshRecord:
    id: str
    indices: np.ndarray  # (M,) uint16 or uint32
    aabb: AABB

    @property
    def index_width(self) -> int:
        return 8 * self.indices.dtype.itemsize


@dataclass
class MeshRecord:
    """One mesh: attribute layout, flat interleaved vertex buffer and submeshes."""

    attributes: list[MeshAttribute]
    vertices: np.ndarray  # flat float32
    submeshes: list[SubmeshRecord] = field(default_factory=list)

    @property
    def vertex_stride(self) -> int:
        """Floats per vertex: the sum of the attribute component counts."""
        return sum(attr.size for attr in self.attributes)

    @property
    def vertex_count(self) -> int:
        stride = self.vertex_stride
        return len(self.vertices) // stride if stride else 0

    def attribute_offset(self, semantic: VertexSemantic) -> int | None:
        """Float offset of the first attribute with ``semantic`` inside a vertex."""
        offset = 0
        for attr in self.attributes:
            if attr.semantic == semantic:
                return offset
            offset += attr.size
        return None

    def attribute(self, semantic: VertexSemantic) -> MeshAttribute | None:
        for attr in self.attributes:
            if attr.semantic == semantic:
                return attr
        return None


@dataclass
class TextureRecord:
    id: str
    path: str
    usage: TextureUsage = TextureUsage.DIFFUSE
    wrap_s: WrapMode = WrapMode.CLAMP_TO_EDGE
    wrap_t: WrapMode = WrapMode.CLAMP_TO_EDGE


@dataclass
class MaterialRecord:
    id: str
    textures: list[TextureRecord] = field(default_factory=list)


@dataclass
class PartBinding:
    """Link from a node to a submesh and material, with optional skin bones."""

    submesh_id: str
    material_id: str
    bones: list[str] = field(default_factory=list)
    inverse_bind_poses: list[np.ndarray] = field(default_factory=list)

    @property
    def is_skinned(self) -> bool:
        return bool(self.bones)


@dataclass
class NodeRecord:
    id: str
    transform: np.ndarray = field(default_factory=identity_matrix)  # (4, 4)
    children: list[NodeRecord] = field(default_factory=list)
    parts: list[PartBinding] = field(default_factory=list)

    def walk(self) -> Iterator[NodeRecord]:
        """Depth-first pre-order traversal of this subtree."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))


@dataclass
class NodeForests:
    """Result of ``load_nodes``: skeleton trees, plain node trees, dropped-node errors."""

    skeletons: list[NodeRecord] = field(default_factory=list)
    nodes: list[NodeRecord] = field(default_factory=list)
    errors: list[BundleError] = field(default_factory=list)


@dataclass(frozen=True)
class Vec3Key:
    time: float
    value: tuple[float, float, float]


@dataclass(frozen=True)
class QuatKey:
    time: float
    value: tuple[float, float, float, float]  # (x, y, z, w)


@dataclass
class AnimationTrackSet:
    """One animation clip: duration plus per-bone keyframe tracks."""

    id: str
    duration: float
    translation_keys: dict[str, list[Vec3Key]] = field(default_factory=dict)
    rotation_keys: dict[str, list[QuatKey]] = field(default_factory=dict)
    scale_keys: dict[str, list[Vec3Key]] = field(default_factory=dict)

    def add_bone(self, bone_name: str) -> None:
        self.translation_keys.setdefault(bone_name, [])
        self.rotation_keys.setdefault(bone_name, [])
        self.scale_keys.setdefault(bone_name, [])

    @property
    def bone_names(self) -> list[str]:
        names = dict.fromkeys(self.translation_keys)
        names.update(dict.fromkeys(self.rotation_keys))
        names.update(dict.fromkeys(self.scale_keys))
        return list(names)
