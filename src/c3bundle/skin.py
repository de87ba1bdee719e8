"""Skin and skeleton assembly: bone tables, bind poses and the bone hierarchy."""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import CyclicOrTooDeep, MissingRequiredField
from c3bundle.models import NodeRecord, identity_matrix
from c3bundle.text_reader import TextValue


@dataclass
class BoneTable:
    """Working set of one skin decode.

    Skin bones (listed with an inverse bind pose) and node bones (met only in
    the hierarchy) share one index space, skin bones first. An index, once
    assigned to a name, never changes during the decode; the first
    registration of a name wins its slot.
    """

    skin_bone_names: list[str] = field(default_factory=list)
    node_bone_names: list[str] = field(default_factory=list)
    inverse_bind_poses: list[np.ndarray] = field(default_factory=list)
    origin_matrices: list[np.ndarray] = field(default_factory=list)
    children: dict[int, list[int]] = field(default_factory=dict)
    root_index: int = -1
    bind_shape: np.ndarray = field(default_factory=identity_matrix)
    _index: dict[str, int] = field(default_factory=dict, repr=False)

    @property
    def bone_names(self) -> list[str]:
        return self.skin_bone_names + self.node_bone_names

    def index_of(self, name: str) -> int | None:
        return self._index.get(name)

    def add_skin_bone(self, name: str, inverse_bind_pose: np.ndarray) -> int:
        if self.node_bone_names:
            raise ValueError("Skin bones must be registered before node bones")
        existing = self._index.get(name)
        if existing is not None:
            return existing
        index = len(self.skin_bone_names)
        self.skin_bone_names.append(name)
        self.inverse_bind_poses.append(inverse_bind_pose)
        self.origin_matrices.append(identity_matrix())
        self._index[name] = index
        return index

    def register(self, name: str) -> int:
        """Index of ``name``, appending it as a node bone if unseen."""
        existing = self._index.get(name)
        if existing is not None:
            return existing
        index = len(self.skin_bone_names) + len(self.node_bone_names)
        self.node_bone_names.append(name)
        self.origin_matrices.append(identity_matrix())
        self._index[name] = index
        return index

    def set_origin(self, index: int, matrix: np.ndarray) -> None:
        self.origin_matrices[index] = matrix

    def add_child(self, parent_index: int, child_index: int) -> None:
        self.children.setdefault(parent_index, []).append(child_index)


def read_skin_binary(reader: BinaryReader) -> BoneTable | None:
    """Decode the mesh-skin section the reader is positioned at.

    Returns None when the section declares no skin bones.
    """
    table = BoneTable()
    reader.read_string("skin name")
    table.bind_shape = reader.read_matrix("bind shape")

    bone_count = reader.read_u32("bone count")
    if bone_count == 0:
        return None
    for _ in range(bone_count):
        name = reader.read_string("skin bone name")
        table.add_skin_bone(name, reader.read_matrix(f"bone {name!r} bind pose"))

    root_name = reader.read_string("root bone name")
    root_transform = reader.read_matrix("root bone transform")
    table.root_index = table.register(root_name)
    table.set_origin(table.root_index, root_transform)

    link_count = reader.read_u32("bone link count")
    for _ in range(link_count):
        bone_id = reader.read_string("bone link id")
        parent_id = reader.read_string("bone link parent id")
        transform = reader.read_matrix(f"bone {bone_id!r} transform")
        index = table.register(bone_id)
        table.set_origin(index, transform)
        parent_index = table.register(parent_id)
        table.add_child(parent_index, index)
    return table


def read_skin_text(root: TextValue, *, max_depth: int) -> BoneTable | None:
    """Decode the two-element ``skin`` array: bone list, then hierarchy root."""
    skin = root["skin"]
    bones = skin.at(0)["bones"]
    if not skin.is_array or not bones.is_array:
        return None

    table = BoneTable()
    for bone in bones.elements():
        name = bone["node"].as_str()
        if not name:
            raise MissingRequiredField("Skin bone without node name")
        table.add_skin_bone(name, _matrix(bone["bindshape"], f"bone {name!r} bind shape"))

    hierarchy = skin.at(1)
    if not hierarchy.exists:
        return table

    stack: list[tuple[TextValue, int | None, int]] = [(hierarchy, None, 0)]
    while stack:
        value, parent_index, depth = stack.pop()
        if depth > max_depth:
            raise CyclicOrTooDeep(f"Bone hierarchy deeper than {max_depth}")
        name = value["id"].as_str()
        if not name:
            raise MissingRequiredField("Bone hierarchy entry without id")
        index = table.register(name)
        transform = value.get("tansform", "transform")
        if transform.exists:
            table.set_origin(index, _matrix(transform, f"bone {name!r} transform"))
        if table.root_index < 0:
            table.root_index = index
        if parent_index is not None:
            table.add_child(parent_index, index)
        children = list(value["children"].elements())
        for child in reversed(children):
            stack.append((child, index, depth + 1))
    return table


def build_skeleton(table: BoneTable, *, max_depth: int) -> NodeRecord | None:
    """Turn the bone table's adjacency map into one owned node tree.

    Raises:
        CyclicOrTooDeep: If a bone is reached twice or the tree exceeds ``max_depth``.
    """
    if table.root_index < 0:
        return None
    names = table.bone_names

    def make(index: int) -> NodeRecord:
        return NodeRecord(id=names[index], transform=table.origin_matrices[index].copy())

    root = make(table.root_index)
    visited = {table.root_index}
    stack = [(root, table.root_index, 0)]
    while stack:
        node, index, depth = stack.pop()
        for child_index in table.children.get(index, []):
            if child_index in visited:
                raise CyclicOrTooDeep(f"Bone {names[child_index]!r} is reached twice")
            if depth + 1 > max_depth:
                raise CyclicOrTooDeep(f"Bone hierarchy deeper than {max_depth}")
            visited.add(child_index)
            child = make(child_index)
            node.children.append(child)
            stack.append((child, child_index, depth + 1))
    return root


def _matrix(value: TextValue, label: str) -> np.ndarray:
    floats = value.as_floats()
    if floats is None or len(floats) != 16:
        raise MissingRequiredField(f"Expected 16 floats for {label}")
    return np.asarray(floats, dtype=np.float32).reshape(4, 4)
