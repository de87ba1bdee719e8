"""Node hierarchy building: recursive node trees with part/material bindings."""

from __future__ import annotations

import logging

import numpy as np

from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import CyclicOrTooDeep, MissingRequiredField
from c3bundle.models import NodeForests, NodeRecord, PartBinding, identity_matrix
from c3bundle.skin import BoneTable, build_skeleton
from c3bundle.text_reader import TextValue
from c3bundle.versions import Strategy

logger = logging.getLogger(__name__)


def _emitted_transform(
    transform: np.ndarray, *, identity_reset: bool, skinned: bool, single_top_level: bool
) -> np.ndarray:
    """Older layouts baked skinned and lone top-level nodes into the mesh."""
    if identity_reset and (skinned or single_top_level):
        return identity_matrix()
    return transform


class _BinaryNodeParser:
    """Recursive reader for binary node records.

    A node with a part missing its submesh or material id fails, and so does
    every ancestor up to the top level. The failing subtree is still read to
    its end so the cursor stays aligned for the following siblings.
    """

    def __init__(
        self, reader: BinaryReader, *, identity_reset: bool, single_top_level: bool, max_depth: int
    ) -> None:
        self.reader = reader
        self.identity_reset = identity_reset
        self.single_top_level = single_top_level
        self.max_depth = max_depth
        self.skeleton = False

    def parse(self, depth: int = 0) -> NodeRecord:
        if depth > self.max_depth:
            raise CyclicOrTooDeep(f"Node tree deeper than {self.max_depth}")
        reader = self.reader
        node_id = reader.read_string("node id")
        if reader.read_bool(f"node {node_id!r} skeleton flag"):
            self.skeleton = True
        transform = reader.read_matrix(f"node {node_id!r} transform")

        failure: MissingRequiredField | None = None
        parts: list[PartBinding] = []
        part_count = reader.read_u32(f"node {node_id!r} part count")
        for _ in range(part_count):
            part = self._read_part(node_id)
            if part.submesh_id and part.material_id:
                parts.append(part)
            elif failure is None:
                failure = MissingRequiredField(
                    f"Node {node_id!r} part is missing submesh id or material id"
                )

        node = NodeRecord(
            id=node_id,
            transform=_emitted_transform(
                transform,
                identity_reset=self.identity_reset,
                skinned=any(part.is_skinned for part in parts),
                single_top_level=self.single_top_level,
            ),
            parts=parts,
        )

        child_count = reader.read_u32(f"node {node_id!r} child count")
        for _ in range(child_count):
            try:
                child = self.parse(depth + 1)
            except MissingRequiredField as e:
                if failure is None:
                    failure = e
                continue
            node.children.append(child)

        if failure is not None:
            raise failure
        return node

    def _read_part(self, node_id: str) -> PartBinding:
        reader = self.reader
        part = PartBinding(
            submesh_id=reader.read_string("part submesh id"),
            material_id=reader.read_string("part material id"),
        )
        bone_count = reader.read_u32(f"node {node_id!r} bone count")
        for _ in range(bone_count):
            part.bones.append(reader.read_string("part bone name"))
            part.inverse_bind_poses.append(reader.read_matrix("part bone inverse bind pose"))
        # UV-mapping texture index lists are not kept.
        uv_mapping_count = reader.read_u32(f"node {node_id!r} uv mapping count")
        for _ in range(uv_mapping_count):
            index_count = reader.read_u32("uv mapping index count")
            reader.read_bytes(4 * index_count, "uv mapping indices")
        return part


def read_nodes_binary(reader: BinaryReader, strategy: Strategy, *, max_depth: int) -> NodeForests:
    """Decode the node section the reader is positioned at."""
    forests = NodeForests()
    count = reader.read_u32("node count")
    parser = _BinaryNodeParser(
        reader,
        identity_reset=strategy == Strategy.NODE_IDENTITY_RESET,
        single_top_level=count == 1,
        max_depth=max_depth,
    )
    for _ in range(count):
        parser.skeleton = False
        try:
            node = parser.parse()
        except MissingRequiredField as e:
            logger.warning("Dropping node: %s", e.message)
            forests.errors.append(e)
            continue
        if parser.skeleton:
            forests.skeletons.append(node)
        else:
            forests.nodes.append(node)
    return forests


def read_nodes_text(root: TextValue, strategy: Strategy, *, max_depth: int) -> NodeForests:
    """Decode the ``nodes`` collection (array, or a legacy single object)."""
    forests = NodeForests()
    nodes_value = root["nodes"]
    if nodes_value.is_object:
        entries = [nodes_value]
    elif nodes_value.is_array:
        entries = list(nodes_value.elements())
    else:
        return forests

    identity_reset = strategy == Strategy.NODE_IDENTITY_RESET
    single_top_level = len(entries) == 1
    for entry in entries:
        try:
            node = _parse_node_text(
                entry,
                identity_reset=identity_reset,
                single_top_level=single_top_level,
                max_depth=max_depth,
                depth=0,
            )
        except MissingRequiredField as e:
            logger.warning("Dropping node: %s", e.message)
            forests.errors.append(e)
            continue
        if entry["skeleton"].as_bool():
            forests.skeletons.append(node)
        else:
            forests.nodes.append(node)
    return forests


def _parse_node_text(
    value: TextValue,
    *,
    identity_reset: bool,
    single_top_level: bool,
    max_depth: int,
    depth: int,
) -> NodeRecord:
    if depth > max_depth:
        raise CyclicOrTooDeep(f"Node tree deeper than {max_depth}")
    node_id = value["id"].as_str() or ""
    transform = _text_matrix(value["transform"], f"node {node_id!r} transform")

    parts = []
    for part_value in value["parts"].elements():
        submesh_id = part_value["meshpartid"].as_str() or ""
        material_id = part_value["materialid"].as_str() or ""
        if not submesh_id or not material_id:
            raise MissingRequiredField(
                f"Node {node_id!r} part is missing submesh id or material id"
            )
        part = PartBinding(submesh_id=submesh_id, material_id=material_id)
        for bone in part_value["bones"].elements():
            name = bone["node"].as_str()
            if name is None:
                raise MissingRequiredField(f"Node {node_id!r} has a bone without node id")
            part.bones.append(name)
            part.inverse_bind_poses.append(
                _text_matrix(bone["transform"], f"bone {name!r} inverse bind pose")
            )
        parts.append(part)

    node = NodeRecord(
        id=node_id,
        transform=_emitted_transform(
            transform,
            identity_reset=identity_reset,
            skinned=any(part.is_skinned for part in parts),
            single_top_level=single_top_level,
        ),
        parts=parts,
    )
    for child in value["children"].elements():
        node.children.append(
            _parse_node_text(
                child,
                identity_reset=identity_reset,
                single_top_level=single_top_level,
                max_depth=max_depth,
                depth=depth + 1,
            )
        )
    return node


def nodes_from_skin(table: BoneTable | None, *, max_depth: int) -> NodeForests:
    """Oldest layouts have no node section: derive nodes from the skin.

    The bone hierarchy becomes the single skeleton tree, and one plain node
    carries a part bound to every skin bone.
    """
    if table is None:
        return NodeForests(nodes=[NodeRecord(id="", parts=[PartBinding("", "")])])

    skeleton = build_skeleton(table, max_depth=max_depth)
    part = PartBinding(
        submesh_id="",
        material_id="",
        bones=list(table.skin_bone_names),
        inverse_bind_poses=[m.copy() for m in table.inverse_bind_poses],
    )
    return NodeForests(
        skeletons=[skeleton] if skeleton is not None else [],
        nodes=[NodeRecord(id="", parts=[part])],
    )


def _text_matrix(value: TextValue, label: str) -> np.ndarray:
    if not value.exists:
        return identity_matrix()
    floats = value.as_floats()
    if floats is None or len(floats) != 16:
        raise MissingRequiredField(f"Expected 16 floats for {label}")
    return np.asarray(floats, dtype=np.float32).reshape(4, 4)
