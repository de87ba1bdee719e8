"""Bundle loader facade: open a bundle once, then decode categories on demand."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import numpy as np

from c3bundle.animation import binary_section_id, read_animation_binary, read_animation_text
from c3bundle.binary_reader import (
    BinaryReader,
    BundleReference,
    ReferenceTable,
    SectionType,
    read_header,
)
from c3bundle.config import LoaderConfig
from c3bundle.errors import (
    BundleError,
    MalformedHeader,
    MissingRequiredField,
    SectionNotFound,
    UnsupportedExtension,
)
from c3bundle.materials import bundle_directory, read_materials_binary, read_materials_text
from c3bundle.meshes import gather_positions, read_meshes_binary, read_meshes_text
from c3bundle.models import AnimationTrackSet, MaterialRecord, MeshRecord, NodeForests
from c3bundle.nodes import nodes_from_skin, read_nodes_binary, read_nodes_text
from c3bundle.obj_import import load_obj
from c3bundle.skin import BoneTable, read_skin_binary, read_skin_text
from c3bundle.text_reader import TextValue, read_version
from c3bundle.versions import Category, Encoding, Strategy, is_known_version, resolve
from c3bundle.warning_policy import emit_warning

logger = logging.getLogger(__name__)

OBJ_EXTENSION = ".obj"


class BundleLoader:
    """Holds one open bundle's state and exposes the category accessors.

    ``load`` never raises for a bad bundle: it returns False and keeps the
    reason on ``last_error``. The ``load_*`` accessors raise ``BundleError``
    subclasses, each stamped with the bundle path and, on the binary path,
    the id of the reference being decoded.
    """

    def __init__(self, config: LoaderConfig | None = None) -> None:
        self.config = config or LoaderConfig()
        self.policy = self.config.warning_policy()
        self.last_error: BundleError | None = None
        self.clear()

    def clear(self) -> None:
        """Discard all state of the open bundle."""
        self._path = ""
        self._version = ""
        self._encoding: Encoding | None = None
        self._reader: BinaryReader | None = None
        self._references = ReferenceTable([])
        self._root: TextValue | None = None
        self._section_id: str | None = None

    @property
    def is_open(self) -> bool:
        return self._encoding is not None

    @property
    def path(self) -> str:
        return self._path

    @property
    def version(self) -> str:
        return self._version

    @property
    def encoding(self) -> Encoding | None:
        return self._encoding

    @property
    def directory(self) -> str:
        return bundle_directory(self._path)

    @property
    def references(self) -> ReferenceTable:
        return self._references

    def load(self, path: str | Path) -> bool:
        """Open the bundle at ``path``; reopening the same path is a no-op."""
        path_str = str(path)
        if self.is_open and path_str == self._path:
            return True

        self.clear()
        self.last_error = None
        try:
            self._open(path_str)
        except BundleError as e:
            if not e.path:
                e.path = path_str
            self.last_error = e
            logger.warning("Cannot open bundle %s: %s", path_str, e)
            self.clear()
            return False

        logger.debug(
            "Opened %s bundle %s (version %s)", self._encoding.value, path_str, self._version
        )
        return True

    def _open(self, path: str) -> None:
        suffix = Path(path).suffix.lower()
        if suffix == self.config.binary_extension:
            encoding = Encoding.BINARY
        elif suffix == self.config.text_extension:
            encoding = Encoding.TEXT
        else:
            raise UnsupportedExtension(f"Unsupported bundle extension {suffix!r}", path=path)

        try:
            data = Path(path).read_bytes()
        except OSError as e:
            raise BundleError(f"Cannot read bundle: {e}", path=path) from e

        if encoding is Encoding.BINARY:
            reader = BinaryReader(data)
            header = read_header(reader)
            version = header.version
        else:
            root = TextValue.parse(data)
            if not root.is_object:
                raise MalformedHeader("Text bundle root must be an object", path=path)
            version = read_version(root)
            if version is None:
                raise MissingRequiredField("Text bundle has no version field", path=path)

        if not is_known_version(version, encoding):
            emit_warning(
                "W01",
                f"Unknown {encoding.value} bundle version {version!r}; decoding with newest layout",
                policy=self.policy,
                path=path,
            )

        self._path = path
        self._version = version
        self._encoding = encoding
        if encoding is Encoding.BINARY:
            self._reader = reader
            self._references = header.references
        else:
            self._root = root

    # --- accessors ---

    def load_meshes(self) -> list[MeshRecord]:
        strategy = self._strategy(Category.MESH)
        with self._decoding():
            if self._encoding is Encoding.TEXT:
                return read_meshes_text(self._root, strategy)
            if self._seek(SectionType.MESH) is None:
                return []
            return read_meshes_binary(self._reader, strategy)

    def load_materials(self) -> list[MaterialRecord]:
        strategy = self._strategy(Category.MATERIAL)
        with self._decoding():
            if self._encoding is Encoding.TEXT:
                return read_materials_text(self._root, strategy, self.directory)
            if self._seek(SectionType.MATERIAL) is None:
                return []
            return read_materials_binary(
                self._reader, strategy, self.directory, policy=self.policy, path=self._path
            )

    def load_skin(self) -> BoneTable | None:
        self._strategy(Category.SKIN)
        with self._decoding():
            if self._encoding is Encoding.TEXT:
                return read_skin_text(self._root, max_depth=self.config.max_depth)
            if self._seek(SectionType.MESHSKIN) is None:
                return None
            return read_skin_binary(self._reader)

    def load_nodes(self) -> NodeForests:
        strategy = self._strategy(Category.NODE)
        max_depth = self.config.max_depth
        if strategy == Strategy.NODE_FROM_SKIN:
            table = self.load_skin()
            with self._decoding():
                if table is None:
                    emit_warning(
                        "W02",
                        "Bundle has no skin to build nodes from; using a single empty node",
                        policy=self.policy,
                        path=self._path,
                    )
                return nodes_from_skin(table, max_depth=max_depth)

        with self._decoding():
            if self._encoding is Encoding.TEXT:
                forests = read_nodes_text(self._root, strategy, max_depth=max_depth)
            elif self._seek(SectionType.NODE) is None:
                return NodeForests()
            else:
                forests = read_nodes_binary(self._reader, strategy, max_depth=max_depth)
        for error in forests.errors:
            self._stamp(error)
        return forests

    def load_animation(self, clip_id: str = "") -> AnimationTrackSet | None:
        """Decode the clip named ``clip_id``, or the first clip when empty.

        Returns None when the bundle has no animations at all.
        """
        strategy = self._strategy(Category.ANIMATION)
        with self._decoding():
            if self._encoding is Encoding.TEXT:
                return read_animation_text(
                    self._root, strategy, clip_id, policy=self.policy, path=self._path
                )
            section_id = binary_section_id(strategy, clip_id)
            if self._seek(SectionType.ANIMATIONS, section_id) is None:
                if section_id and self._references.find(SectionType.ANIMATIONS) is not None:
                    raise SectionNotFound(f"No animation clip with id {clip_id!r}")
                return None
            return read_animation_binary(self._reader, strategy, clip_id)

    # --- helpers ---

    def _strategy(self, category: Category) -> Strategy:
        if not self.is_open:
            raise BundleError("No bundle is open")
        return resolve(category, self._version, self._encoding)

    def _seek(self, section_type: SectionType, ref_id: str = "") -> BundleReference | None:
        ref = self._references.seek_to_first_of_type(self._reader, section_type, ref_id)
        if ref is not None:
            self._section_id = ref.id
        return ref

    def _stamp(self, error: BundleError) -> None:
        if not error.path:
            error.path = self._path
        if error.reference_id is None:
            error.reference_id = self._section_id

    @contextmanager
    def _decoding(self) -> Iterator[None]:
        self._section_id = None
        try:
            yield
        except BundleError as e:
            self._stamp(e)
            logger.warning("Decode failed: %s", e)
            raise


def triangles_list(path: str | Path, config: LoaderConfig | None = None) -> np.ndarray:
    """(N, 3) positions of every indexed vertex of every submesh, in index order.

    Accepts a bundle or a Wavefront OBJ file. Every three rows form a triangle.

    Raises:
        BundleError: If the file cannot be opened or decoded.
    """
    if Path(path).suffix.lower() == OBJ_EXTENSION:
        meshes = load_obj(path).meshes
    else:
        loader = BundleLoader(config)
        if not loader.load(path):
            raise loader.last_error
        meshes = loader.load_meshes()

    try:
        chunks = [
            gather_positions(mesh.vertices, mesh.attributes, submesh.indices)
            for mesh in meshes
            for submesh in mesh.submeshes
        ]
    except BundleError as e:
        if not e.path:
            e.path = str(path)
        raise
    if not chunks:
        return np.zeros((0, 3), dtype=np.float32)
    return np.concatenate(chunks)
