"""Material and texture table decoding."""

from __future__ import annotations

from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import MissingRequiredField
from c3bundle.formats import TextureUsage, parse_texture_usage, parse_wrap_mode
from c3bundle.models import MaterialRecord, TextureRecord
from c3bundle.text_reader import TextValue
from c3bundle.versions import Strategy
from c3bundle.warning_policy import WarningPolicy, emit_warning

# diffuse(3), ambient(3), emissive(3), opacity(1), specular(3), shininess(1)
_MATERIAL_COLOR_FLOATS = 14
# uv offset(2), uv scale(2)
_TEXTURE_UV_FLOATS = 4


def bundle_directory(path: str) -> str:
    """Directory prefix (with trailing separator) used to resolve texture names."""
    cut = max(path.rfind("/"), path.rfind("\\"))
    return path[: cut + 1]


def read_materials_binary(
    reader: BinaryReader,
    strategy: Strategy,
    directory: str,
    *,
    policy: WarningPolicy | None = None,
    path: str = "",
) -> list[MaterialRecord]:
    """Decode the material section the reader is positioned at."""
    if strategy == Strategy.MATERIAL_BINARY_SINGLE_TEXTURE:
        texture_path = reader.read_string("texture path")
        if not texture_path:
            raise MissingRequiredField("Material texture path is empty")
        return [MaterialRecord(id="", textures=[_diffuse_texture(directory + texture_path)])]

    if strategy == Strategy.MATERIAL_BINARY_TEXTURE_LIST:
        materials = []
        count = reader.read_u32("material count")
        for i in range(count):
            texture_path = reader.read_string("texture path")
            if not texture_path:
                emit_warning(
                    "W04",
                    f"Material list ended at entry {i} of {count} by an empty texture path",
                    policy=policy,
                    path=path,
                )
                break
            materials.append(
                MaterialRecord(id="", textures=[_diffuse_texture(directory + texture_path)])
            )
        return materials

    materials = []
    count = reader.read_u32("material count")
    for _ in range(count):
        material_id = reader.read_string("material id")
        reader.read_floats(_MATERIAL_COLOR_FLOATS, f"material {material_id!r} colors")
        textures = []
        texture_count = reader.read_u32("texture count")
        for _ in range(texture_count):
            texture_id = reader.read_string("texture id")
            if not texture_id:
                raise MissingRequiredField(f"Material {material_id!r} has a texture without id")
            texture_path = reader.read_string("texture path")
            if not texture_path:
                raise MissingRequiredField(
                    f"Material {material_id!r} texture {texture_id!r} has an empty path"
                )
            reader.read_floats(_TEXTURE_UV_FLOATS, f"texture {texture_id!r} uv transform")
            usage = parse_texture_usage(reader.read_string("texture usage"))
            wrap_s = parse_wrap_mode(reader.read_string("texture wrap s"))
            wrap_t = parse_wrap_mode(reader.read_string("texture wrap t"))
            textures.append(
                TextureRecord(
                    id=texture_id,
                    path=directory + texture_path,
                    usage=usage,
                    wrap_s=wrap_s,
                    wrap_t=wrap_t,
                )
            )
        materials.append(MaterialRecord(id=material_id, textures=textures))
    return materials


def read_materials_text(
    root: TextValue, strategy: Strategy, directory: str
) -> list[MaterialRecord]:
    """Decode the material collection of a text document."""
    if strategy == Strategy.MATERIAL_TEXT_BASE:
        base = root["material"].at(0)["base"].at(0)
        if not base.exists:
            return []
        return [MaterialRecord(id="", textures=[_diffuse_texture(_resolve(directory, base))])]

    if strategy == Strategy.MATERIAL_TEXT_TEXTURE_NAMES:
        entries = root["material"]
        if not entries.is_array:
            return []
        textures = [
            _diffuse_texture(_resolve(directory, entry, key="textures"))
            for entry in entries.elements()
        ]
        return [MaterialRecord(id="", textures=textures)]

    entries = root["materials"]
    if not entries.is_array:
        return []
    materials = []
    for entry in entries.elements():
        textures = [
            TextureRecord(
                id=texture["id"].as_str() or "",
                path=_resolve(directory, texture),
                usage=parse_texture_usage(texture["type"].as_str()),
                wrap_s=parse_wrap_mode(texture["wrapModeU"].as_str()),
                wrap_t=parse_wrap_mode(texture["wrapModeV"].as_str()),
            )
            for texture in entry["textures"].elements()
        ]
        materials.append(MaterialRecord(id=entry["id"].as_str() or "", textures=textures))
    return materials


def _resolve(directory: str, value: TextValue, key: str = "filename") -> str:
    filename = value[key].as_str() or ""
    return directory + filename if filename else ""


def _diffuse_texture(path: str) -> TextureRecord:
    return TextureRecord(id="", path=path, usage=TextureUsage.DIFFUSE)
