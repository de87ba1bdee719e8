"""Tests for material and texture table decoding."""

from __future__ import annotations

import warnings

import pytest

from bundle_builder import material_section, texture_entry, u32, v32
from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import MissingRequiredField, UnknownEnumerationToken
from c3bundle.formats import TextureUsage, WrapMode
from c3bundle.materials import bundle_directory, read_materials_binary, read_materials_text
from c3bundle.text_reader import TextValue
from c3bundle.versions import Strategy
from c3bundle.warning_policy import BundleWarning, PromotedWarning, WarningPolicy


class TestBundleDirectory:
    def test_forward_and_back_slashes(self):
        assert bundle_directory("models/orc/orc.c3b") == "models/orc/"
        assert bundle_directory("C:\\assets\\orc.c3t") == "C:\\assets\\"
        assert bundle_directory("orc.c3b") == ""


class TestBinaryMaterials:
    def test_full_records(self):
        data = material_section(
            ("body", [texture_entry("t0", "skin.png", "NORMAL", "REPEAT", "CLAMP")]),
            ("eyes", []),
        )
        materials = read_materials_binary(
            BinaryReader(data), Strategy.MATERIAL_BINARY_FULL, "assets/"
        )
        assert [m.id for m in materials] == ["body", "eyes"]
        texture = materials[0].textures[0]
        assert texture.id == "t0"
        assert texture.path == "assets/skin.png"
        assert texture.usage == TextureUsage.NORMAL
        assert texture.wrap_s == WrapMode.REPEAT
        assert texture.wrap_t == WrapMode.CLAMP_TO_EDGE
        assert materials[1].textures == []

    def test_empty_texture_path_rejected(self):
        data = material_section(("m", [texture_entry("t0", "")]))
        with pytest.raises(MissingRequiredField, match="empty path"):
            read_materials_binary(BinaryReader(data), Strategy.MATERIAL_BINARY_FULL, "")

    def test_empty_texture_id_rejected(self):
        data = material_section(("m", [texture_entry("", "a.png")]))
        with pytest.raises(MissingRequiredField, match="without id"):
            read_materials_binary(BinaryReader(data), Strategy.MATERIAL_BINARY_FULL, "")

    def test_unknown_wrap_token(self):
        data = material_section(("m", [texture_entry("t", "a.png", wrap_s="MIRROR")]))
        with pytest.raises(UnknownEnumerationToken):
            read_materials_binary(BinaryReader(data), Strategy.MATERIAL_BINARY_FULL, "")

    def test_single_texture_layout(self):
        materials = read_materials_binary(
            BinaryReader(v32("skin.png")), Strategy.MATERIAL_BINARY_SINGLE_TEXTURE, "d/"
        )
        assert len(materials) == 1
        assert materials[0].textures[0].path == "d/skin.png"
        assert materials[0].textures[0].wrap_s == WrapMode.CLAMP_TO_EDGE

    def test_texture_list_stops_at_empty_path(self):
        data = u32(3) + v32("a.png") + v32("") + v32("c.png")
        with warnings.catch_warnings(record=True) as w:
            warnings.simplefilter("always")
            materials = read_materials_binary(
                BinaryReader(data), Strategy.MATERIAL_BINARY_TEXTURE_LIST, ""
            )
        assert [m.textures[0].path for m in materials] == ["a.png"]
        assert len(w) == 1
        assert issubclass(w[0].category, BundleWarning)
        assert "[W04]" in str(w[0].message)

    def test_texture_list_warning_promoted(self):
        data = u32(1) + v32("")
        policy = WarningPolicy(warn_as_error=frozenset({"W04"}))
        with pytest.raises(PromotedWarning, match=r"\[W04\]"):
            read_materials_binary(
                BinaryReader(data), Strategy.MATERIAL_BINARY_TEXTURE_LIST, "", policy=policy
            )


class TestTextMaterials:
    def test_full_records(self):
        doc = TextValue(
            {
                "materials": [
                    {
                        "id": "body",
                        "textures": [
                            {
                                "id": "diffuse",
                                "filename": "body.png",
                                "type": "DIFFUSE",
                                "wrapModeU": "CLAMP",
                                "wrapModeV": "REPEAT",
                            }
                        ],
                    }
                ]
            }
        )
        materials = read_materials_text(doc, Strategy.MATERIAL_TEXT_FULL, "m/")
        texture = materials[0].textures[0]
        assert materials[0].id == "body"
        assert texture.path == "m/body.png"
        assert texture.wrap_t == WrapMode.REPEAT

    def test_missing_filename_gives_empty_path(self):
        doc = TextValue(
            {
                "materials": [
                    {
                        "id": "m",
                        "textures": [{"type": "DIFFUSE", "wrapModeU": "CLAMP", "wrapModeV": "CLAMP"}],
                    }
                ]
            }
        )
        assert read_materials_text(doc, Strategy.MATERIAL_TEXT_FULL, "m/")[0].textures[0].path == ""

    def test_legacy_base_filename(self):
        doc = TextValue({"material": [{"base": [{"filename": "orc.png"}]}]})
        materials = read_materials_text(doc, Strategy.MATERIAL_TEXT_BASE, "x/")
        assert materials[0].textures[0].path == "x/orc.png"
        assert materials[0].textures[0].usage == TextureUsage.DIFFUSE

    def test_texture_names_gathered_into_one_material(self):
        doc = TextValue({"material": [{"textures": "a.png"}, {"textures": "b.png"}]})
        materials = read_materials_text(doc, Strategy.MATERIAL_TEXT_TEXTURE_NAMES, "")
        assert len(materials) == 1
        assert [t.path for t in materials[0].textures] == ["a.png", "b.png"]

    def test_absent_collection(self):
        assert read_materials_text(TextValue({}), Strategy.MATERIAL_TEXT_FULL, "") == []
