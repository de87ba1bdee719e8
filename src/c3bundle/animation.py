"""Animation clip decoding: per-bone translation, rotation and scale tracks."""

from __future__ import annotations

from c3bundle.binary_reader import BinaryReader
from c3bundle.errors import MissingRequiredField, SectionNotFound
from c3bundle.models import AnimationTrackSet, QuatKey, Vec3Key
from c3bundle.text_reader import TextValue
from c3bundle.versions import Strategy
from c3bundle.warning_policy import WarningPolicy, emit_warning

# Keyframe presence bits.
HAS_ROTATION = 0x01
HAS_SCALE = 0x02
HAS_TRANSLATION = 0x04
_ALL_CHANNELS = HAS_ROTATION | HAS_SCALE | HAS_TRANSLATION

# strategy -> (clip count present, per-keyframe presence byte present)
_BINARY_LAYOUTS: dict[Strategy, tuple[bool, bool]] = {
    Strategy.ANIMATION_BINARY_SINGLE: (False, False),
    Strategy.ANIMATION_BINARY_COUNTED: (True, False),
    Strategy.ANIMATION_BINARY_COUNTED_MASKED: (True, True),
    Strategy.ANIMATION_BINARY_BY_ID: (False, True),
}


def binary_section_id(strategy: Strategy, clip_id: str) -> str:
    """Reference id to seek for ``clip_id``; empty means first animations section."""
    if strategy == Strategy.ANIMATION_BINARY_BY_ID and clip_id:
        return clip_id + "animation"
    return ""


def read_animation_binary(
    reader: BinaryReader, strategy: Strategy, clip_id: str = ""
) -> AnimationTrackSet:
    """Decode clips from the positioned section until ``clip_id`` matches.

    An empty ``clip_id`` selects the first clip.

    Raises:
        SectionNotFound: If no clip in the section has ``clip_id``.
    """
    counted, masked = _BINARY_LAYOUTS[strategy]
    clip_count = reader.read_u32("animation count") if counted else 1
    for _ in range(clip_count):
        clip = _read_clip_binary(reader, masked)
        if not clip_id or clip.id == clip_id:
            return clip
    raise SectionNotFound(f"No animation clip with id {clip_id!r}")


def _read_clip_binary(reader: BinaryReader, masked: bool) -> AnimationTrackSet:
    clip = AnimationTrackSet(
        id=reader.read_string("animation id"),
        duration=reader.read_f32("animation duration"),
    )
    bone_count = reader.read_u32("animated bone count")
    for _ in range(bone_count):
        bone_name = reader.read_string("animated bone name")
        clip.add_bone(bone_name)
        keyframe_count = reader.read_u32(f"bone {bone_name!r} keyframe count")
        for _ in range(keyframe_count):
            time = reader.read_f32("keyframe time")
            flags = reader.read_u8("keyframe presence mask") if masked else _ALL_CHANNELS
            if flags & HAS_ROTATION:
                x, y, z, w = (float(v) for v in reader.read_floats(4, "keyframe rotation"))
                clip.rotation_keys[bone_name].append(QuatKey(time, (x, y, z, w)))
            if flags & HAS_SCALE:
                x, y, z = (float(v) for v in reader.read_floats(3, "keyframe scale"))
                clip.scale_keys[bone_name].append(Vec3Key(time, (x, y, z)))
            if flags & HAS_TRANSLATION:
                x, y, z = (float(v) for v in reader.read_floats(3, "keyframe translation"))
                clip.translation_keys[bone_name].append(Vec3Key(time, (x, y, z)))
    return clip


def read_animation_text(
    root: TextValue,
    strategy: Strategy,
    clip_id: str = "",
    *,
    policy: WarningPolicy | None = None,
    path: str = "",
) -> AnimationTrackSet | None:
    """Decode one clip of the text document; None if it has no animations.

    An empty ``clip_id`` selects the first clip. When several clips share
    ``clip_id`` the first of them is decoded, not the last.

    Raises:
        SectionNotFound: If ``clip_id`` is given and no clip has it.
    """
    key = "animation" if strategy == Strategy.ANIMATION_TEXT_LEGACY else "animations"
    value = root[key]
    if value.is_object:
        entries = [value]
    elif value.is_array:
        entries = list(value.elements())
    else:
        return None

    if clip_id:
        matched = next((e for e in entries if e["id"].as_str() == clip_id), None)
        if matched is None:
            raise SectionNotFound(f"No animation clip with id {clip_id!r}")
    elif entries:
        matched = entries[0]
    else:
        return None

    clip = AnimationTrackSet(
        id=matched["id"].as_str() or "",
        duration=matched["length"].as_float() or 0.0,
    )
    for bone in matched["bones"].elements():
        bone_name = bone["boneId"].as_str() or ""
        keyframes = bone["keyframes"]
        if not keyframes.is_array:
            emit_warning(
                "W03",
                f"Animation {clip.id!r} bone {bone_name!r} has no keyframes; skipped",
                policy=policy,
                path=path,
            )
            continue
        clip.add_bone(bone_name)
        for keyframe in keyframes.elements():
            time = keyframe["keytime"].as_float() or 0.0
            translation = _components(keyframe["translation"], 3, "translation")
            if translation is not None:
                clip.translation_keys[bone_name].append(Vec3Key(time, tuple(translation)))
            rotation = _components(keyframe["rotation"], 4, "rotation")
            if rotation is not None:
                clip.rotation_keys[bone_name].append(QuatKey(time, tuple(rotation)))
            scale = _components(keyframe["scale"], 3, "scale")
            if scale is not None:
                clip.scale_keys[bone_name].append(Vec3Key(time, tuple(scale)))
    return clip


def _components(value: TextValue, count: int, label: str) -> list[float] | None:
    if not value.exists:
        return None
    floats = value.as_floats()
    if floats is None or len(floats) < count:
        raise MissingRequiredField(f"Keyframe {label} needs {count} numbers")
    return floats[:count]
