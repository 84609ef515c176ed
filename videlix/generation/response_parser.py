"""
Response Parser

Recovers typed step output from raw LLM text. Models wrap JSON in code
fences, drop commas between lines and leave trailing commas; each of those
is repaired before giving up. The top-level shape is strict (ideas and
outlines are arrays, scripts and metadata are objects) while missing fields
fall back to empty defaults.
"""

import json
import re
from typing import Any, List, Optional, Union

from videlix.core.constants import PipelineStep
from videlix.core.exceptions import ParseError
from videlix.core.logging_config import get_logger
from videlix.generation.models import (
    OutlineSection,
    Scene,
    SceneScript,
    ScriptSection,
    SimpleScript,
    VideoIdea,
    VideoMetadata,
)

logger = get_logger("generation.parser")

ParsedContent = Union[List[VideoIdea], List[OutlineSection], SimpleScript, SceneScript, VideoMetadata]

_FENCE_START = re.compile(r"^```[a-zA-Z]*[ \t]*\r?\n?")
_FENCE_END = re.compile(r"\r?\n?[ \t]*```$")

# Each rule leaves text it already fixed unchanged, so repair is idempotent
_REPAIR_RULES = [
    # "a"\n"b"  ->  "a",\n"b"
    (re.compile(r'"(?=[ \t]*\r?\n\s*")'), r'",'),
    # }\n{  ->  },\n{
    (re.compile(r"\}(\s*)\{"), r"},\1{"),
    # ]\n[  ->  ],\n[
    (re.compile(r"\](\s*)\["), r"],\1["),
    # trailing commas before a closer
    (re.compile(r",[\s,]*([}\]])"), r"\1"),
]

_CLOSERS = {"{": "}", "[": "]"}


# =============================================================================
# TEXT RECOVERY
# =============================================================================

def strip_code_fence(text: str) -> str:
    """Remove a leading ``` / ```json fence and a trailing ``` fence."""
    text = text.strip()
    if text.startswith("```"):
        text = _FENCE_START.sub("", text, count=1)
    if text.endswith("```"):
        text = _FENCE_END.sub("", text, count=1)
    return text.strip()


def repair_json(text: str) -> str:
    """Insert missing commas between values and drop trailing commas."""
    for pattern, replacement in _REPAIR_RULES:
        text = pattern.sub(replacement, text)
    return text


def extract_json_span(text: str) -> Optional[str]:
    """
    First balanced {...} or [...] span, skipping brackets inside strings.

    When the first opener is never closed, falls back to the greedy span up
    to the last matching closer.
    """
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)

    stack = []
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in "}]":
            if not stack or stack.pop() != char:
                break
            if not stack:
                return text[start:index + 1]

    end = text.rfind(_CLOSERS[text[start]])
    if end > start:
        return text[start:end + 1]
    return None


def _loads(text: str) -> Any:
    return json.loads(text, strict=False)


def _parse_with_repair(text: str) -> Any:
    try:
        return _loads(text)
    except json.JSONDecodeError:
        pass
    return _loads(repair_json(text))


def parse_json(raw_text: str, step: Optional[PipelineStep] = None) -> Any:
    """
    Decode JSON from raw model output.

    Raises:
        ParseError: with the first 200 characters of `raw_text`
    """
    if raw_text is None or not raw_text.strip():
        raise ParseError("empty response", raw_text or "", _step_name(step))

    text = strip_code_fence(raw_text)
    try:
        return _parse_with_repair(text)
    except json.JSONDecodeError as e:
        first_error = e

    span = extract_json_span(text)
    if span is not None and span != text:
        try:
            value = _parse_with_repair(span)
            logger.debug("Recovered JSON from a span of the response")
            return value
        except json.JSONDecodeError:
            pass

    raise ParseError(f"invalid JSON ({first_error.msg})", raw_text, _step_name(step))


# =============================================================================
# NORMALIZATION
# =============================================================================

def _step_name(step: Optional[PipelineStep]) -> Optional[str]:
    return PipelineStep(step).value if step else None


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return " ".join(_text(v) for v in value)
    return str(value)


def _optional_text(value: Any) -> Optional[str]:
    return None if value is None else _text(value)


def _text_or_list(value: Any) -> Union[str, List[str]]:
    if isinstance(value, list):
        return [_text(v) for v in value]
    return _text(value)


def _text_list(value: Any) -> List[str]:
    if isinstance(value, list):
        return [_text(v) for v in value]
    if isinstance(value, str) and value:
        return [value]
    return []


def _pick(item: dict, *keys: str) -> Any:
    for key in keys:
        if key in item:
            return item[key]
    return None


def _require_list(data: Any, step: PipelineStep, raw_text: str) -> list:
    if not isinstance(data, list):
        raise ParseError(f"expected a JSON array for step '{step.value}'", raw_text, step.value)
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise ParseError(
                f"item {index} of step '{step.value}' is not an object", raw_text, step.value
            )
    return data


def _require_object(data: Any, step: PipelineStep, raw_text: str) -> dict:
    if not isinstance(data, dict):
        raise ParseError(f"expected a JSON object for step '{step.value}'", raw_text, step.value)
    return data


def _scene_number(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_ideas(data: list) -> List[VideoIdea]:
    return [
        VideoIdea(
            id=_text(item.get("id")) or f"idea_{i}",
            title=_text(item.get("title")),
            hook=_text(item.get("hook")),
            angle=_text(item.get("angle")),
            selected=False,
        )
        for i, item in enumerate(data)
    ]


def normalize_outline(data: list) -> List[OutlineSection]:
    return [
        OutlineSection(
            id=_text(item.get("id")) or f"section_{i}",
            title=_text(item.get("title")),
            points=_text_list(item.get("points")),
            duration=_optional_text(item.get("duration")),
        )
        for i, item in enumerate(data)
    ]


def normalize_scene(item: dict, index: int) -> Scene:
    return Scene(
        scene_number=_scene_number(_pick(item, "sceneNumber", "scene_number"), index + 1),
        block=_text(item.get("block")),
        psychological_objective=_text(_pick(item, "psychologicalObjective", "psychological_objective")),
        narrative_function=_text(_pick(item, "narrativeFunction", "narrative_function")),
        scene_description=_text(_pick(item, "sceneDescription", "scene_description")),
        context=_text(item.get("context")),
        subject=_text(item.get("subject")),
        emotional_state=_text(_pick(item, "emotionalState", "emotional_state")),
        motion=_text(item.get("motion")),
        camera=_text(item.get("camera")),
        lighting=_text(item.get("lighting")),
        visual_symbolism=_text(_pick(item, "visualSymbolism", "visual_symbolism")),
        audio_effect=_text(_pick(item, "audioEffect", "audio_effect")),
        voice_over=_text(_pick(item, "voiceOver", "voice_over")),
        feasibility_level=_text(_pick(item, "feasibilityLevel", "feasibility_level")),
        feasibility_note=_text(_pick(item, "feasibilityNote", "feasibility_note")),
        suggestion=_optional_text(item.get("suggestion")),
        image_prompt=_text(_pick(item, "imagePrompt", "image_prompt")),
        video_prompt=_text(_pick(item, "videoPrompt", "video_prompt")),
    )


def normalize_script(data: dict, raw_text: str = "") -> Union[SimpleScript, SceneScript]:
    """Scene script when a `scenes` list is present, otherwise simple."""
    scenes = data.get("scenes")
    if isinstance(scenes, list):
        _require_list(scenes, PipelineStep.SCRIPT, raw_text)
        return SceneScript(scenes=[normalize_scene(item, i) for i, item in enumerate(scenes)])

    sections = data.get("sections")
    sections = _require_list(sections, PipelineStep.SCRIPT, raw_text) if isinstance(sections, list) else []
    return SimpleScript(
        intro=_text(data.get("intro")),
        sections=[
            ScriptSection(
                heading=_text(_pick(item, "heading", "title")),
                content=_text(item.get("content")),
                visual_notes=_optional_text(_pick(item, "visualNotes", "visual_notes")),
            )
            for item in sections
        ],
        outro=_text(data.get("outro")),
        call_to_action=_text(_pick(data, "callToAction", "call_to_action")),
    )


def normalize_metadata(data: dict) -> VideoMetadata:
    return VideoMetadata(
        title=_text_or_list(data.get("title")),
        description=_text(data.get("description")),
        tags=_text_list(data.get("tags")),
        thumbnail_prompt=_text_or_list(_pick(data, "thumbnailPrompt", "thumbnail_prompt")),
        estimated_duration=_optional_text(_pick(data, "estimatedDuration", "estimated_duration")),
    )


def parse_response(raw_text: str, step: PipelineStep) -> ParsedContent:
    """
    Parse raw model output into the typed result for `step`.

    Returns:
        list[VideoIdea] for idea, list[OutlineSection] for outline,
        SimpleScript or SceneScript for script, VideoMetadata for metadata

    Raises:
        ParseError: unrecoverable JSON or wrong top-level shape
    """
    step = PipelineStep(step)
    data = parse_json(raw_text, step)

    if step == PipelineStep.IDEA:
        return normalize_ideas(_require_list(data, step, raw_text))
    if step == PipelineStep.OUTLINE:
        return normalize_outline(_require_list(data, step, raw_text))
    if step == PipelineStep.SCRIPT:
        return normalize_script(_require_object(data, step, raw_text), raw_text)
    return normalize_metadata(_require_object(data, step, raw_text))
