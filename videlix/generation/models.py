"""
Content Models

Pydantic models for the four step outputs and for the generation request.
Attributes are snake_case in Python and camelCase on the wire.
"""

from typing import Annotated, Any, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from videlix.core.constants import Language, Modifier, PipelineStep
from videlix.core.exceptions import InvalidRequestError


class ContentModel(BaseModel):
    """Base for generated content: camelCase aliases, snake_case names."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# STEP OUTPUTS
# =============================================================================

class VideoIdea(ContentModel):
    """One candidate idea produced by the idea step."""
    id: str
    title: str = ""
    hook: str = ""
    angle: str = ""
    selected: bool = False


class OutlineSection(ContentModel):
    """One section of a video outline."""
    id: str
    title: str = ""
    points: List[str] = Field(default_factory=list)
    duration: Optional[str] = None


class ScriptSection(ContentModel):
    heading: str = ""
    content: str = ""
    visual_notes: Optional[str] = None


class SimpleScript(ContentModel):
    """Narrated script: intro, body sections, outro and call to action."""
    format: Literal["simple"] = "simple"
    intro: str = ""
    sections: List[ScriptSection] = Field(default_factory=list)
    outro: str = ""
    call_to_action: str = ""


class Scene(ContentModel):
    """A single shot of a documentary-style scene script."""
    scene_number: int
    block: str = ""
    psychological_objective: str = ""
    narrative_function: str = ""
    scene_description: str = ""
    context: str = ""
    subject: str = ""
    emotional_state: str = ""
    motion: str = ""
    camera: str = ""
    lighting: str = ""
    visual_symbolism: str = ""
    audio_effect: str = ""
    voice_over: str = ""
    feasibility_level: str = ""
    feasibility_note: str = ""
    suggestion: Optional[str] = None
    image_prompt: str = ""
    video_prompt: str = ""


class SceneScript(ContentModel):
    """Scene-by-scene script produced by scene-format profiles."""
    format: Literal["scenes"] = "scenes"
    scenes: List[Scene] = Field(default_factory=list)


ScriptContent = Annotated[Union[SimpleScript, SceneScript], Field(discriminator="format")]

_script_adapter = TypeAdapter(ScriptContent)


class VideoMetadata(ContentModel):
    """Publishing metadata for a finished script."""
    title: Union[str, List[str]] = ""
    description: str = ""
    tags: List[str] = Field(default_factory=list)
    thumbnail_prompt: Union[str, List[str]] = ""
    estimated_duration: Optional[str] = None


class FactoryResult(ContentModel):
    """Everything factory mode produced for one idea."""
    outline: List[OutlineSection] = Field(default_factory=list)
    script: Optional[ScriptContent] = None
    metadata: Optional[VideoMetadata] = None


def coerce_script(data: Any) -> Union[SimpleScript, SceneScript]:
    """Validate a script dict, inferring `format` from the fields present."""
    if isinstance(data, (SimpleScript, SceneScript)):
        return data
    if isinstance(data, dict) and "format" not in data:
        data = {**data, "format": "scenes" if "scenes" in data else "simple"}
    return _script_adapter.validate_python(data)


# =============================================================================
# REQUEST
# =============================================================================

PreviousContent = Union[VideoIdea, List[OutlineSection], SimpleScript, SceneScript]


class GenerationRequest(BaseModel):
    """Immutable input to one generation call."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    step: PipelineStep
    profile_id: str
    language: Language = Language.EN
    topic: str = ""
    previous_content: Optional[PreviousContent] = None
    modifier: Optional[Modifier] = None
    # Never shown in repr, so requests can be logged safely
    credentials: Tuple[str, ...] = Field(default=(), repr=False)

    @model_validator(mode="before")
    @classmethod
    def _coerce_previous_content(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key = "previousContent" if "previousContent" in data else "previous_content"
        content = data.get(key)
        if content is None:
            return data

        step = PipelineStep(data.get("step"))
        if step == PipelineStep.IDEA:
            coerced = None
        elif step == PipelineStep.OUTLINE:
            coerced = VideoIdea.model_validate(content)
        elif step == PipelineStep.SCRIPT:
            coerced = [OutlineSection.model_validate(section) for section in content]
        else:
            coerced = coerce_script(content)
        return {**data, key: coerced}

    @classmethod
    def build(cls, **fields) -> 'GenerationRequest':
        """Construct a request, reporting bad values as InvalidRequestError."""
        try:
            return cls(**fields)
        except (ValidationError, ValueError, TypeError) as e:
            raise InvalidRequestError(f"Invalid generation request: {e}")

    def with_changes(self, **changes) -> 'GenerationRequest':
        """Copy of this request with some fields replaced."""
        data = self.model_dump()
        data.update(changes)
        return type(self)(**data)
