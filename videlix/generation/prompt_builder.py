"""
Prompt Builder

Renders the user prompt sent alongside a profile's system prompt. Pure
functions of the request; nothing here talks to the network.
"""

from typing import List, Optional, Union

from videlix.core.constants import Language, Modifier, PipelineStep
from videlix.generation.models import (
    GenerationRequest,
    OutlineSection,
    SceneScript,
    SimpleScript,
    VideoIdea,
)

SUMMARY_LENGTH = 200


USER_TEMPLATES = {
    PipelineStep.IDEA: {
        Language.EN: "Topic: {topic}\n\nGenerate 5 unique video ideas for this topic. Return as JSON array.",
        Language.VI: "Chủ đề: {topic}\n\nTạo 5 ý tưởng video độc đáo cho chủ đề này. Trả về JSON array.",
    },
    PipelineStep.OUTLINE: {
        Language.EN: (
            "Selected Idea:\nTitle: {title}\nHook: {hook}\nAngle: {angle}\n\n"
            "Create a detailed outline for this video. Return as JSON array of sections."
        ),
        Language.VI: (
            "Ý tưởng đã chọn:\nTiêu đề: {title}\nHook: {hook}\nGóc nhìn: {angle}\n\n"
            "Tạo dàn ý chi tiết cho video này. Trả về JSON array của các sections."
        ),
    },
    PipelineStep.SCRIPT: {
        Language.EN: (
            "Outline:\n{outline}\n\n"
            "Write a complete script based on this outline. "
            "Return as JSON object with intro, sections, outro, callToAction."
        ),
        Language.VI: (
            "Dàn ý:\n{outline}\n\n"
            "Viết kịch bản đầy đủ dựa trên dàn ý này. "
            "Trả về JSON object với intro, sections, outro, callToAction."
        ),
    },
    PipelineStep.METADATA: {
        Language.EN: (
            "Script summary:\n{summary}...\n\n"
            "Generate optimized metadata for this video. "
            "Return as JSON object with title, description, tags, thumbnailPrompt, estimatedDuration."
        ),
        Language.VI: (
            "Tóm tắt kịch bản:\n{summary}...\n\n"
            "Tạo metadata tối ưu cho video này. "
            "Trả về JSON object với title, description, tags, thumbnailPrompt, estimatedDuration."
        ),
    },
}

MODIFIER_INSTRUCTIONS = {
    Modifier.SHORTER: {
        Language.EN: "Make it shorter and more concise.",
        Language.VI: "Làm ngắn gọn hơn, súc tích hơn.",
    },
    Modifier.LONGER: {
        Language.EN: "Make it longer and more detailed.",
        Language.VI: "Làm chi tiết hơn, đầy đủ hơn.",
    },
    Modifier.FUNNIER: {
        Language.EN: "Add more humor and fun elements.",
        Language.VI: "Thêm yếu tố hài hước, vui nhộn.",
    },
    Modifier.PROFESSIONAL: {
        Language.EN: "Make it more professional and formal.",
        Language.VI: "Làm chuyên nghiệp hơn, nghiêm túc hơn.",
    },
}


def format_outline(sections: List[OutlineSection]) -> str:
    """Bulleted listing: section title, then its points indented."""
    blocks = []
    for section in sections:
        points = "\n".join(f"  - {point}" for point in section.points)
        blocks.append(f"{section.title}:\n{points}")
    return "\n\n".join(blocks)


def format_idea(idea: VideoIdea) -> str:
    return f"{idea.title}\nHook: {idea.hook}\nAngle: {idea.angle}"


def script_summary(script: Union[SimpleScript, SceneScript], length: int = SUMMARY_LENGTH) -> str:
    """Leading text of a script, cut to `length` characters."""
    if isinstance(script, SceneScript):
        text = " ".join(scene.voice_over for scene in script.scenes if scene.voice_over)
    else:
        text = script.intro
    return text[:length]


def format_script(script: Union[SimpleScript, SceneScript]) -> str:
    """Plain-text rendering of a whole script, for profile placeholders."""
    if isinstance(script, SceneScript):
        return "\n".join(
            f"Scene {scene.scene_number}: {scene.voice_over}" for scene in script.scenes
        )
    parts = [script.intro]
    parts.extend(f"{section.heading}\n{section.content}" for section in script.sections)
    parts.extend([script.outro, script.call_to_action])
    return "\n\n".join(part for part in parts if part)


def build_user_prompt(request: GenerationRequest) -> str:
    """
    Render the user prompt for a request.

    Missing previous content renders an empty body; the orchestrator rejects
    such requests before they get here.
    """
    step = request.step
    language = request.language
    template = USER_TEMPLATES[step][language]
    content = request.previous_content

    if step == PipelineStep.IDEA:
        prompt = template.format(topic=request.topic)
    elif step == PipelineStep.OUTLINE:
        idea = content if isinstance(content, VideoIdea) else None
        prompt = template.format(
            title=idea.title if idea else "",
            hook=idea.hook if idea else "",
            angle=idea.angle if idea else "",
        )
    elif step == PipelineStep.SCRIPT:
        sections = content if isinstance(content, list) else []
        prompt = template.format(outline=format_outline(sections))
    else:
        is_script = isinstance(content, (SimpleScript, SceneScript))
        prompt = template.format(summary=script_summary(content) if is_script else "")

    instruction = modifier_instruction(request.modifier, language)
    if instruction:
        prompt += f"\n\n{instruction}"
    return prompt


def modifier_instruction(modifier: Optional[Modifier], language: Language) -> Optional[str]:
    if modifier is None or modifier == Modifier.DEFAULT:
        return None
    return MODIFIER_INSTRUCTIONS[Modifier(modifier)][Language(language)]


def fill_placeholders(system_prompt: str, request: GenerationRequest) -> str:
    """
    Substitute {topic}, {selectedIdea}, {outline} and {script} in profile text.

    Plain replacement, so JSON examples in the prompt keep their braces.
    """
    content = request.previous_content
    values = {"{topic}": request.topic}
    if isinstance(content, VideoIdea):
        values["{selectedIdea}"] = format_idea(content)
    elif isinstance(content, list):
        values["{outline}"] = format_outline(content)
    elif isinstance(content, (SimpleScript, SceneScript)):
        values["{script}"] = format_script(content)

    for placeholder, value in values.items():
        system_prompt = system_prompt.replace(placeholder, value)
    return system_prompt
