"""
Scene Batch Generation

Scene-format scripts run to dozens of scenes, more than one response can
hold. The outline is split into chunks of sections, each chunk is scripted
on its own through the orchestrator, and the scenes are merged and
renumbered from 1.
"""

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from videlix.core.constants import RATE_LIMITS, PipelineStep
from videlix.core.exceptions import (
    BatchGenerationError,
    InvalidRequestError,
    MissingPreviousContentError,
    ParseError,
)
from videlix.core.logging_config import get_logger
from videlix.core.retry import retry_with_backoff
from videlix.generation.models import GenerationRequest, OutlineSection, Scene, SceneScript
from videlix.generation.orchestrator import GenerationOrchestrator
from videlix.pipelines.batch_processor import BatchItemError, ProgressCallback, process_batches

logger = get_logger("pipelines.scenes")

SECTIONS_PER_BATCH = 1


def renumber_scenes(scenes: List[Scene]) -> List[Scene]:
    return [
        scene.model_copy(update={"scene_number": number})
        for number, scene in enumerate(scenes, start=1)
    ]


async def generate_scenes_in_batches(
    orchestrator: GenerationOrchestrator,
    request: GenerationRequest,
    sections_per_batch: int = SECTIONS_PER_BATCH,
    delay_ms: int = RATE_LIMITS["BATCH_DELAY_MS"],
    on_progress: Optional[ProgressCallback] = None,
    max_retries: int = RATE_LIMITS["MAX_RETRIES"],
    retry_delay_ms: int = RATE_LIMITS["RETRY_DELAY_MS"],
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
) -> SceneScript:
    """
    Generate a scene script chunk by chunk over the outline.

    Raises:
        InvalidRequestError: the request is not for the script step
        MissingPreviousContentError: the request has no outline
        BatchGenerationError: any chunk failed after its retries
    """
    if request.step != PipelineStep.SCRIPT:
        raise InvalidRequestError(f"Scene batches need a script request, got '{request.step.value}'")
    outline = request.previous_content
    if not isinstance(outline, list) or not outline:
        raise MissingPreviousContentError(PipelineStep.SCRIPT.value, PipelineStep.OUTLINE.value)

    async def worker(sections: List[OutlineSection], index: int) -> List[SceneScript]:
        chunk_request = request.with_changes(previous_content=sections)
        script = await retry_with_backoff(
            lambda: orchestrator.generate(chunk_request),
            max_retries=max_retries,
            initial_delay_ms=retry_delay_ms,
            sleep=sleep,
        )
        if not isinstance(script, SceneScript):
            raise ParseError("expected a scene script", step=PipelineStep.SCRIPT.value)
        logger.info(f"Chunk {index + 1} produced {len(script.scenes)} scenes")
        return [script]

    results = await process_batches(
        outline,
        worker,
        batch_size=sections_per_batch,
        delay_ms=delay_ms,
        on_progress=on_progress,
        step=PipelineStep.SCRIPT.value,
        sleep=sleep,
    )

    failures = [r for r in results if isinstance(r, BatchItemError)]
    if failures:
        failed_batches = sorted({f.batch_index for f in failures})
        raise BatchGenerationError(failed_batches, [f.error for f in failures])

    scenes = [scene for script in results for scene in script.scenes]
    return SceneScript(scenes=renumber_scenes(scenes))
