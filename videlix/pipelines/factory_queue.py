"""
Videlix Factory Queue

Factory mode drives several selected ideas through outline, script and
metadata, one idea at a time, with a cooldown between ideas so a whole
queue stays under the provider's quota. The queue can be paused between
items; a failed item is stamped as an error and the queue moves on.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence

from videlix.core.config import RateLimitConfig
from videlix.core.constants import (
    ERROR_EXCERPT_LENGTH,
    FACTORY_STEP_PROGRESS,
    FactoryItemStatus,
    Language,
    PipelineStep,
    RATE_LIMITS,
    ScriptFormat,
)
from videlix.core.exceptions import PipelineError
from videlix.core.logging_config import get_logger
from videlix.core.retry import retry_with_backoff
from videlix.generation.models import FactoryResult, GenerationRequest, VideoIdea
from videlix.generation.orchestrator import GenerationOrchestrator
from videlix.pipelines.batch_processor import delay_with_countdown
from videlix.pipelines.scene_batches import generate_scenes_in_batches

logger = get_logger("pipelines.factory")

SleepFn = Callable[[float], Awaitable[Any]]


@dataclass
class FactoryQueueItem:
    """One idea's progress through factory mode; mutated in place."""
    idea_id: str
    idea_title: str
    status: FactoryItemStatus = FactoryItemStatus.WAITING
    progress: int = 0
    current_step: Optional[PipelineStep] = None
    result: Optional[FactoryResult] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "ideaId": self.idea_id,
            "ideaTitle": self.idea_title,
            "status": self.status.value,
            "progress": self.progress,
            "currentStep": self.current_step.value if self.current_step else None,
            "result": self.result.to_json_dict() if self.result else None,
            "error": self.error,
        }


class PauseSignal:
    """
    Cooperative pause for the factory queue.

    While paused, the queue finishes the item in flight and then waits
    before starting the next one. Resuming wakes it immediately.
    """

    def __init__(self):
        self._running = asyncio.Event()
        self._running.set()

    @property
    def is_paused(self) -> bool:
        return not self._running.is_set()

    def pause(self) -> None:
        self._running.clear()

    def resume(self) -> None:
        self._running.set()

    async def wait_until_resumed(self) -> None:
        await self._running.wait()


def create_factory_queue(
    ideas: Sequence[VideoIdea],
    selected_ids: Optional[Iterable[str]] = None
) -> List[FactoryQueueItem]:
    """
    Queue items for the chosen ideas, in idea order.

    Args:
        ideas: Ideas from the idea step
        selected_ids: Ids to queue; the ideas flagged `selected` when omitted

    Raises:
        PipelineError: nothing was selected
    """
    if selected_ids is None:
        chosen = [idea for idea in ideas if idea.selected]
    else:
        wanted = set(selected_ids)
        chosen = [idea for idea in ideas if idea.id in wanted]

    if not chosen:
        raise PipelineError("No ideas selected for factory mode")

    return [FactoryQueueItem(idea_id=idea.id, idea_title=idea.title) for idea in chosen]


async def _wait_while_paused(
    pause_signal: Optional[PauseSignal],
    is_paused: Optional[Callable[[], bool]],
    poll_ms: int,
    sleep: SleepFn
) -> None:
    if pause_signal is not None and pause_signal.is_paused:
        logger.info("Factory queue paused")
        await pause_signal.wait_until_resumed()
        logger.info("Factory queue resumed")
    if is_paused is not None:
        while is_paused():
            await sleep(poll_ms / 1000)


async def process_factory_queue(
    items: Sequence[Any],
    per_item: Callable[[Any, int], Awaitable[Any]],
    cooldown_ms: int = RATE_LIMITS["FACTORY_COOLDOWN_MS"],
    on_item_start: Optional[Callable[[int], None]] = None,
    on_item_complete: Optional[Callable[[int], None]] = None,
    on_cooldown: Optional[Callable[[int], None]] = None,
    pause_signal: Optional[PauseSignal] = None,
    is_paused: Optional[Callable[[], bool]] = None,
    poll_ms: int = RATE_LIMITS["PAUSE_POLL_MS"],
    sleep: SleepFn = asyncio.sleep
) -> None:
    """
    Run `per_item(item, index)` over `items` strictly in order.

    Before each item the queue waits while paused, either on `pause_signal`
    or by polling an `is_paused` predicate every `poll_ms`. Between items
    (not after the last) it counts down `cooldown_ms`, calling
    `on_cooldown(remaining_ms)` each second. An exception from `per_item`
    is logged and the queue continues with the next item.
    """
    total = len(items)
    for index, item in enumerate(items):
        await _wait_while_paused(pause_signal, is_paused, poll_ms, sleep)

        if on_item_start:
            on_item_start(index)
        logger.info(f"Factory item {index + 1}/{total} started")

        try:
            await per_item(item, index)
        except Exception as e:
            logger.error(f"Factory item {index + 1}/{total} failed: {e}")

        if on_item_complete:
            on_item_complete(index)

        if index < total - 1:
            logger.info(f"Cooling down {cooldown_ms}ms before item {index + 2}/{total}")
            await delay_with_countdown(cooldown_ms, on_cooldown, sleep)


class FactoryPipeline:
    """
    Full outline -> script -> metadata run for each queued idea.

    Args:
        orchestrator: Generates each step
        profile_id: Profile used for every step
        credentials: Caller's API keys
        topic: Topic the ideas came from
        language: Output language
        rate_limits: Cooldown and retry pacing
        pause_signal: Optional pause control shared with the caller
        on_update: Called with the item after every status/progress change
        on_cooldown: Called with remaining milliseconds during cooldowns
        sleep: Awaitable sleep in seconds, injectable for tests
    """

    def __init__(
        self,
        orchestrator: GenerationOrchestrator,
        profile_id: str,
        credentials: Sequence[str],
        topic: str = "",
        language: Language = Language.EN,
        rate_limits: Optional[RateLimitConfig] = None,
        pause_signal: Optional[PauseSignal] = None,
        on_update: Optional[Callable[[FactoryQueueItem], None]] = None,
        on_cooldown: Optional[Callable[[int], None]] = None,
        sleep: SleepFn = asyncio.sleep
    ):
        self.orchestrator = orchestrator
        self.profile_id = profile_id
        self.credentials = tuple(credentials)
        self.topic = topic
        self.language = Language(language)
        self.rate_limits = rate_limits or RateLimitConfig()
        self.pause_signal = pause_signal or PauseSignal()
        self.on_update = on_update
        self.on_cooldown = on_cooldown
        self._sleep = sleep
        self._ideas: Dict[str, VideoIdea] = {}
        self.queue: List[FactoryQueueItem] = []

    def _notify(self, item: FactoryQueueItem) -> None:
        if self.on_update:
            self.on_update(item)

    def _request(self, step: PipelineStep, previous_content: Any) -> GenerationRequest:
        return GenerationRequest(
            step=step,
            profile_id=self.profile_id,
            language=self.language,
            topic=self.topic,
            previous_content=previous_content,
            credentials=self.credentials,
        )

    async def _generate(self, request: GenerationRequest) -> Any:
        limits = self.rate_limits
        if request.step == PipelineStep.SCRIPT:
            script_format = await self.orchestrator.resolver.resolve_script_format(self.profile_id)
            if script_format == ScriptFormat.SCENES:
                return await generate_scenes_in_batches(
                    self.orchestrator,
                    request,
                    delay_ms=limits.batch_delay_ms,
                    max_retries=limits.max_retries,
                    retry_delay_ms=limits.retry_delay_ms,
                    sleep=self._sleep,
                )
        return await retry_with_backoff(
            lambda: self.orchestrator.generate(request),
            max_retries=limits.max_retries,
            initial_delay_ms=limits.retry_delay_ms,
            sleep=self._sleep,
        )

    async def _process_item(self, item: FactoryQueueItem, index: int) -> None:
        idea = self._ideas[item.idea_id]
        item.status = FactoryItemStatus.PROCESSING
        item.progress = 0
        item.error = None
        self._notify(item)

        try:
            outputs = {}
            previous: Any = idea
            for step in (PipelineStep.OUTLINE, PipelineStep.SCRIPT, PipelineStep.METADATA):
                item.current_step = step
                self._notify(item)
                previous = await self._generate(self._request(step, previous))
                outputs[step] = previous
                item.progress = FACTORY_STEP_PROGRESS[step]
                self._notify(item)

            item.result = FactoryResult(
                outline=outputs[PipelineStep.OUTLINE],
                script=outputs[PipelineStep.SCRIPT],
                metadata=outputs[PipelineStep.METADATA],
            )
            item.status = FactoryItemStatus.COMPLETE
            logger.info(f"Factory item '{item.idea_title}' complete")
        except Exception as e:
            item.status = FactoryItemStatus.ERROR
            item.error = str(e)[:ERROR_EXCERPT_LENGTH]
            logger.error(f"Factory item '{item.idea_title}' failed at {item.current_step}: {e}")

        item.current_step = None
        self._notify(item)

    def _mark_next_cooling(self, index: int) -> None:
        if index + 1 < len(self.queue):
            next_item = self.queue[index + 1]
            next_item.status = FactoryItemStatus.COOLING
            self._notify(next_item)

    async def run(
        self,
        ideas: Sequence[VideoIdea],
        selected_ids: Optional[Iterable[str]] = None
    ) -> List[FactoryQueueItem]:
        """
        Process the selected ideas and return their queue items.

        Every item ends as complete or error; the queue itself never raises
        for a failed item.
        """
        self._ideas = {idea.id: idea for idea in ideas}
        self.queue = create_factory_queue(ideas, selected_ids)
        logger.info(f"Factory mode started with {len(self.queue)} idea(s)")
        for item in self.queue:
            self._notify(item)

        await process_factory_queue(
            self.queue,
            self._process_item,
            cooldown_ms=self.rate_limits.factory_cooldown_ms,
            on_item_complete=self._mark_next_cooling,
            on_cooldown=self.on_cooldown,
            pause_signal=self.pause_signal,
            poll_ms=self.rate_limits.pause_poll_ms,
            sleep=self._sleep,
        )

        completed = sum(1 for item in self.queue if item.status == FactoryItemStatus.COMPLETE)
        logger.info(f"Factory mode finished: {completed}/{len(self.queue)} complete")
        return self.queue
