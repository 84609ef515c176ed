"""
Tests for Factory Queue Module

Tests for videlix/pipelines/factory_queue.py
"""

import asyncio
import json

import pytest

from videlix.core.config import LLMConfig, RateLimitConfig
from videlix.core.constants import FactoryItemStatus, PipelineStep
from videlix.core.exceptions import LLMProviderError, PipelineError
from videlix.generation.models import SceneScript, SimpleScript, VideoIdea
from videlix.generation.orchestrator import GenerationOrchestrator
from videlix.pipelines.factory_queue import (
    FactoryPipeline,
    PauseSignal,
    create_factory_queue,
    process_factory_queue,
)

OUTLINE_JSON = '[{"id": "section_1", "title": "Setup", "points": ["a"]}, {"title": "Payoff"}]'
SCRIPT_JSON = '{"intro": "Hi", "sections": [], "outro": "Bye", "callToAction": "Subscribe"}'
SCENES_JSON = '{"scenes": [{"sceneNumber": 1, "voiceOver": "Once"}]}'
METADATA_JSON = '{"title": "Done", "tags": ["t"]}'


def step_responder(script_json=SCRIPT_JSON, broken_title=None):
    """Answer by looking at which step's user prompt arrived."""
    def responder(key, model, system, user):
        if user.startswith("Script summary:"):
            return METADATA_JSON
        if user.startswith("Outline:"):
            return script_json
        if broken_title and f"Title: {broken_title}" in user:
            raise LLMProviderError("fake", "server error")
        return OUTLINE_JSON
    return responder


def make_ideas(*titles):
    return [VideoIdea(id=f"idea_{i}", title=title) for i, title in enumerate(titles)]


class TestCreateFactoryQueue:
    """Tests for create_factory_queue."""

    def test_selected_ids_keep_idea_order(self):
        ideas = make_ideas("A", "B", "C")

        queue = create_factory_queue(ideas, ["idea_2", "idea_0"])

        assert [item.idea_id for item in queue] == ["idea_0", "idea_2"]
        assert all(item.status == FactoryItemStatus.WAITING for item in queue)
        assert queue[0].progress == 0

    def test_selected_flag(self):
        ideas = [VideoIdea(id="x", title="X"), VideoIdea(id="y", title="Y", selected=True)]

        queue = create_factory_queue(ideas)

        assert [item.idea_title for item in queue] == ["Y"]

    def test_nothing_selected(self):
        with pytest.raises(PipelineError):
            create_factory_queue(make_ideas("A"), [])


class TestProcessFactoryQueue:
    """Tests for process_factory_queue."""

    @pytest.mark.asyncio
    async def test_order_cooldown_and_failure(self, sleep_recorder):
        """Items run in order, a failure does not stop the queue, no cooldown after the last."""
        events = []

        async def per_item(item, index):
            events.append(("run", item))
            if item == "b":
                raise RuntimeError("boom")

        await process_factory_queue(
            ["a", "b", "c"],
            per_item,
            cooldown_ms=1000,
            on_item_start=lambda i: events.append(("start", i)),
            on_item_complete=lambda i: events.append(("done", i)),
            sleep=sleep_recorder,
        )

        assert events == [
            ("start", 0), ("run", "a"), ("done", 0),
            ("start", 1), ("run", "b"), ("done", 1),
            ("start", 2), ("run", "c"), ("done", 2),
        ]
        assert sleep_recorder.calls == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_cooldown_ticks(self, sleep_recorder):
        ticks = []

        async def per_item(item, index):
            pass

        await process_factory_queue(
            [1, 2], per_item, cooldown_ms=2000, on_cooldown=ticks.append, sleep=sleep_recorder
        )

        assert ticks == [2000, 1000, 0]

    @pytest.mark.asyncio
    async def test_polls_is_paused_predicate(self, sleep_recorder):
        answers = iter([True, True, False])
        started = []

        async def per_item(item, index):
            started.append(index)

        await process_factory_queue(
            ["only"], per_item, is_paused=lambda: next(answers), poll_ms=500, sleep=sleep_recorder
        )

        assert started == [0]
        assert sleep_recorder.calls == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_pause_signal_holds_next_item(self, sleep_recorder):
        signal = PauseSignal()
        started = []

        async def per_item(item, index):
            started.append(index)

        signal.pause()
        task = asyncio.create_task(process_factory_queue(
            ["a", "b"], per_item, cooldown_ms=0, pause_signal=signal, sleep=sleep_recorder
        ))
        await asyncio.sleep(0)

        assert started == []
        assert signal.is_paused

        signal.resume()
        await task

        assert started == [0, 1]


class TestFactoryPipeline:
    """Tests for FactoryPipeline."""

    def make_pipeline(self, provider, sleep, profile_id="youtube-explainer", updates=None):
        orchestrator = GenerationOrchestrator(provider, llm_config=LLMConfig(models=["m"]))
        return FactoryPipeline(
            orchestrator,
            profile_id=profile_id,
            credentials=["k1"],
            topic="money",
            rate_limits=RateLimitConfig(factory_cooldown_ms=1000, batch_delay_ms=0),
            on_update=(lambda item: updates.append((item.idea_id, item.status))) if updates is not None else None,
            sleep=sleep,
        )

    @pytest.mark.asyncio
    async def test_status_sequence(self, fake_provider, sleep_recorder):
        updates = []
        pipeline = self.make_pipeline(fake_provider(step_responder()), sleep_recorder, updates=updates)

        queue = await pipeline.run(make_ideas("A", "B", "C"), ["idea_0", "idea_1", "idea_2"])

        def statuses(idea_id):
            seen = []
            for item_id, status in updates:
                if item_id == idea_id and (not seen or seen[-1] != status):
                    seen.append(status)
            return [s.value for s in seen]

        assert statuses("idea_0") == ["waiting", "processing", "complete"]
        assert statuses("idea_1") == ["waiting", "cooling", "processing", "complete"]
        assert statuses("idea_2") == ["waiting", "cooling", "processing", "complete"]

        flat = []
        for _, status in updates[3:]:
            if not flat or flat[-1] != status.value:
                flat.append(status.value)
        assert flat == [
            "processing", "complete", "cooling", "processing", "complete",
            "cooling", "processing", "complete",
        ]
        assert all(item.progress == 100 for item in queue)
        assert sleep_recorder.calls == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_result_holds_every_step(self, fake_provider, sleep_recorder):
        provider = fake_provider(step_responder())
        pipeline = self.make_pipeline(provider, sleep_recorder)

        queue = await pipeline.run(make_ideas("A"), ["idea_0"])

        item = queue[0]
        assert item.status == FactoryItemStatus.COMPLETE
        assert item.current_step is None
        assert [s.title for s in item.result.outline] == ["Setup", "Payoff"]
        assert isinstance(item.result.script, SimpleScript)
        assert item.result.metadata.title == "Done"
        assert len(provider.calls) == 3
        assert item.to_dict()["result"]["script"]["callToAction"] == "Subscribe"

    @pytest.mark.asyncio
    async def test_failed_item_does_not_stop_queue(self, fake_provider, sleep_recorder):
        provider = fake_provider(step_responder(broken_title="B"))
        pipeline = self.make_pipeline(provider, sleep_recorder)

        queue = await pipeline.run(make_ideas("A", "B", "C"), ["idea_0", "idea_1", "idea_2"])

        assert [item.status for item in queue] == [
            FactoryItemStatus.COMPLETE, FactoryItemStatus.ERROR, FactoryItemStatus.COMPLETE,
        ]
        assert "All API keys and models failed" in queue[1].error
        assert len(queue[1].error) <= 200
        assert queue[1].progress == 0
        assert queue[1].result is None

    @pytest.mark.asyncio
    async def test_progress_milestones(self, fake_provider, sleep_recorder):
        progress = []
        pipeline = self.make_pipeline(fake_provider(step_responder()), sleep_recorder)
        pipeline.on_update = lambda item: progress.append((item.current_step, item.progress))

        await pipeline.run(make_ideas("A"), ["idea_0"])

        assert (PipelineStep.OUTLINE, 33) in progress
        assert (PipelineStep.SCRIPT, 66) in progress
        assert (PipelineStep.METADATA, 100) in progress

    @pytest.mark.asyncio
    async def test_scene_profile_batches_script(self, fake_provider, sleep_recorder):
        provider = fake_provider(step_responder(script_json=SCENES_JSON))
        pipeline = self.make_pipeline(provider, sleep_recorder, profile_id="co-tich-nguoc")

        queue = await pipeline.run(make_ideas("Wolf"), ["idea_0"])

        script = queue[0].result.script
        assert isinstance(script, SceneScript)
        assert [s.scene_number for s in script.scenes] == [1, 2]
        # outline, one script call per section, metadata
        assert len(provider.calls) == 4
