"""
Videlix Pipelines

Batch scheduling, scene batch generation and factory mode.
"""

from .batch_processor import (
    BatchItemError,
    BatchProgress,
    calculate_progress,
    delay_with_countdown,
    format_remaining_time,
    process_batches,
)
from .factory_queue import (
    FactoryPipeline,
    FactoryQueueItem,
    PauseSignal,
    create_factory_queue,
    process_factory_queue,
)
from .scene_batches import generate_scenes_in_batches

__all__ = [
    'BatchItemError',
    'BatchProgress',
    'calculate_progress',
    'delay_with_countdown',
    'format_remaining_time',
    'process_batches',
    'FactoryPipeline',
    'FactoryQueueItem',
    'PauseSignal',
    'create_factory_queue',
    'process_factory_queue',
    'generate_scenes_in_batches',
]
