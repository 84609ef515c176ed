"""
Videlix Constants

Global constants used throughout the Videlix pipeline.
"""

from enum import Enum
from typing import Dict, List, Optional

# =============================================================================
# VERSION INFO
# =============================================================================
VERSION = "1.0.0"
PROJECT_NAME = "Videlix"

# =============================================================================
# PIPELINE CONSTANTS
# =============================================================================

class PipelineStep(str, Enum):
    """Pipeline steps, in their fixed execution order."""
    IDEA = "idea"
    OUTLINE = "outline"
    SCRIPT = "script"
    METADATA = "metadata"


class Language(str, Enum):
    """Output languages supported by the prompt profiles."""
    EN = "en"
    VI = "vi"


class Modifier(str, Enum):
    """Tone/length adjustments applied on regeneration."""
    DEFAULT = "default"
    SHORTER = "shorter"
    LONGER = "longer"
    FUNNIER = "funnier"
    PROFESSIONAL = "professional"


STEP_ORDER: List[PipelineStep] = [
    PipelineStep.IDEA,
    PipelineStep.OUTLINE,
    PipelineStep.SCRIPT,
    PipelineStep.METADATA,
]

# Which step's output each step consumes
REQUIRED_PREVIOUS_STEP: Dict[PipelineStep, Optional[PipelineStep]] = {
    PipelineStep.IDEA: None,
    PipelineStep.OUTLINE: PipelineStep.IDEA,
    PipelineStep.SCRIPT: PipelineStep.OUTLINE,
    PipelineStep.METADATA: PipelineStep.SCRIPT,
}


def get_step_index(step: PipelineStep) -> int:
    """Position of a step within STEP_ORDER."""
    return STEP_ORDER.index(PipelineStep(step))


def get_next_step(step: PipelineStep) -> Optional[PipelineStep]:
    """Step after `step`, or None for the last step."""
    index = get_step_index(step)
    return STEP_ORDER[index + 1] if index < len(STEP_ORDER) - 1 else None


def get_previous_step(step: PipelineStep) -> Optional[PipelineStep]:
    """Step before `step`, or None for the first step."""
    index = get_step_index(step)
    return STEP_ORDER[index - 1] if index > 0 else None


# =============================================================================
# SCRIPT FORMAT CONSTANTS
# =============================================================================

class ScriptFormat(str, Enum):
    """Shape of the script a profile produces."""
    SIMPLE = "simple"
    SCENES = "scenes"


# Wire names of the structured scene record, in display order
SCENE_FIELDS: List[str] = [
    "sceneNumber",
    "block",
    "psychologicalObjective",
    "narrativeFunction",
    "sceneDescription",
    "context",
    "subject",
    "emotionalState",
    "motion",
    "camera",
    "lighting",
    "visualSymbolism",
    "audioEffect",
    "voiceOver",
    "feasibilityLevel",
    "feasibilityNote",
    "suggestion",
    "imagePrompt",
    "videoPrompt",
]

# =============================================================================
# LLM CONSTANTS
# =============================================================================

class ProviderErrorKind(str, Enum):
    """Closed set of provider failure classes used for key/model rotation."""
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    PERMISSION_DENIED = "permission_denied"
    MODEL_UNAVAILABLE = "model_unavailable"
    TRANSIENT = "transient"


# Ordered from most to least capable
DEFAULT_MODELS: List[str] = [
    "gemini-2.5-flash",
    "gemini-2.0-flash",
    "gemini-1.5-flash",
]

DEFAULT_TEMPERATURE = 0.8
DEFAULT_TOP_P = 0.95
DEFAULT_MAX_OUTPUT_TOKENS = 8192
JSON_MIME_TYPE = "application/json"

# Characters of raw output / provider error kept in error messages
ERROR_EXCERPT_LENGTH = 200

# =============================================================================
# RATE LIMIT CONSTANTS
# =============================================================================

RATE_LIMITS = {
    "BATCH_SIZE": 5,            # scenes per batch
    "BATCH_DELAY_MS": 2000,     # pause between batches
    "FACTORY_COOLDOWN_MS": 30000,  # pause between factory items
    "RETRY_DELAY_MS": 5000,     # initial backoff on 429
    "MAX_RETRIES": 3,
    "PAUSE_POLL_MS": 500,
}

# Key validation is paced separately to stay under the free-tier limits
KEY_VALIDATION_BATCH_SIZE = 3
KEY_VALIDATION_DELAY_MS = 500

# =============================================================================
# FACTORY CONSTANTS
# =============================================================================

class FactoryItemStatus(str, Enum):
    """Lifecycle of an item in the factory queue."""
    WAITING = "waiting"
    PROCESSING = "processing"
    COOLING = "cooling"
    COMPLETE = "complete"
    ERROR = "error"


# Progress stamped on a factory item once each step finishes
FACTORY_STEP_PROGRESS: Dict[PipelineStep, int] = {
    PipelineStep.OUTLINE: 33,
    PipelineStep.SCRIPT: 66,
    PipelineStep.METADATA: 100,
}
