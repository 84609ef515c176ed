"""
Videlix Generation

Content models, prompt building, response parsing and the orchestrator.
"""

from .models import (
    GenerationRequest,
    VideoIdea,
    OutlineSection,
    ScriptSection,
    SimpleScript,
    Scene,
    SceneScript,
    VideoMetadata,
    FactoryResult,
)
from .orchestrator import GenerationOrchestrator
from .prompt_builder import build_user_prompt, fill_placeholders
from .response_parser import parse_response, repair_json

__all__ = [
    'GenerationRequest',
    'VideoIdea',
    'OutlineSection',
    'ScriptSection',
    'SimpleScript',
    'Scene',
    'SceneScript',
    'VideoMetadata',
    'FactoryResult',
    'GenerationOrchestrator',
    'build_user_prompt',
    'fill_placeholders',
    'parse_response',
    'repair_json',
]
