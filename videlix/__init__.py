"""
Videlix - LLM-Driven Video Content Pipeline

Turns a topic into video ideas, an outline, a script and publishing metadata
through Google Gemini, using caller-supplied API keys only. Includes a batch
scheduler for scene generation and a paced "factory mode" that drives several
selected ideas through the whole pipeline.

Version: 1.0.0
"""

__version__ = "1.0.0"
__author__ = "Videlix Team"
__project__ = "Videlix"

from pathlib import Path

# Package root directory
PACKAGE_ROOT = Path(__file__).parent
PROJECT_ROOT = PACKAGE_ROOT.parent

__all__ = [
    "__version__",
    "__author__",
    "__project__",
    "PACKAGE_ROOT",
    "PROJECT_ROOT",
]
