"""
Videlix Main Entry Point

Command-line access to the generation pipeline. Output is JSON on stdout,
logs go to stderr.

Examples:
    python -m videlix generate idea --topic "saving money as a student"
    python -m videlix generate outline --previous idea.json
    python -m videlix factory --topic "space myths" --select 0,2
    python -m videlix validate-keys
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from videlix.core.config import VidelixConfig, load_config
from videlix.core.constants import Language, Modifier, PipelineStep
from videlix.core.env_loader import ensure_env_loaded, get_api_keys
from videlix.core.exceptions import CallerError, InvalidRequestError, VidelixError
from videlix.core.logging_config import LogLevel, get_logger, setup_logging
from videlix.generation.models import GenerationRequest, VideoIdea
from videlix.generation.orchestrator import GenerationOrchestrator
from videlix.llm.provider import GeminiProvider
from videlix.profiles.builtin import DEFAULT_PROFILE_ID, list_builtin_profiles
from videlix.profiles.resolver import ProfileResolver
from videlix.profiles.store import JsonFileProfileStore


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="videlix",
        description="Videlix - topic to video idea, outline, script and metadata"
    )
    parser.add_argument("--config", "-c", type=str, help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose log format")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")
    parser.add_argument(
        "--api-key", "-k",
        action="append",
        default=[],
        help="Your Gemini API key (repeatable). Defaults to VIDELIX_API_KEYS."
    )
    parser.add_argument("--profiles-file", type=str, help="JSON file of extra profiles")

    commands = parser.add_subparsers(dest="command", required=True)

    generate = commands.add_parser("generate", help="Generate one pipeline step")
    generate.add_argument("step", choices=[s.value for s in PipelineStep])
    _add_content_options(generate)
    generate.add_argument(
        "--previous",
        type=str,
        help="JSON file with the previous step's output"
    )
    generate.add_argument("--modifier", choices=[m.value for m in Modifier], default=None)

    factory = commands.add_parser("factory", help="Generate ideas, then run factory mode")
    _add_content_options(factory)
    factory.add_argument(
        "--select",
        type=str,
        help="Comma-separated idea indices to process (default: all)"
    )
    factory.add_argument("--ideas", type=str, help="JSON file of ideas instead of generating them")

    commands.add_parser("validate-keys", help="Check your API keys")
    commands.add_parser("profiles", help="List built-in profiles")

    return parser


def _add_content_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--topic", "-t", type=str, default="")
    parser.add_argument("--profile", "-p", type=str, default=DEFAULT_PROFILE_ID)
    parser.add_argument("--language", "-l", choices=[lang.value for lang in Language], default="en")


def _dump(value: Any) -> None:
    if hasattr(value, "to_json_dict"):
        value = value.to_json_dict()
    elif isinstance(value, list):
        value = [v.to_json_dict() if hasattr(v, "to_json_dict") else v for v in value]
    print(json.dumps(value, ensure_ascii=False, indent=2))


def _read_json(path: Optional[str]) -> Any:
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise InvalidRequestError(f"Cannot read {path}: {e.strerror or e}")
    except json.JSONDecodeError as e:
        raise InvalidRequestError(f"{path} is not valid JSON: {e}")


def _parse_indices(value: str) -> set:
    try:
        return {int(i) for i in value.split(",") if i.strip()}
    except ValueError:
        raise InvalidRequestError(f"--select expects comma-separated idea indices, got '{value}'")


def _build_orchestrator(args, config: VidelixConfig) -> GenerationOrchestrator:
    profiles_path = args.profiles_file or config.profiles.profiles_path
    store = JsonFileProfileStore(Path(profiles_path)) if profiles_path else None
    resolver = ProfileResolver(store, ttl=config.profiles.cache_ttl_seconds)
    return GenerationOrchestrator(GeminiProvider(), resolver, config.llm)


async def run_generate(args, config: VidelixConfig, keys: List[str]) -> None:
    request = GenerationRequest.build(
        step=args.step,
        profile_id=args.profile,
        language=args.language,
        topic=args.topic,
        previous_content=_read_json(args.previous),
        modifier=args.modifier,
        credentials=keys,
    )
    result = await _build_orchestrator(args, config).generate(request)
    _dump(result)


async def run_factory(args, config: VidelixConfig, keys: List[str]) -> None:
    from videlix.pipelines.factory_queue import FactoryPipeline

    logger = get_logger("main")
    orchestrator = _build_orchestrator(args, config)

    ideas_data = _read_json(args.ideas)
    if ideas_data is not None:
        if not isinstance(ideas_data, list):
            raise InvalidRequestError(f"{args.ideas} must hold a JSON array of ideas")
        try:
            ideas = [VideoIdea.model_validate(idea) for idea in ideas_data]
        except ValidationError as e:
            raise InvalidRequestError(f"Invalid idea in {args.ideas}", {"errors": e.error_count()})
    else:
        ideas = await orchestrator.generate(GenerationRequest.build(
            step=PipelineStep.IDEA,
            profile_id=args.profile,
            language=args.language,
            topic=args.topic,
            credentials=keys,
        ))

    if args.select:
        indices = _parse_indices(args.select)
        selected_ids = [idea.id for i, idea in enumerate(ideas) if i in indices]
    else:
        selected_ids = [idea.id for idea in ideas]

    def on_update(item) -> None:
        logger.info(f"[{item.status.value}] {item.idea_title} ({item.progress}%)")

    pipeline = FactoryPipeline(
        orchestrator,
        args.profile,
        keys,
        topic=args.topic,
        language=args.language,
        rate_limits=config.rate_limits,
        on_update=on_update,
    )
    queue = await pipeline.run(ideas, selected_ids)
    _dump([item.to_dict() for item in queue])


async def run_validate_keys(keys: List[str]) -> None:
    from videlix.api_keys.validator import validate_multiple_keys

    results = await validate_multiple_keys(keys, GeminiProvider())
    _dump({name: [r.to_dict() for r in group] for name, group in results.items()})


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the Videlix CLI."""
    args = build_parser().parse_args(argv)

    ensure_env_loaded()
    config = load_config(Path(args.config) if args.config else None)

    if args.debug:
        log_level = LogLevel.DEBUG
    else:
        log_level = LogLevel[config.log_level] if config.log_level in LogLevel.__members__ else LogLevel.INFO
    setup_logging(level=log_level, log_file=args.log_file, verbose=args.verbose)
    logger = get_logger("main")

    if args.command == "profiles":
        _dump(list_builtin_profiles())
        return 0

    keys = args.api_key or get_api_keys()

    try:
        if args.command == "generate":
            asyncio.run(run_generate(args, config, keys))
        elif args.command == "factory":
            asyncio.run(run_factory(args, config, keys))
        elif args.command == "validate-keys":
            asyncio.run(run_validate_keys(keys))
    except CallerError as e:
        logger.error(str(e))
        return 2
    except VidelixError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
