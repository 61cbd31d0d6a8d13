"""Application entrypoint — start the API server or classify a feature file."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path

import uvicorn
from pydantic import ValidationError

from arousal_engine.config import get_settings
from arousal_engine.logger import setup_logging


async def _classify_file(path: Path) -> dict:
    from arousal_engine.api.schemas import ClassifyRequest, classification_payload
    from arousal_engine.classifier.orchestrator import create_classifier
    from arousal_engine.profile import ChildProfile

    raw = json.loads(path.read_text(encoding="utf-8"))
    req = ClassifyRequest.model_validate(raw)

    classifier = create_classifier()
    if raw.get("profile") is not None:
        classifier.set_child_profile(ChildProfile.model_validate(raw["profile"]))
    try:
        result = await classifier.classify_features(req.pose, req.facial, req.vocal, req.context)
    finally:
        adapter = classifier.disable_external_reasoning()
        if adapter is not None:
            await adapter.close()

    return {
        **classification_payload(result),
        "thresholds": classifier.current_thresholds().model_dump(),
    }


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="arousal-engine",
        description="Multimodal arousal band classification engine.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── serve ─────────────────────────────────────────────────
    serve_parser = sub.add_parser("serve", help="Start the API server.")
    serve_parser.add_argument("--host", default=None)
    serve_parser.add_argument("--port", type=int, default=None)
    serve_parser.add_argument("--reload", action="store_true")

    # ── classify ──────────────────────────────────────────────
    classify_parser = sub.add_parser(
        "classify",
        help="Classify one JSON file of pose/facial/vocal features (and optional profile).",
    )
    classify_parser.add_argument("file", type=Path)

    args = parser.parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    if args.command == "serve":
        uvicorn.run(
            "arousal_engine.api.server:app",
            host=args.host or settings.api_host,
            port=args.port or settings.api_port,
            reload=args.reload,
        )
    elif args.command == "classify":
        try:
            payload = asyncio.run(_classify_file(args.file))
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            sys.exit(2)
        print(json.dumps(payload, indent=2))
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
