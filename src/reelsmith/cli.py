"""Command line entry points: ``serve`` the HTTP API or ``run`` a single job."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from .config import PipelineConfig
from .logging_setup import configure_logging
from .orchestrator import JobOrchestrator
from .queue_runner import new_job_id
from .schemas import GenerationRequest, UploadFlags

LOG = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="reelsmith", description="Turn a text prompt into a narrated video")
    parser.add_argument("--log-level", default=None, help="Logging level (default: REELSMITH_LOG_LEVEL or INFO)")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=3000)
    serve.add_argument("--config", type=Path, default=None, help="YAML overrides for the pipeline config")

    run = sub.add_parser("run", help="Generate one video synchronously")
    run.add_argument("--prompt", required=True)
    run.add_argument("--youtube", action="store_true", help="Upload the result to YouTube")
    run.add_argument("--tiktok", action="store_true", help="Upload the result to TikTok")
    run.add_argument("--title", default=None)
    run.add_argument("--description", default=None)
    run.add_argument("--tags", default=None, help="Comma-separated tags")
    run.add_argument("--config", type=Path, default=None, help="YAML overrides for the pipeline config")
    return parser


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .app import create_app

    config = PipelineConfig.load(args.config)
    uvicorn.run(create_app(config=config), host=args.host, port=args.port)
    return 0


def _run(args: argparse.Namespace) -> int:
    config = PipelineConfig.load(args.config)
    try:
        request = GenerationRequest(
            prompt=args.prompt,
            upload=UploadFlags(to_youtube=args.youtube, to_tiktok=args.tiktok),
            title=args.title,
            description=args.description,
            tags_csv=args.tags,
        )
    except ValidationError as exc:
        detail = [err["msg"] for err in exc.errors()]
        print(json.dumps({"success": False, "error": "Invalid request", "detail": detail}), file=sys.stderr)
        return 1
    orchestrator = JobOrchestrator.from_config(config)
    job_id = new_job_id()
    try:
        result = orchestrator.run(job_id, request, lambda value: LOG.info("Job %s progress: %d%%", job_id, value))
    except Exception as exc:
        print(json.dumps({"success": False, "jobId": job_id, "error": str(exc)}), file=sys.stderr)
        return 1
    print(json.dumps(result.to_wire(), indent=2))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    if args.command == "serve":
        return _serve(args)
    return _run(args)


if __name__ == "__main__":
    raise SystemExit(main())
