"""Main entry point for the pages pipeline runner."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from pages_pipeline.config import configure_logging, get_logger, settings
from pages_pipeline.errors import PipelineError
from pages_pipeline.models import TriggerEvent
from pages_pipeline.services import PipelineRunner
from pages_pipeline.workflows import build_deploy_doc_workflow, load_workflow

logger = get_logger(__name__)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Run the documentation pages workflow for a trigger event"
    )
    parser.add_argument("--event", default="push", help="Event type (default: push)")
    parser.add_argument(
        "--ref",
        required=True,
        help="Branch ref the event was raised for, e.g. refs/heads/main",
    )
    parser.add_argument("--sha", help="Commit SHA the event points at")
    parser.add_argument(
        "--workflow",
        type=Path,
        help="JSON workflow file; the built-in deploy-doc workflow when omitted",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main async function to run the pipeline.

    Prints the pipeline result as JSON. Returns 0 when the run succeeded
    or was skipped, 1 when it failed or could not be set up.
    """
    args = parse_args(argv)

    logger.info(
        "Starting pages pipeline",
        environment=settings.environment,
        event_name=args.event,
        ref=args.ref,
    )

    missing = settings.validate_pages_target()
    if missing:
        logger.error("Pages configuration incomplete", missing=missing)
        print(json.dumps({"success": False, "error": f"Missing: {', '.join(missing)}"}))
        return 1

    try:
        workflow = load_workflow(args.workflow) if args.workflow else build_deploy_doc_workflow(settings)
        runner = PipelineRunner(workflow, settings)
        result = await runner.run_pipeline(
            TriggerEvent(event_name=args.event, ref=args.ref, sha=args.sha)
        )
    except PipelineError as e:
        logger.error("Pipeline setup failed", error=str(e))
        print(json.dumps({"success": False, "error": str(e)}))
        return 1
    except Exception as e:
        logger.error(
            "Fatal error in main application",
            error=str(e),
            exc_info=True,
        )
        return 1

    print(result.model_dump_json(indent=2))
    logger.info(
        "Pipeline finished",
        run_id=result.run_id,
        state=result.state.value,
        page_url=result.page_url,
    )
    return result.exit_code


def run_sync(argv: Optional[Sequence[str]] = None) -> int:
    """Run the async main function synchronously.

    Returns:
        Exit code from main()
    """
    return asyncio.run(main(argv))


def cli() -> None:
    configure_logging()
    sys.exit(run_sync())


if __name__ == "__main__":
    cli()
