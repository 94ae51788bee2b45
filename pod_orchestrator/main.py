#!/usr/bin/env python3
"""
Main entry point for the pod orchestrator CLI.

Commands:
  list-templates   print the account's private templates
  launch           launch N pods from a template
  terminate        terminate every pod on the account
"""

import sys
import asyncio
import logging
import json
import argparse
from typing import Optional, Sequence

from .logging_config import setup_logging
from .config import Settings, load_env_file, mask_secret
from .errors import BatchError, PodOrchestratorError
from .graphql_client import create_graphql_client
from .catalog import ResourceCatalog
from .batch import default_orchestrator
from .inputs import load_gpu_list, merge_env
from .workflows import CloudType, LaunchRequest, launch_pods, terminate_all_pods

logger = logging.getLogger(__name__)


async def cmd_list_templates(args, settings: Settings) -> None:
    async with create_graphql_client(settings) as client:
        templates = await ResourceCatalog(client).list_templates()
    print(json.dumps([t.raw for t in templates], indent=2))


async def cmd_launch(args, settings: Settings) -> None:
    request = LaunchRequest(
        template_name=args.template,
        count=args.count,
        gpu_type_ids=load_gpu_list(gpu=args.gpu, gpufile=args.gpufile),
        env=merge_env(envfile=args.envfile, inline=args.env),
        cloud_type=CloudType.COMMUNITY if args.community else CloudType.SECURE,
    )
    orchestrator = default_orchestrator(args.concurrency or settings.batch_concurrency)
    async with create_graphql_client(settings) as client:
        report = await launch_pods(client, orchestrator, request)

    print(f"Launched {len(report.result)} pods from template {report.template.name}")
    for pod_id in report.pod_ids:
        print(f"  {pod_id}")


async def cmd_terminate(args, settings: Settings) -> None:
    orchestrator = default_orchestrator(args.concurrency or settings.batch_concurrency)
    async with create_graphql_client(settings) as client:
        report = await terminate_all_pods(
            client, orchestrator,
            on_listed=lambda pods: print(f"Terminating {len(pods)} pods", flush=True),
        )

    gone = report.already_gone
    print(f"Terminated {len(report.result) - len(gone)} pods ({len(gone)} already gone)")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="pod-orchestrator", description="RunPod pod orchestrator")
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list-templates", help="List templates")
    list_parser.set_defaults(handler=cmd_list_templates)

    launch = subparsers.add_parser("launch", help="Launch pods")
    launch.add_argument("--template", required=True, help="Name of the template to launch")
    launch.add_argument("--count", required=True, type=_positive_int, help="Number of pods to launch")
    launch.add_argument(
        "--gpufile",
        help="Path to a file containing a priority list of GPU types to use, one per line "
             "(blanks and # ignored), in order of preference",
    )
    launch.add_argument(
        "--gpu",
        help="GPU types to use, separated by comma, in order of preference; "
             "must be provided if --gpufile is not",
    )
    launch.add_argument(
        "--env",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Additional environment variable to set in the pod, overriding any set via --envfile",
    )
    launch.add_argument(
        "--envfile",
        help="Path to a file containing one KEY=VALUE per line (blanks and # ignored) to set in the pod",
    )
    cloud = launch.add_mutually_exclusive_group()
    cloud.add_argument(
        "--community",
        action="store_true",
        help="Use the community cloud (secure cloud is used by default)",
    )
    cloud.add_argument("--secure", action="store_true", help="Use the secure cloud (default)")
    launch.add_argument("--concurrency", type=_positive_int, help="Maximum in-flight requests")
    launch.set_defaults(handler=cmd_launch)

    terminate = subparsers.add_parser("terminate", help="Terminate pods")
    terminate.add_argument("--concurrency", type=_positive_int, help="Maximum in-flight requests")
    terminate.set_defaults(handler=cmd_terminate)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main entry point with command line argument handling."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # .env may carry LOG_LEVEL/LOG_FORMAT/LOG_FILE, so load it before configuring logging
    load_env_file()
    setup_logging("DEBUG" if args.verbose else None)

    try:
        settings = Settings.from_env(read_env_file=False)
        logger.debug(f"Running {args.command} with api_key={mask_secret(settings.api_key)}")
        asyncio.run(args.handler(args, settings))
    except KeyboardInterrupt:
        logger.info("Stopped by user")
        sys.exit(130)
    except BatchError as e:
        logger.error(f"{e.label} failed for {len(e.result.failed)} of {len(e.result)} pods")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except PodOrchestratorError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        logger.exception(f"{args.command} failed unexpectedly")
        print(f"Error: {type(e).__name__}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
