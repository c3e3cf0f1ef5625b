"""Command line entry point for deploying and removing the Lambda function.

Usage:
    python -m healthylinkx_a2a.deploy deploy --source build/lambda
    python -m healthylinkx_a2a.deploy remove
"""

import argparse
import logging
import sys

from botocore.exceptions import BotoCoreError, ClientError

from ..config import settings
from .deployer import LambdaBusyError, LambdaDeployer

logger = logging.getLogger("healthylinkx_a2a.deploy")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthylinkx_a2a.deploy",
        description="Deploy the Healthylinkx A2A agent to AWS Lambda",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    deploy = subparsers.add_parser("deploy", help="Create or update the function and its URL")
    deploy.add_argument(
        "--source",
        default="build/lambda",
        help="Directory holding the package and its vendored dependencies",
    )

    subparsers.add_parser("remove", help="Delete the function, its URL and its role")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )

    deployer = LambdaDeployer(settings)
    try:
        if args.command == "deploy":
            base_url = deployer.deploy(args.source)
            print(f"Agent card: {base_url}/.well-known/agent-card.json")
        else:
            deployer.remove()
    except (ClientError, BotoCoreError, LambdaBusyError, FileNotFoundError) as e:
        logger.error(f"Error during {args.command}: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
