#!/usr/bin/env python3
"""Deployment script for the service CDK application."""

import argparse
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from infrastructure.config.environments import ENVIRONMENTS

_repo_root = Path(__file__).resolve().parents[2]


def run_command(
    command: Sequence[str], *, check: bool = True, env: Optional[Mapping[str, str]] = None
) -> subprocess.CompletedProcess[str]:
    """Execute a subprocess without shell interpolation."""

    printable = " ".join(shlex.quote(part) for part in command)
    print(f"Running: {printable}")

    result = subprocess.run(command, capture_output=True, text=True, env=env, check=False)

    if check and result.returncode != 0:
        print(f"Command failed with return code {result.returncode}")
        if result.stdout:
            print(f"stdout: {result.stdout}")
        if result.stderr:
            print(f"stderr: {result.stderr}")
        sys.exit(result.returncode)

    return result


def context_args(environment: str) -> List[str]:
    """Return the CDK context flags selecting the environment."""
    return ["--context", f"env={environment}"]


def deploy_stacks(environment: str, stacks: Optional[str] = None) -> None:
    """Deploy CDK stacks to the specified environment."""
    print(f"Deploying to environment: {environment}")

    exec_env = dict(os.environ)
    region = ENVIRONMENTS[environment].get("region")
    if region:
        exec_env.setdefault("CDK_DEFAULT_REGION", region)

    # Bootstrap CDK if needed
    print("Checking CDK bootstrap status...")
    run_command(["cdk", "bootstrap", *context_args(environment)], check=False, env=exec_env)

    deploy_cmd = ["cdk", "deploy"]
    if stacks:
        deploy_cmd.extend(shlex.split(stacks))
    else:
        deploy_cmd.append("--all")

    deploy_cmd.extend([*context_args(environment), "--require-approval", "never"])

    run_command(deploy_cmd, env=exec_env)
    print(f"Deployment to {environment} completed successfully!")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy the service pipeline CDK stacks")
    parser.add_argument(
        "--environment", "-e", choices=sorted(ENVIRONMENTS), default="dev", help="Target environment"
    )
    parser.add_argument("--stacks", "-s", help="Specific stacks to deploy (space-separated)")
    parser.add_argument("--skip-install", action="store_true", help="Do not reinstall the project first")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main deployment function."""
    args = build_parser().parse_args(argv)

    if not args.skip_install:
        print("Installing Python dependencies...")
        run_command([sys.executable, "-m", "pip", "install", "-e", str(_repo_root)])

    deploy_stacks(args.environment, args.stacks)


if __name__ == "__main__":
    main()
