"""Deploy the agent as an AWS Lambda function behind a Function URL.

Creates (or reuses) the execution role, creates or updates the function,
provisions a public Function URL and points the agent card at it through
the ``A2A_PUBLIC_BASE_URL`` environment variable.
"""

from __future__ import annotations

import io
import json
import logging
import os
import time
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import Any

import boto3
from botocore.exceptions import ClientError

from healthylinkx_a2a.config import Settings

logger = logging.getLogger(__name__)

LAMBDA_TRUST_POLICY = {
    "Version": "2012-10-17",
    "Statement": [
        {
            "Effect": "Allow",
            "Principal": {"Service": "lambda.amazonaws.com"},
            "Action": "sts:AssumeRole",
        }
    ],
}
BASIC_EXECUTION_POLICY = "arn:aws:iam::aws:policy/service-role/AWSLambdaBasicExecutionRole"

FUNCTION_URL_CORS = {
    "AllowCredentials": True,
    "AllowHeaders": ["*"],
    "AllowMethods": ["*"],
    "AllowOrigins": ["*"],
    "ExposeHeaders": ["*"],
    "MaxAge": 86400,
}
URL_PERMISSION_STATEMENT_ID = "FunctionURLAllowPublicAccess"

# Seconds to let a freshly created role propagate through IAM
ROLE_PROPAGATION_DELAY = 10.0

READY_DEADLINE = 90.0
READY_INITIAL_DELAY = 0.75
READY_BACKOFF = 1.4
READY_MAX_DELAY = 5.0

CONFLICT_MAX_ATTEMPTS = 12
CONFLICT_INITIAL_DELAY = 0.75
CONFLICT_BACKOFF = 1.5
CONFLICT_MAX_DELAY = 7.0

_SKIP_DIRS = {"__pycache__", ".git", ".pytest_cache"}


def error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


class LambdaBusyError(RuntimeError):
    """The function stayed busy for every retry attempt."""


class LambdaDeployer:
    """Deploys and removes the agent's Lambda function.

    Args:
        settings: Application settings; deployment options come from
            ``settings.deploy``.
        lambda_client: boto3 Lambda client. Created from the configured
            region if omitted.
        iam_client: boto3 IAM client. Created if omitted.
        sleep: Sleep function, replaceable in tests.
        clock: Monotonic clock, replaceable in tests.
    """

    def __init__(
        self,
        settings: Settings,
        lambda_client: Any = None,
        iam_client: Any = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self.config = settings.deploy
        self.function_name = self.config.function_name
        self.role_name = self.config.role_name
        self.lambda_client = lambda_client or boto3.client("lambda", region_name=self.config.region)
        self.iam_client = iam_client or boto3.client("iam", region_name=self.config.region)
        self._sleep = sleep
        self._clock = clock

    def ensure_role(self) -> str:
        """Return the ARN of the execution role, creating it if needed."""
        try:
            role = self.iam_client.get_role(RoleName=self.role_name)["Role"]
            logger.info(f"Using existing role: {self.role_name}")
            return role["Arn"]
        except ClientError as e:
            if error_code(e) != "NoSuchEntity":
                raise

        logger.info(f"Creating role: {self.role_name}")
        role = self.iam_client.create_role(
            RoleName=self.role_name,
            AssumeRolePolicyDocument=json.dumps(LAMBDA_TRUST_POLICY),
        )["Role"]
        self.iam_client.attach_role_policy(RoleName=self.role_name, PolicyArn=BASIC_EXECUTION_POLICY)

        # Lambda rejects roles that IAM has not finished propagating
        self._sleep(ROLE_PROPAGATION_DELAY)
        return role["Arn"]

    def function_environment(self, public_base_url: str | None = None) -> dict[str, str]:
        """Environment variables the deployed function needs to reach the directory.

        Unset optional settings are left out. The fixture path is local to the
        build machine and is never forwarded.
        """
        settings = self.settings
        variables = {
            "DOCTOR_SEARCH_URL": settings.doctor_search_url,
            "DOCTOR_SEARCH_API_KEY": settings.doctor_search_api_key,
            "DOCTOR_SEARCH_TIMEOUT": str(settings.doctor_search_timeout),
            "SEARCH_REQUIRED_FIELDS": settings.search_required_fields.value,
            "ALLOW_CANCEL_TERMINAL_TASKS": str(settings.allow_cancel_terminal_tasks).lower(),
            "LOG_LEVEL": settings.log_level,
            "A2A_PUBLIC_BASE_URL": public_base_url,
        }
        if not settings.doctor_search_url:
            logger.warning("DOCTOR_SEARCH_URL is not set; the deployed agent will not be able to search")
        return {name: value for name, value in variables.items() if value}

    @staticmethod
    def build_archive(source_dir: str | Path) -> bytes:
        """Zip a directory tree (package plus vendored dependencies) in memory.

        Raises:
            FileNotFoundError: If the directory does not exist.
        """
        source_dir = Path(source_dir)
        if not source_dir.is_dir():
            raise FileNotFoundError(f"Source directory not found: {source_dir}")

        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
            for root, dirs, files in os.walk(source_dir):
                dirs[:] = sorted(d for d in dirs if d not in _SKIP_DIRS)
                for name in sorted(files):
                    if name.endswith(".pyc"):
                        continue
                    path = Path(root) / name
                    archive.write(path, path.relative_to(source_dir).as_posix())
        return buffer.getvalue()

    def wait_until_ready(self) -> bool:
        """Poll until the function is Active and its last update succeeded.

        Read errors are treated as transient. Gives up after
        ``READY_DEADLINE`` seconds and returns False instead of raising, so
        the caller can proceed.
        """
        deadline = self._clock() + READY_DEADLINE
        delay = READY_INITIAL_DELAY
        while self._clock() < deadline:
            try:
                cfg = self.lambda_client.get_function_configuration(FunctionName=self.function_name)
                last_update = cfg.get("LastUpdateStatus")
                if cfg.get("State") == "Active" and last_update in (None, "Successful"):
                    return True
            except ClientError as e:
                logger.debug(f"Could not read function configuration: {e}")
            self._sleep(delay)
            delay = min(READY_MAX_DELAY, delay * READY_BACKOFF)

        logger.warning("Timed out waiting for Lambda to become ready; proceeding anyway.")
        return False

    def send_with_conflict_retry(self, call: Callable[[], Any], label: str) -> Any:
        """Run ``call`` once the function is ready, retrying while an update is in progress.

        Only ``ResourceConflictException`` is retried.

        Raises:
            LambdaBusyError: If every attempt hit a conflict.
        """
        delay = CONFLICT_INITIAL_DELAY
        for _ in range(CONFLICT_MAX_ATTEMPTS):
            self.wait_until_ready()
            try:
                return call()
            except ClientError as e:
                if error_code(e) != "ResourceConflictException":
                    raise
            logger.info(f"{label} delayed (update in progress). Retrying in {delay:.2f}s...")
            self._sleep(delay)
            delay = min(CONFLICT_MAX_DELAY, delay * CONFLICT_BACKOFF)

        raise LambdaBusyError(f"{label} failed: Lambda remained busy (ResourceConflictException)")

    def create_or_update_function(self, zip_bytes: bytes, role_arn: str) -> None:
        try:
            self.lambda_client.create_function(
                FunctionName=self.function_name,
                Runtime=self.config.runtime,
                Role=role_arn,
                Handler=self.config.handler,
                Code={"ZipFile": zip_bytes},
                Timeout=self.config.timeout,
                MemorySize=self.config.memory_size,
                Environment={"Variables": self.function_environment()},
            )
            logger.info("Lambda function created successfully")
        except ClientError as e:
            if error_code(e) != "ResourceConflictException":
                raise
            logger.info("Lambda function already exists. Updating code...")
            self.send_with_conflict_retry(
                lambda: self.lambda_client.update_function_code(
                    FunctionName=self.function_name, ZipFile=zip_bytes
                ),
                "UpdateFunctionCode",
            )
            logger.info("Lambda function code updated successfully")

    def ensure_function_url(self) -> str:
        """Create or update the public Function URL and return it."""
        try:
            self.lambda_client.get_function_url_config(FunctionName=self.function_name)
        except ClientError as e:
            if error_code(e) != "ResourceNotFoundException":
                raise
            response = self.lambda_client.create_function_url_config(
                FunctionName=self.function_name, AuthType="NONE", Cors=FUNCTION_URL_CORS
            )
            logger.info(f"Function URL created: {response['FunctionUrl']}")
        else:
            response = self.lambda_client.update_function_url_config(
                FunctionName=self.function_name, AuthType="NONE", Cors=FUNCTION_URL_CORS
            )
            logger.info(f"Function URL updated: {response['FunctionUrl']}")

        self.add_function_url_permission()
        return response["FunctionUrl"]

    def add_function_url_permission(self) -> None:
        try:
            self.lambda_client.add_permission(
                FunctionName=self.function_name,
                StatementId=URL_PERMISSION_STATEMENT_ID,
                Action="lambda:InvokeFunctionUrl",
                Principal="*",
                FunctionUrlAuthType="NONE",
            )
            logger.info("Function URL public access permission added successfully")
        except ClientError as e:
            if error_code(e) != "ResourceConflictException":
                raise
            logger.info("Function URL permission already exists")

    def save_url(self, function_url: str) -> Path:
        path = Path(self.config.url_file)
        path.write_text(json.dumps({"LAMBDA_FUNCTION_URL": function_url}, indent=2))
        logger.info(f"Lambda url file updated at {path}")
        return path

    def deploy(self, source_dir: str | Path) -> str:
        """Deploy the function from ``source_dir`` and return its public base URL."""
        zip_bytes = self.build_archive(source_dir)
        logger.info(f"Built deployment archive ({len(zip_bytes)} bytes) from {source_dir}")

        role_arn = self.ensure_role()
        self.create_or_update_function(zip_bytes, role_arn)

        # Let the create/update settle before touching configuration
        self.wait_until_ready()

        function_url = self.ensure_function_url()
        self.save_url(function_url)

        base_url = function_url.rstrip("/")
        self.send_with_conflict_retry(
            lambda: self.lambda_client.update_function_configuration(
                FunctionName=self.function_name,
                Environment={"Variables": self.function_environment(public_base_url=base_url)},
            ),
            "UpdateFunctionConfiguration(A2A_PUBLIC_BASE_URL)",
        )
        logger.info(f"Updated env A2A_PUBLIC_BASE_URL={base_url}")
        return base_url

    def remove(self) -> None:
        """Delete the Function URL, the function and the execution role.

        Resources that are already gone are skipped.
        """
        for label, call in (
            ("Function URL", lambda: self.lambda_client.delete_function_url_config(FunctionName=self.function_name)),
            ("Lambda function", lambda: self.lambda_client.delete_function(FunctionName=self.function_name)),
        ):
            try:
                call()
                logger.info(f"{label} deleted")
            except ClientError as e:
                if error_code(e) != "ResourceNotFoundException":
                    raise
                logger.info(f"{label} not found, skipping")

        try:
            attached = self.iam_client.list_attached_role_policies(RoleName=self.role_name)
        except ClientError as e:
            if error_code(e) != "NoSuchEntity":
                raise
            logger.info("Role not found, skipping")
            return

        for policy in attached.get("AttachedPolicies", []):
            self.iam_client.detach_role_policy(RoleName=self.role_name, PolicyArn=policy["PolicyArn"])
        self.iam_client.delete_role(RoleName=self.role_name)
        logger.info(f"Role deleted: {self.role_name}")
