"""AWS Lambda deployment tooling."""

from .deployer import LambdaBusyError, LambdaDeployer

__all__ = ["LambdaBusyError", "LambdaDeployer"]
