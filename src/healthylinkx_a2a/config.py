"""Configuration for the doctor search A2A agent."""

from enum import Enum
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

# Load .env file into environment variables
load_dotenv()


class RequirementPolicy(str, Enum):
    """Which search fields must be present before the directory is queried."""

    ZIPCODE_OR_LASTNAME = "zipcode_or_lastname"
    ZIPCODE_LASTNAME_OR_SPECIALTY = "zipcode_lastname_or_specialty"
    ZIPCODE_AND_LASTNAME = "zipcode_and_lastname"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings can be configured via:
    - Environment variables
    - .env file in the project root
    - Constructor arguments
    """

    # Agent card
    agent_name: str = "Healthylinkx A2A Server"
    agent_version: str = "1.0.0"
    agent_description: str = (
        "Search for doctors in the HealthyLinkx directory using natural language "
        "queries. Supports filtering by name, zipcode, specialty, and gender."
    )

    # Public base URL advertised in the agent card. When unset the card is
    # derived from the request host.
    public_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("A2A_PUBLIC_BASE_URL", "PUBLIC_BASE_URL"),
    )

    # Logging configuration
    log_level: str = "INFO"
    debug: bool = False

    # Search behaviour
    search_required_fields: RequirementPolicy = RequirementPolicy.ZIPCODE_OR_LASTNAME
    allow_cancel_terminal_tasks: bool = True

    # Doctor directory backend
    doctor_search_url: str | None = None
    doctor_search_api_key: str | None = None
    doctor_search_timeout: float = 10.0
    doctor_search_fixture: Path | None = None

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: list[str] = ["*"]

    # Deployment configuration
    class DeploySettings(BaseSettings):
        """Configuration for the Lambda deployment tooling."""

        function_name: str = "healthylinkx-a2a"
        role_name: str = "healthylinkx-a2a-role"
        region: str = Field(
            default="us-east-1",
            validation_alias=AliasChoices("DEPLOY_REGION", "AWS_REGION"),
        )
        runtime: str = "python3.12"
        handler: str = "healthylinkx_a2a.lambda_handler.handler"
        timeout: int = 30
        memory_size: int = 128
        url_file: Path = Path("lambdaurl.json")

        class Config:
            """Pydantic settings configuration."""

            env_prefix = "DEPLOY_"
            populate_by_name = True

    deploy: DeploySettings = DeploySettings()

    class Config:
        """Pydantic settings configuration."""

        env_file = ".env"
        case_sensitive = False
        extra = "ignore"  # Ignore extra environment variables
        populate_by_name = True


# Global settings instance
settings = Settings()
