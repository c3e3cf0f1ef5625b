"""Agent card for the doctor search agent."""

from __future__ import annotations

from collections.abc import Mapping

from .config import Settings
from .schemas import AgentCapabilities, AgentCard, AgentInterface, AgentSkill

AGENT_CARD_PATH = "/.well-known/agent-card.json"
LEGACY_AGENT_CARD_PATH = "/.well-known/agent.json"

JSONRPC_PATH = "/a2a"
REST_PATH = "/a2a/rest"

SEARCH_SKILL = AgentSkill(
    id="search-doctors",
    name="Search Doctors",
    description=(
        "Search for doctors in the HealthyLinkx directory by zipcode, last name, "
        "and optionally specialty and gender."
    ),
    tags=["healthcare", "doctor", "search", "directory"],
    examples=[
        "Find doctors named Smith in 10001",
        "Search for female doctors with specialty Cardiology named Johnson in 90210",
        "Find doctors in zipcode 12345",
    ],
    input_modes=["text", "data"],
    output_modes=["text", "data"],
)


def resolve_base_url(settings: Settings, headers: Mapping[str, str], scheme: str = "https") -> str:
    """Work out the public base URL for the card.

    A configured public base URL always wins. Otherwise the URL is derived
    from the request so the card points back at whatever host served it.
    """
    if settings.public_base_url:
        return settings.public_base_url.rstrip("/")

    host = headers.get("x-forwarded-host") or headers.get("host")
    if not host:
        return f"http://localhost:{settings.api_port}"
    proto = headers.get("x-forwarded-proto") or scheme
    return f"{proto.split(',')[0].strip()}://{host}"


def build_agent_card(base_url: str, settings: Settings) -> AgentCard:
    """Build the card advertising the JSON-RPC and REST endpoints under ``base_url``."""
    base_url = base_url.rstrip("/")
    return AgentCard(
        name=settings.agent_name,
        description=settings.agent_description,
        version=settings.agent_version,
        url=f"{base_url}{JSONRPC_PATH}",
        preferred_transport="JSONRPC",
        additional_interfaces=[
            AgentInterface(url=f"{base_url}{JSONRPC_PATH}", transport="JSONRPC"),
            AgentInterface(url=f"{base_url}{REST_PATH}", transport="HTTP+JSON"),
        ],
        capabilities=AgentCapabilities(
            streaming=False,
            push_notifications=False,
            state_transition_history=True,
        ),
        skills=[SEARCH_SKILL],
    )
