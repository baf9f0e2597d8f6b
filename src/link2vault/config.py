"""Configuration loading and validation."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigError
from .models import TagGroup

PROVIDERS = ("claude", "openai", "openrouter")
DETAIL_LEVELS = ("brief", "standard", "detailed")
ORGANIZATIONS = ("para", "custom")

DEFAULT_VAULT_URL = "http://localhost:27123"
DEFAULT_CONCURRENCY = 5


@dataclass
class Config:
    """Application configuration."""

    vault_url: str = DEFAULT_VAULT_URL
    vault_api_key: str = ""
    llm_provider: str = "claude"
    anthropic_api_key: str = ""
    openai_api_key: str = ""
    openrouter_api_key: str = ""
    firecrawl_api_key: str = ""
    model: str = ""
    summary_detail: str = "standard"
    default_folder: str = "Inbox"
    vault_organization: str = "custom"
    tag_groups: tuple[TagGroup, ...] = ()
    concurrency: int = DEFAULT_CONCURRENCY
    state_dir: Path = field(default_factory=lambda: Path.home() / ".link2vault")
    verbose: bool = False

    @property
    def default_model(self) -> str:
        if self.model:
            return self.model
        if self.llm_provider == "claude":
            return "claude-sonnet-4-20250514"
        if self.llm_provider == "openrouter":
            return "anthropic/claude-sonnet-4"
        return "gpt-4o"

    @property
    def llm_api_key(self) -> str:
        return {
            "claude": self.anthropic_api_key,
            "openai": self.openai_api_key,
            "openrouter": self.openrouter_api_key,
        }.get(self.llm_provider, "")

    def validate(self) -> None:
        """Validate required configuration."""
        if self.llm_provider not in PROVIDERS:
            raise ConfigError(
                f"Unknown LLM provider: {self.llm_provider}. "
                f"Use one of: {', '.join(PROVIDERS)}."
            )
        if not self.llm_api_key:
            env_name = {
                "claude": "ANTHROPIC_API_KEY",
                "openai": "OPENAI_API_KEY",
                "openrouter": "OPENROUTER_API_KEY",
            }[self.llm_provider]
            raise ConfigError(
                f"{env_name} is required when using the {self.llm_provider} provider."
            )
        if not self.vault_api_key:
            raise ConfigError(
                "OBSIDIAN_API_KEY is required. Copy it from the Local REST API plugin settings."
            )
        if not self.firecrawl_api_key:
            raise ConfigError(
                "FIRECRAWL_API_KEY is required. Set it in .env or environment."
            )
        if self.summary_detail not in DETAIL_LEVELS:
            raise ConfigError(
                f"Unknown summary detail: {self.summary_detail}. "
                f"Use one of: {', '.join(DETAIL_LEVELS)}."
            )
        if self.vault_organization not in ORGANIZATIONS:
            raise ConfigError(
                f"Unknown vault organization: {self.vault_organization}. Use 'para' or 'custom'."
            )
        if self.concurrency < 1:
            raise ConfigError("concurrency must be at least 1.")


def load_tag_groups(path: str) -> tuple[TagGroup, ...]:
    """Read tag groups from a JSON object of group name -> list of tags."""
    try:
        data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read tag groups from {path}: {e}") from e

    if not isinstance(data, dict) or not all(
        isinstance(tags, list) for tags in data.values()
    ):
        raise ConfigError(
            f"Tag groups file {path} must map group names to lists of tags."
        )
    return tuple(
        TagGroup(name=name, tags=tuple(str(t) for t in tags))
        for name, tags in data.items()
    )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}.") from e


def load_config(
    vault_url: Optional[str] = None,
    provider: Optional[str] = None,
    model: Optional[str] = None,
    concurrency: Optional[int] = None,
    verbose: bool = False,
) -> Config:
    """Load config from .env and apply CLI overrides."""
    load_dotenv()

    tag_groups_file = os.getenv("TAG_GROUPS_FILE", "")
    state_dir = os.getenv("LINK2VAULT_STATE_DIR", "")

    config = Config(
        vault_url=vault_url or os.getenv("OBSIDIAN_VAULT_URL", DEFAULT_VAULT_URL),
        vault_api_key=os.getenv("OBSIDIAN_API_KEY", ""),
        llm_provider=provider or os.getenv("LLM_PROVIDER", "claude"),
        anthropic_api_key=os.getenv("ANTHROPIC_API_KEY", ""),
        openai_api_key=os.getenv("OPENAI_API_KEY", ""),
        openrouter_api_key=os.getenv("OPENROUTER_API_KEY", ""),
        firecrawl_api_key=os.getenv("FIRECRAWL_API_KEY", ""),
        model=model or os.getenv("LINK2VAULT_MODEL", ""),
        summary_detail=os.getenv("SUMMARY_DETAIL", "standard"),
        default_folder=os.getenv("DEFAULT_FOLDER", "Inbox"),
        vault_organization=os.getenv("VAULT_ORGANIZATION", "custom"),
        tag_groups=load_tag_groups(tag_groups_file) if tag_groups_file else (),
        concurrency=(
            concurrency
            if concurrency is not None
            else _int_env("LINK2VAULT_CONCURRENCY", DEFAULT_CONCURRENCY)
        ),
        state_dir=Path(state_dir).expanduser() if state_dir else Path.home() / ".link2vault",
        verbose=verbose,
    )

    config.validate()
    return config
