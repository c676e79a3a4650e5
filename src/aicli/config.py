"""Configuration management for the ai CLI.

Parses aicli.toml files with support for:
- LLM provider configuration
- Context budget ceilings
- CLI defaults

Example aicli.toml structure:

    [cli]
    provider = "local"
    system = "You are a concise assistant."
    timeout_sec = 60

    [llm.local]
    api_base = "http://localhost:8000/v1"
    model = "qwen2.5-0.5b-instruct"
    context_window = 4096

    [context]
    history = 2048
    system = 500
    prompt = 1000
    response = 548

Values may reference environment variables as ${VAR} or $VAR. Command-line
flags override everything read here.
"""

from __future__ import annotations

import logging
import os
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from platformdirs import user_config_dir

from .context.budget import MAX_CONTEXT_TOKENS, TokenBudget
from .errors import InvalidInputError

if sys.version_info >= (3, 11):
    import tomllib as toml  # type: ignore
else:
    import tomli as toml  # type: ignore

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "aicli.toml"


def _load_env_file(env_path: Path) -> None:
    """Load environment variables from .env file."""
    if not env_path.exists():
        return

    try:
        with open(env_path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if not line or line.startswith("#"):
                    continue

                if "=" in line:
                    key, _, value = line.partition("=")
                    key = key.strip()
                    value = value.strip()

                    if value and value[0] in ('"', "'") and value[-1] == value[0]:
                        value = value[1:-1]

                    # Only set if not already in environment
                    if key and key not in os.environ:
                        os.environ[key] = value
    except OSError as e:
        logger.warning("[aicli.config] Failed to load .env file %s: %s", env_path, e)


def _expand_env_vars(value: Any) -> Any:
    """Recursively expand ${VAR} and $VAR environment variable references."""
    if isinstance(value, str):

        def replace_var(match):
            var_name = match.group(1) or match.group(2)
            return os.environ.get(var_name, match.group(0))

        pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
        return re.sub(pattern, replace_var, value)
    elif isinstance(value, dict):
        return {k: _expand_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_expand_env_vars(item) for item in value]
    else:
        return value


@dataclass
class LLMProviderConfig:
    """LLM provider configuration."""

    name: str  # e.g., "local", "openai", "deepseek"
    api_key: Optional[str] = None
    api_base: Optional[str] = None
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: float = 0.7
    timeout_sec: int = 60
    context_window: int = MAX_CONTEXT_TOKENS


@dataclass
class CLIDefaults:
    """Defaults for command-line options."""

    provider: str = "local"
    system: Optional[str] = None
    timeout_sec: Optional[int] = None  # None: use the provider's timeout


@dataclass
class ProjectConfig:
    """Complete aicli.toml configuration."""

    cli: CLIDefaults = field(default_factory=CLIDefaults)
    budget: TokenBudget = field(default_factory=TokenBudget)
    # True when [context] sets total; otherwise it follows the provider's context_window
    budget_total_set: bool = False

    # LLM providers (key = provider name, value = config)
    llm_providers: dict[str, LLMProviderConfig] = field(default_factory=dict)

    source: Optional[Path] = None

    @classmethod
    def load(cls, path: Path = Path(CONFIG_FILENAME)) -> ProjectConfig:
        """Load configuration from an aicli.toml file.

        Loads the first .env file found next to the config file or in one of
        its parent directories, then expands ${VAR} references.

        Raises:
            InvalidInputError: If the file cannot be parsed
        """
        if not path.exists():
            return cls()

        current = path.resolve().parent
        while True:
            env_path = current / ".env"
            if env_path.exists():
                _load_env_file(env_path)
                break
            if current == current.parent:
                break
            current = current.parent

        try:
            raw_data = toml.loads(path.read_text(encoding="utf-8"))
            data = _expand_env_vars(raw_data)
        except (OSError, toml.TOMLDecodeError) as e:
            raise InvalidInputError(f"Failed to parse {path}: {e}") from e

        config = cls(source=path)

        for table in ("cli", "context"):
            if table in data and not isinstance(data[table], dict):
                raise InvalidInputError(f"Invalid {path}: [{table}] must be a table")

        if "cli" in data:
            cli_data = data["cli"]
            config.cli = CLIDefaults(
                provider=cli_data.get("provider", "local"),
                system=cli_data.get("system"),
                timeout_sec=cli_data.get("timeout_sec"),
            )

        if "context" in data:
            ctx_data = data["context"]
            defaults = TokenBudget()
            config.budget = TokenBudget(
                total=ctx_data.get("total", defaults.total),
                system=ctx_data.get("system", defaults.system),
                history=ctx_data.get("history", defaults.history),
                prompt=ctx_data.get("prompt", defaults.prompt),
                response=ctx_data.get("response", defaults.response),
            )
            config.budget_total_set = "total" in ctx_data

        # LLM providers - expect proper TOML tables
        if "llm" in data:
            for provider_name, provider_data in data["llm"].items():
                if not isinstance(provider_data, dict):
                    logger.warning(
                        "[aicli.config] Ignoring [llm.%s]: expected a table", provider_name
                    )
                    continue

                config.llm_providers[provider_name] = LLMProviderConfig(
                    name=provider_name,
                    api_key=provider_data.get("api_key"),
                    api_base=provider_data.get("api_base"),
                    model=provider_data.get("model"),
                    max_tokens=provider_data.get("max_tokens"),
                    temperature=provider_data.get("temperature", 0.7),
                    timeout_sec=provider_data.get("timeout_sec", 60),
                    context_window=provider_data.get("context_window", MAX_CONTEXT_TOKENS),
                )

        logger.debug("[aicli.config] Loaded %s", path)
        return config


def user_config_path() -> Path:
    """Per-user config file, e.g. ~/.config/aicli/aicli.toml on Linux."""
    return Path(user_config_dir("aicli")) / CONFIG_FILENAME


def load_project_config(start_dir: Path = Path(".")) -> ProjectConfig:
    """Load configuration, searching up from start_dir.

    Falls back to the per-user config file, then to defaults.
    """
    current = start_dir.resolve()
    while True:
        config_path = current / CONFIG_FILENAME
        if config_path.exists():
            return ProjectConfig.load(config_path)
        if current == current.parent:
            break
        current = current.parent

    user_path = user_config_path()
    if user_path.exists():
        return ProjectConfig.load(user_path)

    # No config found, return defaults
    return ProjectConfig()


__all__ = [
    "CONFIG_FILENAME",
    "LLMProviderConfig",
    "CLIDefaults",
    "ProjectConfig",
    "user_config_path",
    "load_project_config",
]
