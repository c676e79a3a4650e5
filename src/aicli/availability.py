"""Availability guard - Fail fast when the backend cannot serve requests."""

from __future__ import annotations

import logging

import httpx

from .errors import ExitCode, UnavailableError
from .llm import LLMProvider

logger = logging.getLogger(__name__)


async def check_availability(provider: LLMProvider) -> None:
    """Verify the backend is reachable and serves the configured model.

    Raises:
        UnavailableError: Backend unreachable (exit 10) or model not
            loaded yet (exit 11)
    """
    base_url = provider.config.base_url
    model = provider.config.model

    try:
        models = await provider.list_models()
    except httpx.TimeoutException as e:
        raise UnavailableError(f"Generation backend at {base_url} timed out.") from e
    except httpx.HTTPStatusError as e:
        if e.response.status_code in (401, 403):
            raise UnavailableError(
                f"Generation backend at {base_url} rejected the API key."
            ) from e
        # Some servers do not implement /models; reachable is good enough
        logger.debug("[aicli] /models returned HTTP %d, skipping model check", e.response.status_code)
        return
    except httpx.HTTPError as e:
        raise UnavailableError(
            f"Generation backend is unavailable at {base_url}. Is the model server running?"
        ) from e

    if models and model not in models:
        raise UnavailableError(
            f"Model '{model}' is not loaded yet. Try again in a few minutes.",
            exit_code=ExitCode.ASSETS_NOT_READY,
        )

    logger.debug("[aicli] Backend available: %s (%s)", base_url, model)


__all__ = ["check_availability"]
