"""Configuration API endpoints"""

from __future__ import annotations

import asyncio
from typing import Any

import aiohttp
from fastapi import APIRouter
from pydantic import BaseModel

from services.config_manager import ConfigManager
from services.llm_service import ANTHROPIC_VERSION

router = APIRouter()

ANTHROPIC_MODELS_URL = "https://api.anthropic.com/v1/models"


class ConfigUpdateRequest(BaseModel):
    """Request to update configuration"""

    model: str | None = None
    maxSteps: int | None = None
    maxTokens: int | None = None
    apiKey: str | None = None


class ConfigResponse(BaseModel):
    """Configuration response"""

    notesDir: str
    apiKey: str
    model: str
    maxSteps: int
    maxTokens: int


class ValidateResponse(BaseModel):
    """Validation response"""

    valid: bool
    message: str
    model: str


def mask_key(key: str) -> str:
    """Keep the first and last four characters of a secret"""
    if not key:
        return ""
    if len(key) <= 8:
        return "*" * len(key)
    return key[:4] + "*" * (len(key) - 8) + key[-4:]


@router.get("", response_model=ConfigResponse)
async def get_config() -> ConfigResponse:
    """Get current configuration"""
    config = ConfigManager.get_instance().get_config()

    return ConfigResponse(
        notesDir=config.get("notesDir", ""),
        apiKey=mask_key(config.get("apiKey", "")),
        model=config.get("model", ""),
        maxSteps=config.get("maxSteps", 20),
        maxTokens=config.get("maxTokens", 8192),
    )


@router.put("")
async def update_config(request: ConfigUpdateRequest) -> dict[str, Any]:
    """Update configuration"""
    updates = request.model_dump(exclude_none=True)

    # A masked key echoed back from GET must not overwrite the real one
    if "*" in updates.get("apiKey", ""):
        updates.pop("apiKey")

    ConfigManager.get_instance().save_config(updates)

    return {"status": "success", "message": "Configuration updated", "updated": sorted(updates)}


async def test_anthropic_api_key(api_key: str) -> tuple[bool, str]:
    """
    Test if an Anthropic API key is valid by listing models.
    Returns (success: bool, message: str)
    """
    headers = {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION}

    try:
        async with aiohttp.ClientSession() as session:
            async with session.get(
                ANTHROPIC_MODELS_URL, headers=headers, timeout=aiohttp.ClientTimeout(total=10)
            ) as response:
                if response.status == 200:
                    return True, "API key is valid"
                elif response.status == 401:
                    return False, "Invalid API key"
                elif response.status == 403:
                    return False, "API key is forbidden or disabled"
                else:
                    return False, f"API validation failed (HTTP {response.status})"
    except asyncio.TimeoutError:
        return False, "Request timed out"
    except aiohttp.ClientError as e:
        return False, f"Network error: {str(e)}"


@router.post("/validate", response_model=ValidateResponse)
async def validate_config() -> ValidateResponse:
    """Validate the configured API key against the Anthropic API"""
    config = ConfigManager.get_instance().get_config()
    model = config.get("model", "")
    api_key = config.get("apiKey")

    if not api_key:
        return ValidateResponse(valid=False, message="ANTHROPIC_API_KEY is not set", model=model)

    valid, message = await test_anthropic_api_key(api_key)
    return ValidateResponse(valid=valid, message=message, model=model)
