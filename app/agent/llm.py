"""
Local LLM client: Ollama HTTP API (/api/generate, /api/tags).

Failures raise ModelUnavailableError so the resolver can move on to the next
tier; nothing here retries.
"""

import logging

import httpx

from app.core.config import MODEL_STATUS_TIMEOUT, MODEL_TIMEOUT, OLLAMA_BASE_URL, OLLAMA_MODEL
from app.core.errors import ModelUnavailableError

logger = logging.getLogger(__name__)


def generate(
    prompt: str,
    model_name: str = OLLAMA_MODEL,
    timeout: float = MODEL_TIMEOUT,
    base_url: str = OLLAMA_BASE_URL,
) -> str:
    """
    Call Ollama /api/generate (non-streaming). Returns the trimmed response text.

    Raises:
        ModelUnavailableError: On transport error or timeout, non-2xx status,
            unparseable body, or an empty response.
    """
    logger.info("[llm:ollama] IN  model=%s prompt_len=%d timeout=%.1f", model_name, len(prompt), timeout)
    logger.debug("[llm:ollama] prompt_sample=%r", prompt[:500] if len(prompt) > 500 else prompt)
    payload = {"model": model_name, "prompt": prompt, "stream": False}
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.post(f"{base_url}/api/generate", json=payload)
    except httpx.TimeoutException as e:
        raise ModelUnavailableError(f"model request timed out after {timeout}s") from e
    except httpx.HTTPError as e:
        raise ModelUnavailableError(f"model request failed: {e}") from e
    if not response.is_success:
        raise ModelUnavailableError(f"model returned {response.status_code}: {response.text[:200]}")
    try:
        data = response.json()
    except ValueError as e:
        raise ModelUnavailableError("model returned a non-JSON body") from e
    out = (data.get("response") or "").strip() if isinstance(data, dict) else ""
    if not out:
        raise ModelUnavailableError("model returned an empty response")
    logger.info("[llm:ollama] OUT response_len=%d", len(out))
    return out


def list_models(timeout: float = MODEL_STATUS_TIMEOUT, base_url: str = OLLAMA_BASE_URL) -> list[str]:
    """
    Return the model names installed on the Ollama server (/api/tags).

    Raises:
        ModelUnavailableError: If the server cannot be reached or answers non-2xx.
    """
    try:
        with httpx.Client(timeout=timeout) as client:
            response = client.get(f"{base_url}/api/tags")
    except httpx.HTTPError as e:
        raise ModelUnavailableError(f"model service unreachable: {e}") from e
    if not response.is_success:
        raise ModelUnavailableError(f"model service returned {response.status_code}")
    try:
        models = response.json().get("models") or []
    except (ValueError, AttributeError) as e:
        raise ModelUnavailableError("model service returned an unexpected body") from e
    names = [m.get("name", "") for m in models if isinstance(m, dict)]
    logger.info("[llm:list_models] OUT models=%s", names)
    return names
