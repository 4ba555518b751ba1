"""LLM clients with error handling.

- GenerationClient: calls the ``/api/generate`` endpoint used for answers
- OllamaClient: talks to Ollama and backs the ``/api/generate`` proxy route
"""
import httpx
from typing import List, Dict, Optional
import structlog

from docqa import config
from docqa.errors import GenerationFailed

logger = structlog.get_logger()


class GenerationClient:
    """Async client for the chat-style ``/api/generate`` endpoint."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the generation client.

        Args:
            base_url: Base URL serving /api/generate (defaults to config.GENERATION_BASE_URL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = (base_url or config.GENERATION_BASE_URL).rstrip("/")
        self.timeout = timeout or config.GENERATION_TIMEOUT
        self.transport = transport

    async def generate(
        self,
        messages: List[Dict[str, str]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Request a completion and return its text.

        Args:
            messages: List of message dicts with 'role' and 'content'
            temperature: Sampling temperature (defaults to config)
            max_tokens: Maximum tokens to generate (defaults to config)

        Returns:
            The trimmed content of the first choice

        Raises:
            GenerationFailed: On transport errors, HTTP errors or malformed payloads
        """
        payload = {
            "messages": messages,
            "temperature": config.GENERATION_TEMPERATURE if temperature is None else temperature,
            "max_tokens": max_tokens or config.GENERATION_MAX_TOKENS,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                logger.info(
                    "generation_request",
                    base_url=self.base_url,
                    message_count=len(messages),
                )

                response = await client.post(f"{self.base_url}/api/generate", json=payload)
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                "generation_http_error",
                error=str(e),
                status_code=e.response.status_code,
            )
            raise GenerationFailed("Failed to generate answer from AI model") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.error("generation_request_failed", error=str(e), error_type=type(e).__name__)
            raise GenerationFailed("Failed to generate answer from AI model") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            logger.error("generation_malformed_response", response_preview=str(data)[:200])
            raise GenerationFailed("Malformed response from AI model") from e

        if not isinstance(content, str):
            logger.error("generation_malformed_response", response_preview=str(data)[:200])
            raise GenerationFailed("Malformed response from AI model")

        logger.info("generation_response", response_length=len(content))
        return content.strip()


class OllamaClient:
    """Async client for interacting with Ollama API."""

    def __init__(
        self,
        base_url: str = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Ollama client.

        Args:
            base_url: Ollama API base URL (defaults to config.OLLAMA_BASE_URL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url or config.OLLAMA_BASE_URL
        self.timeout = timeout
        self.transport = transport

    async def chat(
        self,
        messages: List[Dict[str, str]],
        model: str = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Dict:
        """Send chat completion request to Ollama.

        Args:
            messages: List of message dicts with 'role' and 'content'
            model: Model to use (defaults to config.CHAT_MODEL)
            temperature: Sampling temperature (0.0-2.0)
            max_tokens: Maximum number of tokens to generate

        Returns:
            Response dict with 'message' containing 'content'

        Raises:
            httpx.HTTPError: On API errors
            httpx.ConnectError: If Ollama service is unavailable
        """
        model = model or config.CHAT_MODEL

        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
        }

        options = {}
        if temperature is not None:
            options["temperature"] = temperature
        if max_tokens is not None:
            options["num_predict"] = max_tokens
        if options:
            payload["options"] = options

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                logger.info(
                    "ollama_chat_request",
                    model=model,
                    message_count=len(messages),
                )

                response = await client.post(
                    f"{self.base_url}/api/chat",
                    json=payload,
                )
                response.raise_for_status()

                data = response.json()

                logger.info(
                    "ollama_chat_response",
                    model=model,
                    response_length=len(data.get("message", {}).get("content", "")),
                )

                return data

        except httpx.ConnectError as e:
            logger.error("ollama_connection_error", error=str(e), base_url=self.base_url)
            raise
        except httpx.HTTPError as e:
            logger.error("ollama_http_error", error=str(e), status_code=getattr(getattr(e, "response", None), "status_code", None))
            raise

    async def list_models(self) -> List[str]:
        """List all available Ollama models.

        Returns:
            List of model names

        Raises:
            httpx.HTTPError: On API errors
        """
        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self.transport) as client:
                response = await client.get(f"{self.base_url}/api/tags")
                response.raise_for_status()
                data = response.json()
                return [m["name"] for m in data.get("models", [])]
        except httpx.HTTPError as e:
            logger.error("ollama_list_models_error", error=str(e))
            raise


# Global client instance
ollama_client = OllamaClient()
