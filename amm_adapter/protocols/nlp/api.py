"""
Chat Completion API Client

Minimal REST client for an OpenAI-compatible /chat/completions endpoint
with JSON-schema constrained output. One request per call, no retries.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ...errors import CompletionServiceError, ConfigurationError
from ...config import config as global_config

logger = logging.getLogger(__name__)


class CompletionAPI:
    """
    Chat completion client

    Usage:
        api = CompletionAPI()  # OPENAI_API_KEY from environment
        content = api.complete_json(system_prompt, "swap 10 WETH for TEST", "intent", schema)

    Note:
        Requires an API key. Set OPENAI_API_KEY environment variable.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            api_key: Service API key (or set OPENAI_API_KEY env var)
            base_url: API base URL, e.g. https://api.openai.com/v1
            model: Model name
            temperature: Sampling temperature (0 = deterministic)
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        nlp = global_config.nlp
        self._api_key = api_key or nlp.api_key
        self._base_url = (base_url or nlp.base_url).rstrip("/")
        self._model = model or nlp.model
        self._temperature = temperature if temperature is not None else nlp.temperature
        self._timeout = timeout or nlp.timeout
        self._transport = transport
        self._client: Optional[httpx.Client] = None

        if not self._api_key:
            raise ConfigurationError.missing("OPENAI_API_KEY")

    @property
    def model(self) -> str:
        return self._model

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client with auth headers"""
        if self._client is None:
            self._client = httpx.Client(
                timeout=self._timeout,
                headers={
                    "Accept": "application/json",
                    "Authorization": f"Bearer {self._api_key}",
                },
                transport=self._transport,
            )
        return self._client

    def complete_json(
        self,
        system_prompt: str,
        user_text: str,
        schema_name: str,
        schema: Dict[str, Any],
    ) -> str:
        """
        Ask the model for a reply constrained to ``schema``

        Returns:
            Raw JSON text of the first choice

        Raises:
            CompletionServiceError: transport failure, non-2xx status, or a reply without content
        """
        payload = {
            "model": self._model,
            "temperature": self._temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_text},
            ],
            "response_format": {
                "type": "json_schema",
                "json_schema": {"name": schema_name, "schema": schema},
            },
        }

        client = self._get_client()
        url = f"{self._base_url}/chat/completions"

        try:
            response = client.post(url, json=payload)
            response.raise_for_status()
            data = response.json()

        except httpx.HTTPStatusError as e:
            error_msg = f"HTTP {e.response.status_code}"
            try:
                error_data = e.response.json()
                error = error_data.get("error")
                if isinstance(error, dict) and "message" in error:
                    error_msg = error["message"]
                elif error:
                    error_msg = str(error)
            except ValueError:
                error_msg = e.response.text[:500] if e.response.text else error_msg

            logger.warning(f"Completion API error: {error_msg}")
            raise CompletionServiceError(
                f"Completion service error: {error_msg}",
                status_code=e.response.status_code,
                original_error=e,
            ) from e

        except httpx.TimeoutException as e:
            logger.warning("Completion API timeout")
            raise CompletionServiceError.timeout(self._timeout) from e

        except httpx.RequestError as e:
            logger.warning(f"Completion API request error: {e}")
            raise CompletionServiceError(
                f"Completion service request error: {e}",
                original_error=e,
            ) from e

        except ValueError as e:
            raise CompletionServiceError(f"Completion service returned invalid JSON: {e}", original_error=e) from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise CompletionServiceError(f"Unexpected completion response shape: {e}", original_error=e) from e

        if not content:
            refusal = data["choices"][0]["message"].get("refusal")
            raise CompletionServiceError(f"Completion service returned no content{': ' + refusal if refusal else ''}")

        logger.debug(f"Completion reply: {content}")
        return content

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "CompletionAPI":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
