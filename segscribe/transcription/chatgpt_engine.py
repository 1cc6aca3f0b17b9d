"""ChatGPT summarization engine that streams completions over aiohttp."""

import asyncio
import json
import logging
from typing import AsyncIterator, Optional

import aiohttp

from ..errors import SummarizationFailure

logger = logging.getLogger(__name__)


def parse_stream_line(raw_line: bytes) -> Optional[str]:
    """Extract the text delta from one server-sent-events line.

    Returns None for keep-alives, comments, role-only deltas and the
    terminating ``[DONE]`` marker.

    Raises:
        SummarizationFailure: if a data line is not valid completion JSON
    """
    line = raw_line.decode('utf-8').strip()
    if not line.startswith('data:'):
        return None

    payload = line[len('data:'):].strip()
    if not payload or payload == '[DONE]':
        return None

    try:
        chunk = json.loads(payload)
    except json.JSONDecodeError as e:
        raise SummarizationFailure(f"Malformed stream chunk from ChatGPT: {payload[:80]}") from e

    if 'error' in chunk:
        raise SummarizationFailure(f"ChatGPT stream error: {chunk['error']}")

    choices = chunk.get('choices') or []
    if not choices:
        return None
    return (choices[0].get('delta') or {}).get('content') or None


class ChatGPTSummarizationEngine:
    """Sends summary prompts to ChatGPT and streams the response text."""

    def __init__(self,
                 api_key: Optional[str],
                 model: str = "gpt-4o-mini",
                 temperature: float = 0.3,
                 max_tokens: int = 1000,
                 base_url: str = "https://api.openai.com/v1/chat/completions",
                 timeout: float = 120.0):
        """Initialize ChatGPT summarization engine.

        Args:
            api_key: OpenAI API key
            model: ChatGPT model to use for summaries
            temperature: Temperature for response generation (0.0 to 1.0)
            max_tokens: Maximum tokens in a summary
            base_url: Chat completions endpoint
            timeout: Total request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.base_url = base_url
        self.timeout = timeout

        logger.info(f"ChatGPTSummarizationEngine initialized with model: {model}")

    def initialize(self) -> bool:
        """Check that the engine has credentials to make requests."""
        if not self.api_key:
            logger.error("No OpenAI API key configured for summaries")
            return False
        return True

    async def summarize_stream(self, prompt: str) -> AsyncIterator[str]:
        """Send a prompt to ChatGPT and yield the response as text deltas.

        Raises:
            SummarizationFailure: if the API call fails
        """
        if not self.api_key:
            raise SummarizationFailure("No OpenAI API key configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        data = {
            "model": self.model,
            "messages": [
                {
                    "role": "user",
                    "content": prompt
                }
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "stream": True
        }

        timeout = aiohttp.ClientTimeout(total=self.timeout)
        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(self.base_url, headers=headers, json=data) as response:
                    if response.status != 200:
                        error_text = await response.text()
                        raise SummarizationFailure(f"ChatGPT API error: {response.status} - {error_text}")

                    async for raw_line in response.content:
                        if raw_line.strip() == b'data: [DONE]':
                            break
                        delta = parse_stream_line(raw_line)
                        if delta:
                            yield delta
        except aiohttp.ClientError as e:
            raise SummarizationFailure(f"ChatGPT request failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise SummarizationFailure(f"ChatGPT request timed out after {self.timeout}s") from e
