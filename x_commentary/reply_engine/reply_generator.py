"""
Commentary generation: ask the OpenAI Chat Completions API for a short,
trader-style take on a post.
"""

from __future__ import annotations

from typing import Optional

import requests

from x_commentary.utils.logger import get_logger

CHAT_COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"

SYSTEM_PROMPT = (
    "You are a calm, clever crypto trader who explains short-term market sentiment and shares "
    "observations like you'd post on Twitter, casually but insightfully."
)

USER_PROMPT_TEMPLATE = (
    "You are a crypto trader who reads news and market sentiment daily.\n"
    "Analyze this tweet and write a quote tweet that casually gives insight, such as why the market "
    "is green (e.g., recent ETF approval, CPI numbers, whale activity) or why it might reverse. "
    "Use real logic, but be conversational.\n\n"
    'Tweet: "{post_text}"'
)

logger = get_logger(__name__)


def build_user_prompt(post_text: str) -> str:
    return USER_PROMPT_TEMPLATE.format(post_text=post_text)


def call_chatgpt(
    api_key: str,
    system_prompt: str,
    content: str,
    model: str = "gpt-4",
    max_tokens: int = 100,
    timeout: int = 30,
) -> str:
    """
    Call the OpenAI Chat Completions API and return the model's content response.

    Args:
        api_key: OpenAI API key.
        system_prompt: Fixed role description sent as the system message.
        content: User message.
        model: Model name to call.
        max_tokens: Maximum tokens to generate in the response.
        timeout: Request timeout in seconds.

    Returns:
        Response content string, stripped.

    Raises:
        RuntimeError: If the API key is missing, the request fails, or no choice is returned.
    """
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is required for ChatGPT calls.")

    body = {
        "model": model,
        "messages": [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": content},
        ],
        "max_tokens": max_tokens,
    }
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    resp = requests.post(CHAT_COMPLETIONS_URL, json=body, headers=headers, timeout=timeout)
    if not resp.ok:
        raise RuntimeError(f"ChatGPT API error {resp.status_code}: {resp.text}")
    data = resp.json()
    try:
        message = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise RuntimeError(f"ChatGPT API returned no choices: {data}") from exc
    return (message or "").strip()


class CommentaryGenerator:
    """
    Callable that turns post text into commentary, or None when generation fails.

    Example:
        generate = CommentaryGenerator(api_key="sk-...", model="gpt-4")
        quote = generate("BTC just reclaimed 70k")
    """

    def __init__(self, api_key: str, model: str = "gpt-4", max_tokens: int = 100):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens

    def __call__(self, post_text: str) -> Optional[str]:
        try:
            commentary = call_chatgpt(
                self.api_key,
                SYSTEM_PROMPT,
                build_user_prompt(post_text),
                model=self.model,
                max_tokens=self.max_tokens,
            )
        except (requests.RequestException, RuntimeError, ValueError) as exc:
            logger.error(f"GPT error: {exc}")
            return None
        return commentary or None
