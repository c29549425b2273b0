"""统一的 LLM 调用服务"""

import time
from typing import Optional
from openai import AsyncOpenAI
import structlog

from ..config import AIConfig

logger = structlog.get_logger()


class LLMService:
    """
    LLM 服务层（OpenAI 兼容接口）

    提供：
    - 统一的调用接口
    - Token 使用记录
    不做自动重试，失败直接抛给调用方。
    """

    def __init__(self, config: AIConfig, client: Optional[AsyncOpenAI] = None):
        self.config = config
        self.client = client or AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=0,
        )
        self.model = config.model
        self.default_max_tokens = config.max_tokens
        self.default_temperature = config.temperature

    async def chat(
        self,
        messages: list[dict],
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> tuple[str, dict]:
        """
        发送聊天请求

        Returns:
            (response_text, token_usage)
        """
        max_tokens = max_tokens or self.default_max_tokens
        temperature = temperature if temperature is not None else self.default_temperature

        start_time = time.time()
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            max_tokens=max_tokens,
            temperature=temperature,
        )

        duration = time.time() - start_time
        content = response.choices[0].message.content or ""
        token_usage = {
            "prompt": response.usage.prompt_tokens if response.usage else 0,
            "completion": response.usage.completion_tokens if response.usage else 0,
            "total": response.usage.total_tokens if response.usage else 0,
        }

        logger.info(
            "llm_call_success",
            model=self.model,
            duration=f"{duration:.2f}s",
            tokens=token_usage,
        )
        return content, token_usage

    def build_messages(self, system_prompt: str, user_prompt: str) -> list[dict]:
        """构建消息列表"""
        return [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ]
