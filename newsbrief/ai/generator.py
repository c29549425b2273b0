"""简报生成器"""

from typing import Optional
import structlog

from ..config import AIConfig
from ..errors import GenerationError, MissingCredentialError
from ..services.llm import LLMService
from .prompts import SYSTEM_INSTRUCTION, TRAILING_INSTRUCTION

logger = structlog.get_logger()


class BriefingGenerator:
    """把上下文交给生成模型，原样返回输出文本"""

    def __init__(self, config: AIConfig, llm_service: Optional[LLMService] = None):
        self.config = config
        self._llm = llm_service

    @property
    def has_credential(self) -> bool:
        return bool(self.config.api_key)

    def _get_llm(self) -> LLMService:
        if self._llm is None:
            self._llm = LLMService(self.config)
        return self._llm

    async def generate(self, context_text: str) -> str:
        """
        生成简报原始文本

        Raises:
            MissingCredentialError: 未配置 API Key（不发起网络请求）
            GenerationError: 模型调用失败（不重试）
        """
        if not self.has_credential:
            raise MissingCredentialError()

        llm = self._get_llm()
        messages = llm.build_messages(SYSTEM_INSTRUCTION, context_text + TRAILING_INSTRUCTION)

        try:
            content, token_usage = await llm.chat(messages)
        except Exception as e:
            logger.error("generation_failed", model=self.config.model, error=str(e))
            raise GenerationError(f"Model call failed: {e}") from e

        logger.info("generation_complete",
                    length=len(content),
                    tokens=token_usage.get("total", 0))
        return content
