"""Google Gemini generateContent adapter."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from llmgate.adapters.base import BaseProvider, PromptType
from llmgate.core.errors import ErrorCode, GenerationError
from llmgate.core.logging import logger
from llmgate.prompt import SimplePrompt
from llmgate.result import LLMResult, Usage

DEFAULT_TEMPERATURE = 1.0
DEFAULT_MAX_TOKENS = 500
DEFAULT_TOP_P = 1.0


class GeminiPart(BaseModel):
    text: Optional[str] = None


class GeminiContent(BaseModel):
    role: Optional[str] = None
    parts: List[GeminiPart] = Field(default_factory=list)


class GeminiGenerationConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    temperature: float = DEFAULT_TEMPERATURE
    max_output_tokens: int = Field(DEFAULT_MAX_TOKENS, alias="maxOutputTokens")
    top_p: float = Field(DEFAULT_TOP_P, alias="topP")


class GeminiGenerateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    contents: List[GeminiContent]
    generation_config: GeminiGenerationConfig = Field(
        default_factory=GeminiGenerationConfig, alias="generationConfig"
    )

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class GeminiCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: Optional[GeminiContent] = None
    finish_reason: Optional[str] = Field(None, alias="finishReason")
    index: int = 0


class GeminiUsageMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt_token_count: int = Field(0, alias="promptTokenCount")
    candidates_token_count: int = Field(0, alias="candidatesTokenCount")
    total_token_count: int = Field(0, alias="totalTokenCount")


class GeminiGenerateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    candidates: List[GeminiCandidate] = Field(default_factory=list)
    usage_metadata: Optional[GeminiUsageMetadata] = Field(None, alias="usageMetadata")

    def to_result(self, model: Optional[str] = None) -> LLMResult:
        usage = None
        if self.usage_metadata is not None:
            usage = Usage(
                input_tokens=self.usage_metadata.prompt_token_count,
                output_tokens=self.usage_metadata.candidates_token_count,
                total_tokens=self.usage_metadata.total_token_count,
            )

        if not self.candidates:
            return LLMResult.no_response(usage=usage, model=model)
        content = self.candidates[0].content
        if content is None or not content.parts:
            return LLMResult.no_response(usage=usage, model=model)
        return LLMResult.from_parts(content.parts[0].text, usage=usage, model=model)


class GeminiProvider(BaseProvider):
    """Google Gemini API. Only single-turn prompts are supported."""

    name = "gemini"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1beta/models/{self.model}:generateContent"

    def build_request(self, prompt: PromptType) -> GeminiGenerateRequest:
        if not isinstance(prompt, SimplePrompt):
            raise GenerationError(
                "Gemini adapter supports only simple prompts",
                ErrorCode.UNSUPPORTED_PROMPT,
                self.name,
            )
        if prompt.has_tools:
            logger.debug("Gemini adapter ignores tool declarations")

        text = f"{prompt.system}\n{prompt.user}"
        return GeminiGenerateRequest(
            contents=[GeminiContent(parts=[GeminiPart(text=text)])],
            generation_config=GeminiGenerationConfig(
                temperature=self._sampling("temperature", DEFAULT_TEMPERATURE),
                max_output_tokens=self._sampling("max_tokens", DEFAULT_MAX_TOKENS),
                top_p=self._sampling("top_p", DEFAULT_TOP_P),
            ),
        )

    async def generate(self, prompt: PromptType) -> LLMResult:
        request = self.build_request(prompt)
        data = await self._post_json(
            self.endpoint,
            request.to_payload(),
            headers=self._default_headers(),
            params={"key": self.api_key},
        )
        response = self._parse_response(GeminiGenerateResponse, data)
        return response.to_result(self.model)
