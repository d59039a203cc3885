from pydantic import BaseModel, Field

from llm_gateway.gateway.types import ChatMessage, ChatOptions, MessageRole


class ChatMessageIn(BaseModel):
    role: str = Field(pattern=r"^(system|user|assistant)$")
    content: str


class ChatRequest(BaseModel):
    messages: list[ChatMessageIn] = Field(min_length=1)
    max_tokens: int | None = Field(None, ge=1, le=32768)
    temperature: float | None = Field(None, ge=0.0, le=2.0)
    model: str | None = None
    provider: str | None = None
    user_id: str | None = None

    def to_messages(self) -> list[ChatMessage]:
        return [ChatMessage(role=MessageRole(m.role), content=m.content) for m in self.messages]

    def to_options(self) -> ChatOptions:
        return ChatOptions(
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            model=self.model,
            provider=self.provider,
            user_id=self.user_id,
        )


class ChatResponse(BaseModel):
    success: bool
    text: str
    provider: str | None
    model: str | None = None
    tokens: dict = {}
    error: str | None = None
    custom: bool = False


class ProviderStatusResponse(BaseModel):
    id: str
    name: str
    configured: bool
    available: bool
    in_cooldown: bool
    model: str
    streaming: bool
    vision: bool


class ProvidersResponse(BaseModel):
    providers: list[ProviderStatusResponse]
    active: str | None


class HealthResponse(BaseModel):
    status: str
    providers: int
    active: str | None
