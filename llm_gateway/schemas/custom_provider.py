from pydantic import BaseModel, Field


class CustomProviderSetup(BaseModel):
    provider_id: str = Field(min_length=1, max_length=64)
    api_key: str = Field(min_length=1, max_length=512)
    model: str | None = Field(None, max_length=255)
    base_url: str | None = Field(None, max_length=2048)


class CustomProviderSetupResponse(BaseModel):
    name: str
    model: str
    masked_key: str
    streaming: bool
    vision: bool


class CustomProviderInfo(BaseModel):
    provider_id: str
    provider_name: str
    model: str
    masked_key: str
    enabled: bool
    configured_at: str
    last_used: str | None
    total_calls: int
    total_tokens: int
    streaming: bool
    vision: bool


class CustomProviderModelUpdate(BaseModel):
    model: str = Field(min_length=1, max_length=255)


class CustomProviderToggleResponse(BaseModel):
    enabled: bool
    name: str


class KeyValidationRequest(BaseModel):
    provider_id: str = Field(min_length=1, max_length=64)
    api_key: str = Field(min_length=1, max_length=512)
    base_url: str | None = Field(None, max_length=2048)


class KeyValidationResponse(BaseModel):
    valid: bool
    model: str | None = None
    warning: str | None = None
    error: str | None = None


class SetupParseRequest(BaseModel):
    text: str = Field(min_length=1, max_length=4000)


class SetupParseResponse(BaseModel):
    provider_id: str | None
    api_key: str | None
    model: str | None
    base_url: str | None


class MessageResponse(BaseModel):
    message: str
