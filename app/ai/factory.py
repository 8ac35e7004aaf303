from app.ai.types import AIClient
from app.core.config import Settings
from app.core.errors import AIMisconfigured

from app.ai.providers.openai_provider import OpenAIProvider


def get_ai_client(config: Settings) -> AIClient:
    if not config.ai_credential_configured:
        raise AIMisconfigured("AI service is not configured.")

    if config.ai_provider == "openai":
        return OpenAIProvider(
            model=config.ai_model,
            api_key=config.openai_api_key,
            base_url=config.openai_base_url,
            timeout_s=config.ai_timeout_s,
        )

    raise AIMisconfigured(f"Unsupported AI_PROVIDER='{config.ai_provider}'")
