"""API route handlers for the HTTP gateway."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from tenx_cards.llm.client import OpenRouterClient
from tenx_cards.llm.errors import AuthError
from tenx_cards.llm.server.models import (
    ChatRequestBody,
    ChatResponse,
    ModelsResponse,
    UsageResponse,
)

router = APIRouter()


def get_client(request: Request) -> OpenRouterClient:
    """The shared client created at startup."""
    client = getattr(request.app.state, "client", None)
    if client is None:
        raise AuthError("OpenRouter client is not configured", status_code=500)
    return client


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/v1/chat", response_model=ChatResponse)
async def chat_endpoint(
    body: ChatRequestBody,
    client: OpenRouterClient = Depends(get_client),
) -> JSONResponse:
    result = await client.chat(
        body.messages,
        model=body.model,
        params=body.params,
        response_format=body.response_format,
    )
    response = ChatResponse(
        id=result.id,
        model=result.model,
        content=result.content,
        finish_reason=result.finish_reason,
        usage=UsageResponse(**result.usage.model_dump()),
        created=result.created,
    )
    return JSONResponse(content=response.model_dump(by_alias=True))


@router.get("/v1/models", response_model=ModelsResponse)
async def models_endpoint(client: OpenRouterClient = Depends(get_client)) -> JSONResponse:
    models = await client.list_models()
    response = ModelsResponse(data=[m.model_dump(exclude_none=True) for m in models])
    return JSONResponse(content=response.model_dump(by_alias=True))
