"""Controllers for chat endpoints.

Defines the routes for interacting with the ChatService.  All endpoints
defined here are registered in ``main.py``.
"""

from fastapi import APIRouter, Depends, Request, Response
from loguru import logger

from ..models.chat_request import ChatRequest
from ..models.chat_response import ChatResponse, ConfigResponse, ErrorResponse
from ..services.chat_service import ChatService, client_identity, get_chat_service
from ..utils.error_handler import ChatError, GenericServerError
from ..utils.helpers import utc_timestamp

router = APIRouter(prefix="", tags=["Chat"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Prompt failed validation"},
    429: {"model": ErrorResponse, "description": "Rate limit exceeded"},
    500: {"model": ErrorResponse, "description": "Processing or configuration error"},
    503: {"model": ErrorResponse, "description": "Upstream model unreachable"},
}


@router.post("/api/chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
@router.post("/chat", response_model=ChatResponse, responses=ERROR_RESPONSES, include_in_schema=False)
async def chat_endpoint(
    payload: ChatRequest,
    request: Request,
    response: Response,
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Accept a prompt and return the assistant's reply.

    The prompt is validated, charged against the per-client chat limiter,
    sanitised and forwarded to the model provider.  Failures come back as
    ``{"error": "..."}`` with 400, 429, 500 or 503.
    """
    client_id = client_identity(request, request.app.state.app_config.trust_proxy_headers)
    try:
        reply, decision = await service.chat(payload.prompt, client_id)
    except ChatError:
        raise
    except Exception as exc:
        logger.exception("Unhandled exception during chat processing")
        raise GenericServerError(locale=service.locale) from exc

    response.headers.update(decision.headers())
    return reply


@router.get("/api/config", response_model=ConfigResponse, tags=["Config"])
async def config_endpoint(request: Request) -> ConfigResponse:
    """Tell the client which base URL to call; empty means same origin."""
    return ConfigResponse(
        api_base_url=request.app.state.app_config.api_base_url,
        timestamp=utc_timestamp(),
    )
