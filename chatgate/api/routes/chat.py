from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from chatgate.api.dependencies import get_client_context, get_services
from chatgate.schemas.chat import ChatErrorResponse, ChatSuccessResponse
from chatgate.services.admission_pipeline import ClientContext
from chatgate.services.container import GateServices

router = APIRouter(tags=["Chat"])

_ERROR_RESPONSES = {
    status: {"model": ChatErrorResponse}
    for status in (400, 402, 403, 429, 500)
}


@router.post(
    "/chat",
    response_model=ChatSuccessResponse,
    responses=_ERROR_RESPONSES,
)
async def chat(
    request: Request,
    services: GateServices = Depends(get_services),
    client: ClientContext = Depends(get_client_context),
) -> JSONResponse:
    """Answer a visitor message once it clears every admission gate.

    The body (``{message, language?, conversationHistory?, captchaToken?}``)
    is read raw and validated inside the pipeline, after the rate check, so
    throttled clients are rejected before any parsing work.

    Returns:
        JSONResponse: ``{"response": ...}`` on success, otherwise
            ``{"error", "response", "retryAfter"?}`` with the gate's status.
            Rate limit headers are attached in both cases.
    """
    body = await request.body()
    reply = await services.pipeline.handle(body, client)
    return JSONResponse(
        status_code=reply.status_code,
        content=reply.body,
        headers=reply.headers,
    )
