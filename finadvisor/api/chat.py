from fastapi import APIRouter, Depends, Request

from finadvisor.api.deps import current_settings, require_user
from finadvisor.errors import ApiError, status_code_from_error
from finadvisor.schemas.chat import ChatRequest

router = APIRouter()


@router.post('', dependencies=[Depends(require_user)])
def chat(req: ChatRequest, request: Request, settings=Depends(current_settings)):
    message = (req.message or '').strip()
    if not message:
        raise ApiError(400, 'Please provide a message')
    if not settings.GEMINI_API_KEY:
        raise ApiError(500, 'Gemini API key is not configured')

    try:
        reply = request.app.state.chat_client.ask(message)
    except Exception as exc:
        code = status_code_from_error(exc)
        print(f"[CHAT][upstream_error] status={code} error={exc}", flush=True)
        if code == 400:
            raise ApiError(400, 'Invalid request to AI service. Please check your message.') from exc
        if code in (401, 403):
            raise ApiError(500, 'Gemini API authentication failed. Please check your API key.') from exc
        raise ApiError(500, 'Error communicating with AI service', error=str(exc)) from exc

    return {'success': True, 'message': reply}
