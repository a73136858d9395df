from fastapi import APIRouter, Depends

from universe.auth.deps import get_backend_client
from universe.schemas.chatbot import ChatRequest, ChatResponse
from universe.services.backend_client import UniverseClient

router = APIRouter(prefix="/chatbot", tags=["chatbot"])


@router.post("", response_model=ChatResponse)
def chat(payload: ChatRequest, client: UniverseClient = Depends(get_backend_client)) -> ChatResponse:
    """Relay a help-assistant question. Open to signed-out visitors."""
    return ChatResponse(response=client.chat(payload.message))
