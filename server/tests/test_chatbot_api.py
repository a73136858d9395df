from __future__ import annotations

import httpx
import pytest

from universe.services.backend_client import BackendRejectedError, UniverseClient

CHAT_PATH = "/chatbot/chat"


def test_chat_relays_backend_reply(client, fake_backend):
    fake_backend.on("POST", CHAT_PATH, {"response": "Open Clubs from the menu to browse every club."})

    response = client.post("/chatbot", json={"message": "  how do I find clubs?  "})

    assert response.status_code == 200, response.text
    assert response.json() == {"response": "Open Clubs from the menu to browse every club."}
    assert fake_backend.calls_to("POST", CHAT_PATH)[0]["json"] == {"message": "how do I find clubs?"}


def test_blank_message_is_rejected(client, fake_backend):
    response = client.post("/chatbot", json={"message": "   "})

    assert response.status_code == 422
    assert not fake_backend.calls_to("POST", CHAT_PATH)


def test_unreachable_backend(client, fake_backend):
    fake_backend.fail("POST", CHAT_PATH)

    response = client.post("/chatbot", json={"message": "hello"})

    assert response.status_code == 502
    assert response.json()["detail"] == "Unable to reach the UniVerse service. Please try again."


def test_reply_without_text_is_rejected():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"success": True}))
    with UniverseClient("http://backend.test/api", transport=transport) as client:
        with pytest.raises(BackendRejectedError) as excinfo:
            client.chat("hello")

    assert excinfo.value.status_code == 502
