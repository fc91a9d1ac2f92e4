"""Client relay adapter: one live relay connection plus the REST calls around it.

The adapter never retries. If the handshake is refused it keeps working
against the REST routes only, and pushes simply stop arriving.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable
from urllib.parse import urlencode, urlsplit, urlunsplit

import httpx
from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake

from mindmate.client.state import ChatState, ContactSummary, assistant_contact
from mindmate.core.errors import AuthenticationFailure
from mindmate.models.account import ParticipantKind

logger = logging.getLogger(__name__)

Connector = Callable[[str], Awaitable[Any]]


def relay_url(base_url: str, token: str) -> str:
    """http(s)://host[/...] -> ws(s)://host/api/relay/ws?token=..."""
    parts = urlsplit(base_url)
    scheme = "wss" if parts.scheme == "https" else "ws"
    return urlunsplit((scheme, parts.netloc, "/api/relay/ws", urlencode({"token": token}), ""))


class RelayClient:
    def __init__(
        self,
        base_url: str,
        token: str,
        self_id: str,
        http: httpx.AsyncClient | None = None,
        connector: Connector | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token: str | None = token
        self.state = ChatState(self_id)
        self.http = http or httpx.AsyncClient(base_url=self.base_url, timeout=30.0)
        self._connector = connector or ws_connect
        self._ws: Any = None
        self.live = False
        self.listener_task: asyncio.Task | None = None

    # --- connection ---

    async def connect(self) -> bool:
        """Open the relay connection. Returns False (and stays REST-only) on refusal."""
        if not self.token:
            logger.warning("No token for relay connection; continuing without live updates")
            return False
        try:
            self._ws = await self._connector(relay_url(self.base_url, self.token))
            greeting = json.loads(await self._ws.recv())
        except (InvalidHandshake, ConnectionClosed, OSError, json.JSONDecodeError) as e:
            logger.warning(f"Relay connect failed: {e}")
            self._ws = None
            self.live = False
            return False

        if not isinstance(greeting, dict) or greeting.get("event") != "connected":
            logger.warning(f"Unexpected relay greeting: {greeting!r}")
        self.live = True
        self.listener_task = asyncio.create_task(self.listen())
        return True

    async def listen(self) -> None:
        """Apply inbound frames to the state until the socket closes."""
        try:
            async for raw in self._ws:
                self.handle_frame(raw)
        except ConnectionClosed as e:
            logger.info(f"Relay connection closed: {e}")
        finally:
            self.live = False

    def handle_frame(self, raw: str | bytes) -> bool:
        try:
            frame = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("Ignoring undecodable relay frame")
            return False
        if not isinstance(frame, dict) or frame.get("event") != "receive_message":
            return False
        data = frame.get("data")
        if not isinstance(data, dict):
            return False
        return self.state.receive(data)

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
        if self.listener_task is not None:
            self.listener_task.cancel()
            try:
                await self.listener_task
            except asyncio.CancelledError:
                pass
        self.live = False
        await self.http.aclose()

    # --- REST ---

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        response = await self.http.request(method, path, headers=headers, **kwargs)
        if response.status_code in (401, 403):
            # Session is dead; drop it so the caller sends the user back to login
            logger.warning("Token expired or invalid, discarding session")
            self.token = None
            raise AuthenticationFailure(f"HTTP {response.status_code} from {path}")
        response.raise_for_status()
        return response.json()

    async def load_contacts(self) -> list[ContactSummary]:
        data = await self._request("GET", "/api/directory/")
        contacts = [ContactSummary.from_payload(d) for d in data]
        self.state.set_contacts(contacts)
        return self.state.contacts

    async def open_conversation(self, contact_id: str) -> list[dict[str, Any]]:
        """Switch to a contact and replace the visible list with its history."""
        if contact_id == assistant_contact().id:
            self.state.select(assistant_contact())
            return self.state.assistant_messages

        contact = self.state.contact(contact_id) or ContactSummary(id=contact_id)
        self.state.select(contact)
        records = await self._request("GET", f"/api/directory/messages/{contact_id}")
        self.state.load_history(contact_id, records)
        return self.state.messages

    async def interactions(self) -> dict[str, int]:
        return await self._request("GET", "/api/directory/interactions")

    # --- sending ---

    async def submit(self, text: str) -> dict[str, Any] | None:
        """Send what the user typed to whoever is open.

        Returns the optimistic record (or the assistant's reply turn). Blank
        input is ignored.
        """
        if not text.strip():
            return None
        contact = self.state.active
        if contact is None:
            raise ValueError("No conversation is open")

        if contact.kind is ParticipantKind.AI:
            return await self._ask_assistant(text)

        optimistic = self.state.add_optimistic(text)
        payload = {"receiver": contact.id, "receiverType": contact.kind.value, "message": text}

        if self.live and self._ws is not None:
            try:
                await self._ws.send(json.dumps({"event": "send_message", "data": payload}))
            except ConnectionClosed as e:
                logger.warning(f"Relay send dropped, connection closed: {e}")
                self.live = False
        else:
            await self._request(
                "POST",
                "/api/directory/send",
                json={"receiverId": contact.id, "receiverType": contact.kind.value, "message": text},
            )

        # Best effort; the optimistic message stays whatever happens here
        try:
            await self._request("POST", "/api/directory/update-profile")
        except (httpx.HTTPError, AuthenticationFailure) as e:
            logger.error(f"Failed to update profile counters: {e}")

        return optimistic

    async def _ask_assistant(self, text: str) -> dict[str, Any]:
        history = [
            {"role": m["role"], "content": m["message"]} for m in self.state.assistant_messages
        ]
        self.state.add_assistant_turn("user", text)
        data = await self._request(
            "POST", "/api/assistant/", json={"messages": history + [{"role": "user", "content": text}]}
        )
        return self.state.add_assistant_turn("assistant", data["message"]["content"])
