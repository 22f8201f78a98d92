"""HTTP webhook delivery."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Literal

import httpx
from pydantic import BaseModel, Field

from boopifier.core.errors import HandlerAdapterError
from boopifier.core.event import Event
from boopifier.handlers.base import HandlerAdapter


class WebhookConfig(BaseModel):
    url: str = Field(min_length=1)
    method: Literal["GET", "POST", "PUT", "PATCH"] = "POST"
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = Field(
        default=None,
        description="JSON body for objects/arrays, raw text for strings. "
        "Defaults to the full event.",
    )
    timeout: float = Field(default=10.0, gt=0)


class WebhookHandler(HandlerAdapter):
    type_name: ClassVar[str] = "webhook"
    description: ClassVar[str] = "HTTP request to a webhook URL"

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    def build_request_kwargs(self, cfg: WebhookConfig, event: Event) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"headers": cfg.headers}
        if cfg.method == "GET":
            return kwargs
        body = event.to_dict() if cfg.body is None else cfg.body
        if isinstance(body, str):
            kwargs["content"] = body.encode("utf-8")
        else:
            kwargs["json"] = body
        return kwargs

    async def handle(self, config: Mapping[str, Any], event: Event) -> None:
        cfg = self.parse_config(WebhookConfig, config)
        try:
            async with httpx.AsyncClient(
                timeout=cfg.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    cfg.method, cfg.url, **self.build_request_kwargs(cfg, event)
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise HandlerAdapterError(
                self.type_name, f"{cfg.url} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise HandlerAdapterError(self.type_name, f"request to {cfg.url} failed: {e}") from e
