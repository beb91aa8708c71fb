# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Chat endpoints: talk to the local model with non-private logs as context.
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from ...models.requests import ChatRequest
from ...models.responses import ModelListResponse, StatusResponse
from ...services.chat_service import ChatService, require_message
from ...services.log_service import LogService
from ..dependencies import get_chat_service, get_log_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=None, tags=["chat"])
async def chat(
    request: ChatRequest,
    log_service: LogService = Depends(get_log_service),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send a message to the local model.

    With ``stream: true`` the reply is relayed as server-sent events:
    ``{"content": ...}`` per chunk, then ``{"done": true, "model": ...}``.
    Otherwise returns ``{"response": ..., "model": ...}``.
    """
    message = require_message(request.message)
    context = await log_service.build_chat_context()
    model = chat_service.resolve_model(request.model)
    logger.info(f"Chat request (model={model}, stream={request.stream}, context={len(context)} chars)")

    if request.stream:
        frames = await chat_service.open_stream(message, context, model)
        return StreamingResponse(
            frames,
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "X-Accel-Buffering": "no",
            },
        )

    return await chat_service.chat(message, context, model)


@router.get("/models", response_model=ModelListResponse, tags=["chat"])
async def list_models(chat_service: ChatService = Depends(get_chat_service)):
    """List models installed upstream and the configured default."""
    models = await chat_service.list_models()
    return ModelListResponse(models=models, default=chat_service.settings.default_model)


@router.get("/status", response_model=StatusResponse, response_model_exclude_none=True, tags=["chat"])
async def status(chat_service: ChatService = Depends(get_chat_service)):
    """Probe the upstream model server (short timeout)."""
    return await chat_service.probe()
