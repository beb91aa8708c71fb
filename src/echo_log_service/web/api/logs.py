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
Log CRUD endpoints for the HTTP interface.

There is no delete: entries are only appended and edited.
"""

import logging

from fastapi import APIRouter, Depends

from ...models.log_entry import LogEntry
from ...models.requests import LogCreateRequest, LogUpdateRequest
from ...services.log_service import LogService
from ..dependencies import get_log_service

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/logs", response_model=LogEntry, response_model_exclude_none=True, tags=["logs"])
async def create_log(
    request: LogCreateRequest,
    log_service: LogService = Depends(get_log_service),
):
    """
    Append a new log entry.

    Tags are lowercased and deduplicated; with no tags the entry gets the
    default "needs review" tag. ``private: true`` adds the "private" tag.
    """
    return await log_service.create_log(request.content, tags=request.tags, private=request.private)


@router.get("/logs", response_model=list[LogEntry], response_model_exclude_none=True, tags=["logs"])
async def list_logs(log_service: LogService = Depends(get_log_service)):
    """
    Return every log entry in append order.

    Records written by older versions are upgraded and persisted on the way out.
    """
    return await log_service.list_logs()


@router.put("/logs/{log_id}", response_model=LogEntry, response_model_exclude_none=True, tags=["logs"])
async def update_log(
    log_id: str,
    request: LogUpdateRequest,
    log_service: LogService = Depends(get_log_service),
):
    """
    Update content and/or tags of an entry.

    A content change keeps the previous text in ``versions``; tags are
    replaced, not merged.
    """
    return await log_service.update_log(
        log_id,
        content=request.content,
        tags=request.tags,
        private=request.private,
    )
