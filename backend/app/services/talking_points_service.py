"""
Talking Points Service

Asks Claude for a short list of discussion topics for a consultation, built
from the consultation's snapshot fields. The call is bounded by
TALKING_POINTS_TIMEOUT and only ever reads workflow state.
"""

import asyncio
import re
from typing import Any, Dict, List, Optional

from anthropic import APIError
import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    AINotConfiguredError,
    AIResponseParseError,
    AIServiceError,
    AITimeoutError,
    ConsultationNotFoundError,
)
from app.core.logging_config import logger
from app.models.consultation import Consultation
from app.modules.auth.role_resolver import Principal
from app.services.consultation_service import require_assigned_adviser
from app.services.document_store import DocumentStore
from app.utils.claude_client import get_claude_client


SYSTEM_PROMPT = (
    "You help capstone project advisers prepare for consultation sessions. "
    "Reply with a numbered list of concise talking points and nothing else."
)

PROMPT_TEMPLATE = """Suggest talking points for the following capstone consultation.

Semester: {semester}
Academic year: {academic_year}
Capstone title: {capstone_title}
Block and group: {block_group_number}
Date: {date}
Time: {start_time} - {end_time}
Venue: {venue}

Project details:
{project_details}

List 3 to 7 talking points, one per line, numbered."""

_ITEM_PATTERN = re.compile(r"^\s*(?:\d+[.)]|[-*•])\s+(.*\S)\s*$")


def build_request(consultation: Consultation) -> Dict[str, str]:
    """The nine generator fields; missing schedule fields become empty strings"""
    return {
        "semester": consultation.semester or "",
        "academic_year": consultation.academic_year or "",
        "capstone_title": consultation.capstone_title or "",
        "block_group_number": consultation.block_group_number or "",
        "date": consultation.date or "",
        "start_time": consultation.start_time or "",
        "end_time": consultation.end_time or "",
        "venue": consultation.venue or "",
        "project_details": consultation.project_details or "",
    }


def parse_talking_points(text: str) -> List[str]:
    """Numbered or bulleted lines; blank and other lines are ignored"""
    points = []
    for line in (text or "").splitlines():
        match = _ITEM_PATTERN.match(line)
        if match:
            points.append(match.group(1).strip())
    return points


class TalkingPointsService:
    """Generate talking points through a Claude client"""

    def __init__(self, db: AsyncSession, client: Optional[Any] = None):
        self.db = db
        self.store = DocumentStore(db)
        self._client = client

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not settings.talking_points_enabled:
            raise AINotConfiguredError()
        self._client = get_claude_client()
        return self._client

    async def generate_for_request(self, request: Dict[str, str]) -> List[str]:
        client = self._get_client()
        prompt = PROMPT_TEMPLATE.format(**request)
        timeout = settings.TALKING_POINTS_TIMEOUT

        try:
            response = await asyncio.wait_for(
                client.generate(prompt=prompt, system_prompt=SYSTEM_PROMPT),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Talking points timed out after {timeout}s",
                           extra={"event_type": "talking_points_timeout"})
            raise AITimeoutError(timeout)
        except (APIError, httpx.HTTPError) as e:
            logger.log_error_with_context(e, context="talking points generation")
            raise AIServiceError(f"Talking points could not be generated: {type(e).__name__}") from e

        points = parse_talking_points(response.get("content", ""))
        if not points:
            logger.warning("Talking points reply had no list items",
                           extra={"event_type": "talking_points_parse_error"})
            raise AIResponseParseError()
        return points

    async def generate(self, principal: Principal, consultation_id: str) -> Dict[str, Any]:
        consultation = await self.store.require(Consultation, consultation_id, ConsultationNotFoundError)
        require_assigned_adviser(consultation, principal)

        request = build_request(consultation)
        points = await self.generate_for_request(request)
        logger.info(f"Generated {len(points)} talking points for consultation {consultation_id}")
        return {"talking_points": points}
