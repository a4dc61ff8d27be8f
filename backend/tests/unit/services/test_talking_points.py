"""
Unit Tests for talking point generation
"""

import httpx
import pytest

from app.core.config import settings
from app.core.exceptions import (
    AINotConfiguredError,
    AIResponseParseError,
    AIServiceError,
    AITimeoutError,
    AuthorizationError,
)
from app.services.talking_points_service import TalkingPointsService, build_request, parse_talking_points

from mocks.mock_claude import MockClaudeClient


class TestParsing:

    def test_numbered_and_bulleted_lines(self):
        text = "Here you go:\n1. Scope\n2) Timeline\n- Testing plan\n\nThanks"
        assert parse_talking_points(text) == ["Scope", "Timeline", "Testing plan"]

    def test_no_list_items(self):
        assert parse_talking_points("I cannot help with that.") == []


class TestBuildRequest:

    @pytest.mark.asyncio
    async def test_missing_schedule_fields_become_empty(self, db_session, approved_project, placed_student):
        from app.services.consultation_service import ConsultationService
        consultation = await ConsultationService(db_session).request(
            placed_student, approved_project.id, "Walk through the revised chapter one draft."
        )

        request = build_request(consultation)

        assert len(request) == 9
        assert request["date"] == ""
        assert request["start_time"] == ""
        assert request["capstone_title"] == approved_project.title


class TestGenerate:

    @pytest.mark.asyncio
    async def test_generate_for_adviser(self, db_session, scheduled_consultation, adviser):
        client = MockClaudeClient()
        result = await TalkingPointsService(db_session, client=client).generate(adviser, scheduled_consultation.id)

        assert len(result["talking_points"]) == 3
        assert client.call_count == 1
        assert scheduled_consultation.capstone_title in client.last_prompt
        assert "Room 301" in client.last_prompt

    @pytest.mark.asyncio
    async def test_students_cannot_generate(self, db_session, scheduled_consultation, placed_student):
        service = TalkingPointsService(db_session, client=MockClaudeClient())
        with pytest.raises(AuthorizationError):
            await service.generate(placed_student, scheduled_consultation.id)

    @pytest.mark.asyncio
    async def test_not_configured_without_key(self, db_session, scheduled_consultation, adviser, monkeypatch):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
        with pytest.raises(AINotConfiguredError):
            await TalkingPointsService(db_session).generate(adviser, scheduled_consultation.id)

    @pytest.mark.asyncio
    async def test_timeout(self, db_session, scheduled_consultation, adviser, monkeypatch):
        monkeypatch.setattr(settings, "TALKING_POINTS_TIMEOUT", 0.05)
        service = TalkingPointsService(db_session, client=MockClaudeClient(delay=1.0))

        with pytest.raises(AITimeoutError):
            await service.generate(adviser, scheduled_consultation.id)

    @pytest.mark.asyncio
    async def test_transport_error(self, db_session, scheduled_consultation, adviser):
        client = MockClaudeClient(error=httpx.ConnectError("connection refused"))
        with pytest.raises(AIServiceError) as exc_info:
            await TalkingPointsService(db_session, client=client).generate(adviser, scheduled_consultation.id)
        assert exc_info.value.code == "AI_SERVICE_ERROR"

    @pytest.mark.asyncio
    async def test_unparseable_reply(self, db_session, scheduled_consultation, adviser):
        client = MockClaudeClient(content="Sorry, no ideas today.")
        with pytest.raises(AIResponseParseError):
            await TalkingPointsService(db_session, client=client).generate(adviser, scheduled_consultation.id)
