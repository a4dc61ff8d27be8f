"""
Unit Tests for structured logging
"""
import logging

import pytest

from app.core.logging_config import CapstoneLogger, logger


class TestStructuredLogger:

    def test_helpers(self):
        assert isinstance(logger, CapstoneLogger)
        assert not hasattr(logger, "log_request")

    def test_transition_fields(self, caplog):
        with caplog.at_level(logging.INFO, logger="capstone"):
            logger.log_transition("project", "p1", None, "Pending Teacher Approval",
                                  actor_id="s1", actor_role="student")

        record = caplog.records[-1]
        assert record.event_type == "transition"
        assert record.from_state is None
        assert record.to_state == "Pending Teacher Approval"

    @pytest.mark.asyncio
    async def test_middleware_logs_requests(self, client, caplog):
        with caplog.at_level(logging.INFO, logger="capstone"):
            response = await client.get("/api/v1/advisers")

        assert response.headers["X-Request-ID"]
        completed = [r for r in caplog.records if getattr(r, "event_type", None) == "http_request_complete"]
        assert completed[-1].http_status == 401
        assert completed[-1].http_path == "/api/v1/advisers"
