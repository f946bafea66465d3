"""Tests for structured logging and metrics export."""

import json
import logging

import pytest
from unittest.mock import AsyncMock, patch

from swiftship.shared.infrastructure.grafana import GrafanaOTLPExporter
from swiftship.shared.infrastructure.logging import CustomJsonFormatter, get_context_logger


def format_record(**extra) -> dict:
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s", environment="staging")
    record = logging.LogRecord("swiftship.test", logging.INFO, __file__, 1, "LLM call", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


class TestJsonFormatter:
    def test_adds_context_fields(self):
        data = format_record(correlation_id="req-1", operation="routing")

        assert data["message"] == "LLM call"
        assert data["correlation_id"] == "req-1"
        assert data["environment"] == "staging"
        assert data["operation"] == "routing"
        assert "timestamp" in data

    def test_redacts_secrets_but_not_token_counts(self):
        data = format_record(api_key="sk-123", access_token="abc", prompt_tokens=42)

        assert data["api_key"] == "***REDACTED***"
        assert data["access_token"] == "***REDACTED***"
        assert data["prompt_tokens"] == 42


class TestContextLogger:
    def test_without_correlation_id_is_plain_logger(self):
        assert isinstance(get_context_logger("swiftship.test"), logging.Logger)

    def test_correlation_id_merged_with_call_extra(self, caplog):
        logger = get_context_logger("swiftship.test", "req-7")

        with caplog.at_level(logging.INFO, logger="swiftship.test"):
            logger.info("Streaming agent reply", extra={"routed_agent": "DOCS_AGENT"})

        record = caplog.records[-1]
        assert record.correlation_id == "req-7"
        assert record.routed_agent == "DOCS_AGENT"


class TestGrafanaExporter:
    @pytest.mark.asyncio
    async def test_disabled_without_credentials(self):
        exporter = GrafanaOTLPExporter(host="", api_key="", instance_id="")

        assert not exporter.is_enabled()
        assert await exporter.export_route_lookup("haversine", 3) is False

    @pytest.mark.asyncio
    async def test_llm_metrics_payload(self):
        exporter = GrafanaOTLPExporter(host="https://otlp.example.com", api_key="key", instance_id="42")

        with patch.object(exporter, "_send", AsyncMock(return_value=True)) as send:
            assert await exporter.export_llm_metrics("gpt-4o-mini", 100, 20, 350, operation="routing")

        payload = send.await_args.args[0]
        metrics = payload["resourceMetrics"][0]["scopeMetrics"][0]["metrics"]
        values = {metric["name"]: metric["gauge"]["dataPoints"][0]["asInt"] for metric in metrics}
        assert values == {
            "llm_tokens_total": 120,
            "llm_prompt_tokens": 100,
            "llm_completion_tokens": 20,
            "llm_latency_ms": 350,
        }
        attributes = metrics[0]["gauge"]["dataPoints"][0]["attributes"]
        assert {"key": "operation", "value": {"stringValue": "routing"}} in attributes
