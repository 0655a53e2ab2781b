"""Tests for workspace-tagged logging."""

from __future__ import annotations

from loguru import logger

from sqlsandbox.log import NO_WORKSPACE, workspace_context


async def test_workspace_context_tags_records_inside_block() -> None:
    records: list[dict] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="INFO")
    try:
        with workspace_context("w-1"):
            logger.info("inside")
        logger.info("outside")
    finally:
        logger.remove(handler_id)

    assert records[0]["extra"]["workspace"] == "w-1"
    assert records[1]["extra"].get("workspace", NO_WORKSPACE) == NO_WORKSPACE
