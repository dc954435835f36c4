"""Tests for the asynchronous recognition session."""

import asyncio
import logging
import threading

import pytest

from invoice_ocr.ocr_engine import RecognitionSession
from invoice_ocr.parser import process_invoice
from invoice_ocr.utils.exceptions import (
    CorruptedFileError,
    RecognitionFailure,
    RecognitionSessionClosedError,
)


class TestSessionLifecycle:
    """Tests for create-once, reuse and teardown."""

    @pytest.mark.asyncio
    async def test_engine_is_created_once_and_reused(self, engine_factory, acme_text):
        async with RecognitionSession(engine_factory) as session:
            assert session.has_engine
            first = await session.recognize("page1.png")
            second = await session.recognize("page2.png")

        assert first.text == second.text == acme_text
        assert len(engine_factory.created) == 1
        assert engine_factory.created[0].calls == 2

    @pytest.mark.asyncio
    async def test_engine_is_created_lazily(self, engine_factory):
        session = RecognitionSession(engine_factory)
        assert not session.has_engine

        await session.recognize(b"image-bytes")
        assert len(engine_factory.created) == 1
        await session.close()

    @pytest.mark.asyncio
    async def test_closed_session_rejects_calls(self, engine_factory):
        session = RecognitionSession(engine_factory)
        await session.open()
        await session.close()

        assert session.closed
        assert not session.has_engine
        with pytest.raises(RecognitionSessionClosedError):
            await session.recognize("page.png")
        with pytest.raises(RecognitionSessionClosedError):
            await session.open()

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, engine_factory):
        session = RecognitionSession(engine_factory)
        await session.close()
        await session.close()
        assert session.closed


class TestSessionConcurrency:
    """Tests for serialized access and cancellation."""

    @pytest.mark.asyncio
    async def test_concurrent_calls_are_serialized(self, engine_factory):
        engine_factory.delay = 0.05

        async with RecognitionSession(engine_factory) as session:
            results = await asyncio.gather(*(session.recognize(f"page{i}.png") for i in range(3)))

        assert len(results) == 3
        assert engine_factory.max_active == 1

    @pytest.mark.asyncio
    async def test_cancelled_call_does_not_poison_session(self, engine_factory, acme_text):
        engine_factory.gate = threading.Event()
        session = RecognitionSession(engine_factory)
        await session.open()

        task = asyncio.create_task(session.recognize("slow.png"))
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        engine_factory.gate.set()
        result = await session.recognize("next.png")

        assert result.text == acme_text
        assert len(engine_factory.created) == 2
        await session.close()

    @pytest.mark.asyncio
    async def test_timeout_raises_recognition_failure(self, engine_factory, acme_text):
        engine_factory.gate = threading.Event()
        session = RecognitionSession(engine_factory)

        with pytest.raises(RecognitionFailure) as exc_info:
            await session.recognize("slow.png", timeout=0.05)
        assert "Timed out" in exc_info.value.details["reason"]

        engine_factory.gate.set()
        result = await session.recognize("next.png", timeout=5)
        assert result.text == acme_text
        await session.close()


class TestSessionFailures:
    """Tests for recognition failures."""

    @pytest.mark.asyncio
    async def test_engine_failure_forces_recreation(self, engine_factory, acme_text):
        engine_factory.error = RuntimeError("engine crashed")

        async with RecognitionSession(engine_factory) as session:
            with pytest.raises(RecognitionFailure) as exc_info:
                await session.recognize("bad.png")
            assert exc_info.value.details["source"] == "bad.png"
            assert "engine crashed" in exc_info.value.details["reason"]
            assert not session.has_engine

            result = await session.recognize("good.png")

        assert result.text == acme_text
        assert len(engine_factory.created) == 2

    @pytest.mark.asyncio
    async def test_input_errors_keep_the_engine(self, engine_factory):
        engine_factory.error = CorruptedFileError("broken.png", "not an image")

        async with RecognitionSession(engine_factory) as session:
            with pytest.raises(CorruptedFileError):
                await session.recognize("broken.png")
            assert session.has_engine

        assert len(engine_factory.created) == 1


class TestProcessInvoice:
    """Tests for recognition followed by parsing."""

    @pytest.mark.asyncio
    async def test_process_invoice(self, engine_factory, parser):
        async with RecognitionSession(engine_factory) as session:
            invoice = await process_invoice("scan.png", session, parser, source_file="scan.png")

        assert invoice.party == "Acme Corp"
        assert invoice.grand_total == 80.0
        assert invoice.source_file == "scan.png"
        assert invoice.ocr_confidence is None

    @pytest.mark.asyncio
    async def test_empty_recognition_is_logged(self, engine_factory, parser, log_records):
        engine_factory.text = ""

        async with RecognitionSession(engine_factory) as session:
            invoice = await process_invoice("blank.png", session, parser, source_file="blank.png")

        assert invoice.items == []
        assert any(
            r.levelno == logging.WARNING and "blank.png" in r.getMessage() for r in log_records
        )

    @pytest.mark.asyncio
    async def test_recognition_failure_propagates(self, engine_factory, parser):
        engine_factory.error = RuntimeError("unreadable")

        async with RecognitionSession(engine_factory) as session:
            with pytest.raises(RecognitionFailure):
                await process_invoice("scan.png", session, parser)

    @pytest.mark.asyncio
    async def test_independent_sessions_run_in_parallel(self, engine_factory, parser):
        engine_factory.delay = 0.05
        sessions = [RecognitionSession(engine_factory) for _ in range(2)]

        invoices = await asyncio.gather(*(process_invoice("scan.png", s, parser) for s in sessions))
        for session in sessions:
            await session.close()

        assert [i.party for i in invoices] == ["Acme Corp", "Acme Corp"]
        assert len(engine_factory.created) == 2
