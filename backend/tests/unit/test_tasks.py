"""Tests for the Celery extraction task."""
from datetime import datetime, timedelta
from types import SimpleNamespace
from uuid import uuid4

import pytest


class Retried(Exception):
    pass


@pytest.fixture
def worker(monkeypatch, db_session):
    """Task module bound to the test session, with retries captured."""
    from corpsec.workers import tasks
    
    retries = []
    
    def fake_retry(countdown=None, **kwargs):
        retries.append(countdown)
        return Retried()
    
    monkeypatch.setattr(tasks, "SessionLocal", lambda: db_session)
    monkeypatch.setattr(tasks.extract_processing_document, "retry", fake_retry)
    
    def run_with(outcome):
        async def fake_run(db, storage, processing_document_id):
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        monkeypatch.setattr(tasks, "run_extraction", fake_run)
    
    return SimpleNamespace(task=tasks.extract_processing_document, retries=retries, run_with=run_with)


class TestRetryCountdown:
    """Test countdown calculation."""
    
    def test_countdown(self):
        """Test seconds until the next retry."""
        from corpsec.workers.tasks import retry_countdown
        
        now = datetime(2026, 1, 1, 12, 0, 0)
        assert retry_countdown(now + timedelta(seconds=16), now=now) == 16
        assert retry_countdown(now - timedelta(seconds=5), now=now) == 0
        assert retry_countdown(None) == 0


class TestExtractTask:
    """Test the task outcomes."""
    
    def test_success(self, worker):
        """Test the result of a finished extraction."""
        worker.run_with(SimpleNamespace(pipeline_status="EXTRACTION_DONE", next_retry_at=None))
        pid = str(uuid4())
        
        result = worker.task(pid)
        
        assert result == {"status": "success", "processing_document_id": pid, "pipeline_status": "EXTRACTION_DONE"}
    
    def test_dead_letter_not_retried(self, worker):
        """Test that dead-lettered documents are reported, not retried."""
        worker.run_with(SimpleNamespace(pipeline_status="DEAD_LETTER", next_retry_at=None))
        
        result = worker.task(str(uuid4()))
        
        assert result["status"] == "failed"
        assert worker.retries == []
    
    def test_retryable_failure_rescheduled(self, worker):
        """Test that a retryable failure calls retry with the scheduled countdown."""
        worker.run_with(SimpleNamespace(
            pipeline_status="FAILED_RETRYABLE",
            next_retry_at=datetime.utcnow() + timedelta(seconds=120),
        ))
        
        with pytest.raises(Retried):
            worker.task(str(uuid4()))
        
        assert 110 <= worker.retries[0] <= 120
    
    def test_missing_document(self, worker):
        """Test that an unknown id returns an error result."""
        worker.run_with(LookupError("Processing document not found"))
        
        result = worker.task(str(uuid4()))
        
        assert result == {"status": "error", "message": "Processing document not found"}


class TestCeleryConfig:
    """Test worker routing."""
    
    def test_extraction_routed_to_own_queue(self):
        """Test that extraction tasks go to the extraction queue and nothing else does."""
        from corpsec.workers.celery_app import celery_app
        from corpsec.workers.tasks import extract_processing_document
        
        routes = celery_app.conf.task_routes
        
        assert routes[extract_processing_document.name] == {"queue": "extraction"}
        assert celery_app.conf.task_default_queue == "default"
        assert celery_app.conf.task_acks_late is True
