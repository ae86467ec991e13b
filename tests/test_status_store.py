from services.rag.models import DocumentProcessingResult, ProcessingState, ProcessingStatus
from services.status_store import InMemoryStatusStore


def make_result(status=ProcessingState.COMPLETED):
    return DocumentProcessingResult(
        answers=["30 days"], processing_time=0.2, token_count=10, confidence_scores=[0.8], status=status
    )


def test_new_request_is_idle():
    store = InMemoryStatusStore()
    job_id = store.store_request("https://host/policy.pdf", ["What is the grace period?"])

    status = store.get_status(job_id)
    assert status.status is ProcessingState.IDLE
    assert status.progress == 0
    assert store.get_result(job_id) is None


def test_report_updates_status():
    store = InMemoryStatusStore()
    job_id = store.store_request("doc", [])
    store.report(job_id, ProcessingStatus(ProcessingState.PROCESSING, "Generating answers", 60))
    assert store.get_status(job_id).to_dict() == {
        'status': 'processing', 'message': 'Generating answers', 'progress': 60
    }


def test_completed_result_marks_job_done():
    store = InMemoryStatusStore()
    job_id = store.store_request("doc", ["q"])
    store.store_result(job_id, make_result())

    assert store.get_status(job_id).status is ProcessingState.COMPLETED
    assert store.get_status(job_id).progress == 100
    assert store.get_result(job_id).answers == ["30 days"]


def test_partial_result_keeps_reported_terminal_status():
    store = InMemoryStatusStore()
    job_id = store.store_request("doc", ["q"])
    reported = ProcessingStatus(ProcessingState.PARTIAL, "Processing cancelled after 1 of 2 questions", 75)
    store.report(job_id, reported)

    store.store_result(job_id, make_result(ProcessingState.PARTIAL))
    assert store.get_status(job_id) == reported


def test_partial_result_without_terminal_report():
    store = InMemoryStatusStore()
    job_id = store.store_request("doc", ["q"])
    store.store_result(job_id, make_result(ProcessingState.PARTIAL))
    assert store.get_status(job_id).status is ProcessingState.PARTIAL


def test_unknown_job():
    store = InMemoryStatusStore()
    assert store.get_status("nope") is None
    assert store.get_result("nope") is None
