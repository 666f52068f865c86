from leadchat.core.errors import NotificationError
from leadchat.notify.client import send_notice_http
from leadchat.notify.payloads import build_notice_payload
from leadchat.observability.logging import log
from leadchat.store.record_repo import load_record


def send_completion_notice_job(record_id: str):
    """
    Worker-side delivery of the completion notice for one lead record.
    Raises on failure so RQ marks the job failed; no retry policy is attached,
    the web process already owns the single scheduled retry.
    """
    log(event="notice_job_start", recordId=record_id)
    record = load_record(record_id)
    if record is None:
        log(event="notice_job_missing_record", recordId=record_id)
        raise NotificationError(f"record {record_id} not found")

    ok, status_code, error = send_notice_http(build_notice_payload(record_id, record))
    if not ok:
        log(event="notice_job_failed", recordId=record_id, statusCode=int(status_code), error=error or "")
        raise NotificationError(error or "notice delivery failed")
    log(event="notice_job_delivered", recordId=record_id, statusCode=int(status_code))
    return True
