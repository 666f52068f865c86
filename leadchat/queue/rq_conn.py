from typing import Optional

from redis import Redis
from rq import Queue
from leadchat.settings import settings

# A notice job is one webhook POST; anything slower is a stuck worker
NOTICE_JOB_TIMEOUT_SEC = 60


def get_queue(name: Optional[str] = None) -> Queue:
    # rq pickles job data, so this connection must not decode responses
    conn = Redis.from_url(settings.REDIS_URL)
    return Queue(name or settings.RQ_QUEUE_NAME, connection=conn, default_timeout=NOTICE_JOB_TIMEOUT_SEC)
