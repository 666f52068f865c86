#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid KeyErrors during config load if any
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import leadchat.main
    print("Import leadchat.main: OK")

    import leadchat.queue.jobs
    print("Import leadchat.queue.jobs: OK")

    from leadchat.core import state_machine as sm
    from leadchat.core.step_graph import next_step, prompt
    from leadchat.store.models import CollectedData

    missing = [s for s in sm.STEP_ORDER if not prompt(s, CollectedData(name="x")).text]
    if missing:
        raise RuntimeError(f"steps without prompt copy: {missing}")
    if next_step(sm.MAIN_DIFFICULTY, CollectedData()) != sm.DONE:
        raise RuntimeError("step graph does not terminate at done")
    print("Step graph: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
