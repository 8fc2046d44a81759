"""
Performance testing package (Locust-based).

Two workloads against the ToDo API, each with its own locustfile because
Locust allows one load shape per file:

- ``locustfile_read.py`` -- ramp to 100 readers, hold, ramp down
- ``locustfile_mixed.py`` -- 15 readers and 5 writers for one minute

Both log in once on ``test_start`` and share the token, fail the process
when p95 latency reaches 500 ms, and write CSV stats that
``check_thresholds.py`` can gate on in CI.

Key Concepts Demonstrated:
- Stage-based load shapes with linear ramps
- Fixed-size user populations per traffic type
- CSV-based threshold gates for automated pass/fail decisions
"""
