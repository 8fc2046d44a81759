"""
Test suite for the ToDo API harness.

- unit/: offline tests of the harness against fakes (run by default)
- api/: live suites against a running ToDo API (``pytest -m live``)
- performance/: Locust workloads and the CSV threshold gate
"""
