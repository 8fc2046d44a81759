"""
Root test configuration.

Locust monkey-patches the standard library with gevent on import; that
must happen before ``ssl``/``urllib3`` are imported by the harness, or
creating an SSL context recurses forever.  Importing locust here, ahead
of every other conftest and test module, keeps the patch order right.
"""

import locust  # noqa: F401
