"""
Locust scenario user classes.

- :mod:`.read_load` -- authenticated list reads for the ramping workload
- :mod:`.mixed` -- readers and writers running side by side

Concrete users inherit from :class:`.base.SharedTokenUser`, which reads
the token fetched once on ``test_start``.
"""
