"""
models/ - Domain Layer
======================
Plain dataclasses for subscriptions, the records the jobs append,
and job results. No database or network access here.
"""
