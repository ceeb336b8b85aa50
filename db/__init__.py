"""
db/ - Database Layer
====================
PostgreSQL connection pool and schema bootstrap for the scheduler tables.
This layer is the lowest in the architecture and has no dependencies on other layers.
"""
