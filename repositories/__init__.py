"""
repositories/ - Data Access Layer
==================================
Each repository encapsulates all SQL queries for a specific table.
Repositories receive raw data from the database and return domain model objects.
Inserts the jobs rely on for idempotency use ON CONFLICT DO NOTHING.
"""
