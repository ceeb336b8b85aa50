"""
services/ - Business Logic Layer
================================
Renewal date arithmetic, the backfill and reminder jobs, reminder
delivery and cleanup tasks. Services talk to repositories, never to SQL.
"""
