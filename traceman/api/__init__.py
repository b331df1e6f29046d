"""
Traceman REST API.

Provides DRF ViewSets, all backed by the configured document store, for:
- Schedule (read, delete with optional audit purge)
- Schedule items (lifecycle: create, edit, transition, reschedule, history)
- Audit records (read-only)
- Recipe, staff and supplier catalog (read-only, supplier lookup)
- Calendar events
"""
