"""
Domain layer.

The domain layer contains the core business logic of the highlight store.
It has no dependencies on external frameworks or infrastructure.

This layer contains:
- Entities: the create/delete highlight events
- Value Objects: typed ids and revisions
- Domain Services: match formatting, sorting and event filtering
"""
