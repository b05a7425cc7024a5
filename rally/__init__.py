"""
Rally — Campaigns, Actions & Enrollment Service
=================================================
Serves campaigns, their actions and each member's progress through them
as nested object graphs, and guards the one-campaign-per-member rule on
enrollment.

Package layout::

    rally/
    ├── config.py          # YAML → typed Python config
    ├── errors.py          # NotFound / ConstraintViolation / ...
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   ├── models.py      # ORM models (5 tables)
    │   └── seed.py        # Idempotent campaign seeder
    ├── engine/
    │   ├── graph.py       # Relationship graph (edges, cardinality)
    │   └── traversal.py   # Batched, level-by-level eager loader
    ├── services/
    │   ├── enrollment_service.py   # User ↔ Campaign membership
    │   ├── completion_service.py   # UserAction.completed toggling
    │   ├── user_action_service.py  # UserAction issuing
    │   ├── identity_service.py     # Caller → User, current campaign
    │   └── query_service.py        # Named read operations
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine, config and identity dependencies
        ├── views.py       # Row / tree → JSON shapes
        └── routes/        # Campaign, user and user-action endpoints
"""

__version__ = "0.1.0"
