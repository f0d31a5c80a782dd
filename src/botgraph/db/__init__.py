"""
botgraph.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, and repositories for projects,
  commands, graph versions and guild deployments.
"""

# Package marker.
