"""
botgraph.db.repositories

Repository package.
"""

# Package marker; repositories are imported directly from submodules.


# --- Module Notes -----------------------------------------------------------
# Repositories are thin; deploy/undeploy orchestration lives in services.dispatch.
