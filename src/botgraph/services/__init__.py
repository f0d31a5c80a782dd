"""
botgraph.services

Process-scoped services: dispatch/deployment routing and the bot lifecycle.
"""

# Package marker.
