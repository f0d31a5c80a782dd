"""
botgraph.api

HTTP surface: interaction webhook, deployment management, authoring helpers.
"""

# Package marker.
