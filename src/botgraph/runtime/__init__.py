"""
botgraph.runtime

Effect backends for the graph runtime.

Responsibilities:
- `live`: realize outputs and actions against the chat platform under a time budget.
- `simulation`: record outputs without external calls, for the authoring tool.
"""

# Package marker.
