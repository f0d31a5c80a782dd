"""
botgraph.graph

Command graph package.

Responsibilities:
- Graph document schema and structural validation.
- Node handlers, interpolation, and the traversal runtime shared by both backends.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Effect backends live in `botgraph.runtime`; this package never talks to the platform.
