"""
botgraph.platform

Chat platform boundary (Discord REST over httpx).

Responsibilities:
- Command registration, interaction responses, member roles, message polling.
- Interaction event parsing and request signature verification.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The runtime and dispatch router depend on small protocols; this package is the
# only place that knows URLs, auth headers and payload shapes.
