"""
botgraph.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Request and invocation context propagation for log enrichment.
"""

# Package marker.
