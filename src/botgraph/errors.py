"""
botgraph.errors

Error taxonomy shared by the graph runtime, dispatch router and API layer.

Responsibilities:
- Name each failure class the system distinguishes.
- Carry structured detail for logs; user-facing text stays generic.
"""

from __future__ import annotations


class BotGraphError(Exception):
    pass


class GraphStructureError(BotGraphError):
    """
    Raised when an authored graph fails structural validation (start node count,
    disconnected nodes). Blocks authoring saves; not re-checked at run time.
    """

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "invalid graph")
        self.errors = list(errors)


class NodeExecutionError(BotGraphError):
    def __init__(self, *, node_id: str, node_type: str, cause: BaseException) -> None:
        super().__init__(f"node {node_id} ({node_type}) failed: {cause}")
        self.node_id = node_id
        self.node_type = node_type
        self.cause = cause


class ExecutionTimeoutError(BotGraphError):
    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"Execution timeout after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class ExternalRegistrationError(BotGraphError):
    pass


class NotDeployedError(BotGraphError):
    def __init__(self, *, guild_id: str, command_name: str) -> None:
        super().__init__(f"command /{command_name} is not deployed to guild {guild_id}")
        self.guild_id = guild_id
        self.command_name = command_name


class ConfigurationError(BotGraphError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required configuration: {', '.join(missing)}")
        self.missing = list(missing)


# --- Module Notes -----------------------------------------------------------
# No retries are implemented for any of these; every failure is surfaced once.
