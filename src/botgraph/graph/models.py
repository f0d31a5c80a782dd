"""
botgraph.graph.models

Graph document schema (the artifact exchanged with the authoring tool and storage).

Responsibilities:
- Model nodes as a closed, discriminated set keyed by `type`.
- Model edges and declared variables.
- Keep the authored camelCase wire names while exposing snake_case attributes.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class NodeType(enum.StrEnum):
    start = "START"
    send_message = "SEND_MESSAGE"
    send_embed = "SEND_EMBED"
    if_condition = "IF_CONDITION"
    set_variable = "SET_VARIABLE"
    get_variable = "GET_VARIABLE"
    await_reply = "AWAIT_REPLY"
    add_role = "ADD_ROLE"
    remove_role = "REMOVE_ROLE"
    api_call = "API_CALL"
    delay = "DELAY"
    random = "RANDOM"
    math_operation = "MATH_OPERATION"
    end = "END"


class ConditionOperator(enum.StrEnum):
    equals = "equals"
    not_equals = "not_equals"
    greater_than = "greater_than"
    less_than = "less_than"
    contains = "contains"
    starts_with = "starts_with"
    ends_with = "ends_with"
    is_empty = "is_empty"
    is_not_empty = "is_not_empty"


VariableScope = Literal["local", "global", "user", "server"]
VariableType = Literal["string", "number", "boolean", "object"]


class _Wire(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        frozen=True,
    )


class Position(_Wire):
    x: float = 0
    y: float = 0


# --- Node data ---------------------------------------------------------------


class LabelData(_Wire):
    label: str = ""


class SendMessageData(_Wire):
    content: str = ""
    # Stored for the editor; replies always go to the invoking interaction.
    channel_id: str | None = None
    ephemeral: bool = False


class EmbedField(_Wire):
    name: str = ""
    value: str = ""
    inline: bool = False


class SendEmbedData(_Wire):
    title: str = ""
    description: str = ""
    color: str | None = None
    footer: str = ""
    thumbnail: str = ""
    image: str = ""
    fields: list[EmbedField] = Field(default_factory=list)
    # Ignored like SendMessageData.channel_id.
    channel_id: str | None = None
    ephemeral: bool = False


class IfConditionData(_Wire):
    variable: str = Field(default="", validation_alias=AliasChoices("variable", "leftValue"))
    operator: ConditionOperator = ConditionOperator.equals
    value: Any = Field(default="", validation_alias=AliasChoices("value", "rightValue"))
    true_label: str | None = None
    false_label: str | None = None


class SetVariableData(_Wire):
    variable_name: str = "variable"
    value: Any = ""
    scope: VariableScope = "local"
    type: VariableType = "string"


class GetVariableData(_Wire):
    variable_name: str = "variable"
    scope: VariableScope = "local"
    default_value: Any = None


class ReplyFilter(_Wire):
    user_id: str | None = None
    channel_id: str | None = None


class AwaitReplyData(_Wire):
    prompt: str = ""
    timeout: int = 30_000
    variable_name: str = "reply"
    filter: ReplyFilter = Field(default_factory=ReplyFilter)


class RoleData(_Wire):
    user_id: str = ""
    role_id: str = ""


class ApiCallData(_Wire):
    url: str = ""
    method: Literal["GET", "POST", "PUT", "DELETE", "PATCH"] = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    body: str | None = None
    response_variable: str = "response"
    error_variable: str | None = None


class DelayData(_Wire):
    duration: int = 1000


class RandomData(_Wire):
    min: int = 0
    max: int = 100
    variable_name: str = Field(
        default="random", validation_alias=AliasChoices("variableName", "outputVariable")
    )


class MathOperationData(_Wire):
    operation: Literal["add", "subtract", "multiply", "divide", "modulo"] = "add"
    operand1: Any = Field(default="0", validation_alias=AliasChoices("operand1", "leftOperand"))
    operand2: Any = Field(default="0", validation_alias=AliasChoices("operand2", "rightOperand"))
    result_variable: str = Field(
        default="result", validation_alias=AliasChoices("resultVariable", "outputVariable")
    )


# --- Nodes -------------------------------------------------------------------


class _Node(_Wire):
    id: str
    position: Position = Field(default_factory=Position)


class StartNode(_Node):
    type: Literal["START"]
    data: LabelData = Field(default_factory=LabelData)


class SendMessageNode(_Node):
    type: Literal["SEND_MESSAGE"]
    data: SendMessageData = Field(default_factory=SendMessageData)


class SendEmbedNode(_Node):
    type: Literal["SEND_EMBED"]
    data: SendEmbedData = Field(default_factory=SendEmbedData)


class IfConditionNode(_Node):
    type: Literal["IF_CONDITION"]
    data: IfConditionData = Field(default_factory=IfConditionData)


class SetVariableNode(_Node):
    type: Literal["SET_VARIABLE"]
    data: SetVariableData = Field(default_factory=SetVariableData)


class GetVariableNode(_Node):
    type: Literal["GET_VARIABLE"]
    data: GetVariableData = Field(default_factory=GetVariableData)


class AwaitReplyNode(_Node):
    type: Literal["AWAIT_REPLY"]
    data: AwaitReplyData = Field(default_factory=AwaitReplyData)


class AddRoleNode(_Node):
    type: Literal["ADD_ROLE"]
    data: RoleData = Field(default_factory=RoleData)


class RemoveRoleNode(_Node):
    type: Literal["REMOVE_ROLE"]
    data: RoleData = Field(default_factory=RoleData)


class ApiCallNode(_Node):
    type: Literal["API_CALL"]
    data: ApiCallData = Field(default_factory=ApiCallData)


class DelayNode(_Node):
    type: Literal["DELAY"]
    data: DelayData = Field(default_factory=DelayData)


class RandomNode(_Node):
    type: Literal["RANDOM"]
    data: RandomData = Field(default_factory=RandomData)


class MathOperationNode(_Node):
    type: Literal["MATH_OPERATION"]
    data: MathOperationData = Field(default_factory=MathOperationData)


class EndNode(_Node):
    type: Literal["END"]
    data: LabelData = Field(default_factory=LabelData)


GraphNode = Annotated[
    Union[
        StartNode,
        SendMessageNode,
        SendEmbedNode,
        IfConditionNode,
        SetVariableNode,
        GetVariableNode,
        AwaitReplyNode,
        AddRoleNode,
        RemoveRoleNode,
        ApiCallNode,
        DelayNode,
        RandomNode,
        MathOperationNode,
        EndNode,
    ],
    Field(discriminator="type"),
]


class GraphEdge(_Wire):
    id: str
    source: str
    target: str
    source_handle: str | None = None
    target_handle: str | None = None
    label: str | None = None


class GraphVariable(_Wire):
    name: str
    type: VariableType = "string"
    scope: VariableScope = "local"
    default_value: Any = None
    description: str | None = None


class Graph(_Wire):
    """
    One command's behavior: typed action nodes joined by directed edges.

    Instances are immutable; storage keeps one snapshot per version.
    """

    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
    variables: dict[str, GraphVariable] = Field(default_factory=dict)
    metadata: dict[str, Any] | None = None

    def start_nodes(self) -> list[StartNode]:
        return [n for n in self.nodes if isinstance(n, StartNode)]

    def outgoing(self, node_id: str) -> list[GraphEdge]:
        # Declaration order is significant: the first matching edge wins.
        return [e for e in self.edges if e.source == node_id]

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Module Notes -----------------------------------------------------------
# Legacy data keys written by older editor builds (leftValue/rightValue,
# leftOperand/rightOperand, outputVariable) are accepted on read via AliasChoices.
