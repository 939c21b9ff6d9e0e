"""Typed filtergraph representation.

Nodes are appended in order by :class:`GraphBuilder`; a node may only consume
input streams (``"0:v"``) or outputs of nodes appended before it. The built
:class:`RenderGraph` is validated and frozen before it is serialized into the
``-filter_complex`` text ffmpeg expects.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Union

from .errors import ConfigurationError
from .utils import format_number

ParamValue = Union[str, int, float]

_STREAM_REF_RE = re.compile(r"^(\d+):([va])$")
_NEEDS_QUOTING = set(",;[]:'()\\ \n")


@dataclass(frozen=True)
class GraphNode:
    id: str
    op: str
    params: tuple[tuple[str | None, ParamValue], ...] = ()
    inputs: tuple[str, ...] = ()

    def param(self, key: str) -> ParamValue | None:
        for name, value in self.params:
            if name == key:
                return value
        return None


@dataclass(frozen=True)
class InputSpec:
    path: str
    options: tuple[str, ...] = ()

    def to_args(self) -> list[str]:
        return [*self.options, "-i", self.path]


def _format_value(value: ParamValue) -> str:
    if isinstance(value, (int, float)):
        return format_number(value)
    text = str(value)
    if any(char in _NEEDS_QUOTING for char in text):
        return f"'{text}'"
    return text


def serialize_node(node: GraphNode) -> str:
    labels_in = "".join(f"[{ref}]" for ref in node.inputs)
    args = []
    for key, value in node.params:
        rendered = _format_value(value)
        args.append(rendered if key is None else f"{key}={rendered}")
    body = node.op if not args else f"{node.op}=" + ":".join(args)
    return f"{labels_in}{body}[{node.id}]"


@dataclass(frozen=True)
class RenderGraph:
    inputs: tuple[InputSpec, ...]
    nodes: tuple[GraphNode, ...]
    video_output: str
    audio_output: str | None = None

    @property
    def node_ids(self) -> tuple[str, ...]:
        return tuple(node.id for node in self.nodes)

    def node(self, node_id: str) -> GraphNode:
        for node in self.nodes:
            if node.id == node_id:
                return node
        raise KeyError(node_id)

    def nodes_by_op(self, op: str) -> list[GraphNode]:
        return [node for node in self.nodes if node.op == op]

    def validate(self) -> None:
        """Raise ConfigurationError unless the graph is a well-formed DAG."""
        defined: set[str] = set()
        consumed: dict[str, int] = {}
        for node in self.nodes:
            if node.id in defined:
                raise ConfigurationError(f"Duplicate graph node id {node.id!r}")
            for ref in node.inputs:
                match = _STREAM_REF_RE.match(ref)
                if match:
                    if int(match.group(1)) >= len(self.inputs):
                        raise ConfigurationError(f"Node {node.id!r} references missing input stream {ref!r}")
                    continue
                if ref not in defined:
                    raise ConfigurationError(f"Node {node.id!r} references undefined node {ref!r}")
                consumed[ref] = consumed.get(ref, 0) + 1
                if consumed[ref] > 1:
                    raise ConfigurationError(f"Node output {ref!r} is consumed more than once")
            defined.add(node.id)

        outputs = {self.video_output}
        if self.audio_output:
            outputs.add(self.audio_output)
        for output in outputs:
            if output not in defined:
                raise ConfigurationError(f"Graph output {output!r} is not defined")
            if output in consumed:
                raise ConfigurationError(f"Graph output {output!r} is also consumed internally")
        dangling = [node_id for node_id in defined if node_id not in consumed and node_id not in outputs]
        if dangling:
            raise ConfigurationError(f"Graph nodes with unconnected outputs: {', '.join(sorted(dangling))}")

    def describe(self) -> str:
        return ";".join(serialize_node(node) for node in self.nodes)

    def input_args(self) -> list[str]:
        args: list[str] = []
        for spec in self.inputs:
            args.extend(spec.to_args())
        return args

    def map_args(self) -> list[str]:
        args = ["-map", f"[{self.video_output}]"]
        if self.audio_output:
            args.extend(["-map", f"[{self.audio_output}]"])
        return args


@dataclass
class GraphBuilder:
    inputs: list[InputSpec] = field(default_factory=list)
    nodes: list[GraphNode] = field(default_factory=list)

    def add_input(self, path: str, options: Iterable[str] = ()) -> int:
        self.inputs.append(InputSpec(path=str(path), options=tuple(options)))
        return len(self.inputs) - 1

    def add(
        self,
        node_id: str,
        op: str,
        params: Iterable[tuple[str | None, ParamValue]] = (),
        inputs: Iterable[str] = (),
    ) -> str:
        self.nodes.append(GraphNode(id=node_id, op=op, params=tuple(params), inputs=tuple(inputs)))
        return node_id

    def chain(self, source: str, prefix: str, steps: Iterable[tuple[str, str, Iterable[tuple[str | None, ParamValue]]]]) -> str:
        """Append single-input nodes one after another, returning the last id."""
        current = source
        for suffix, op, params in steps:
            current = self.add(f"{prefix}_{suffix}", op, params, inputs=(current,))
        return current

    def build(self, video_output: str, audio_output: str | None = None) -> RenderGraph:
        graph = RenderGraph(
            inputs=tuple(self.inputs),
            nodes=tuple(self.nodes),
            video_output=video_output,
            audio_output=audio_output,
        )
        graph.validate()
        return graph
