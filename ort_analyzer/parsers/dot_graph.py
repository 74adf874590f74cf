"""Parse Graphviz DOT dependency graphs into nodes and edges.

BitBake writes its dependency graphs as plain DOT, one statement per line:

    digraph depends {
    "busybox" [label="busybox :1.31.0-r0\\n/poky/meta/recipes-core/busybox/busybox_1.31.0.bb"]
    "busybox" -> "glibc"
    "busybox" -> "update-rc.d" [style=dashed]
    }

The parser is two-pass: all node declarations are collected first, then edge
statements are resolved against them, so statement order does not matter.
An edge to a node that was never declared is a ParseError.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ort_analyzer.exceptions import ParseError

_PUNCTUATION = {"[", "]", "{", "}", ";", ",", "=", ":"}
_HEADER_KEYWORDS = {"strict", "digraph", "graph", "subgraph"}
_DEFAULT_ATTR_KEYWORDS = {"graph", "node", "edge"}


@dataclass(frozen=True)
class _Token:
    kind: str  # "id" | "edgeop" | "newline" | one of _PUNCTUATION
    value: str
    line: int


@dataclass(frozen=True)
class DotNode:
    id: str
    label: str
    attributes: dict[str, str] = field(default_factory=dict, hash=False, compare=False)


@dataclass
class DotGraph:
    """Parsed graph: declared nodes (in declaration order) and de-duplicated edges."""

    nodes: dict[str, DotNode] = field(default_factory=dict)
    edges: list[tuple[str, str]] = field(default_factory=list)

    def adjacency(self) -> dict[str, list[str]]:
        """Successor lists for every node, in edge order."""
        adj: dict[str, list[str]] = {node_id: [] for node_id in self.nodes}
        for src, dst in self.edges:
            adj[src].append(dst)
        return adj

    def roots(self) -> list[str]:
        """Nodes without incoming edges (excluding self-loops), in declaration order."""
        targets = {dst for src, dst in self.edges if src != dst}
        return [node_id for node_id in self.nodes if node_id not in targets]


def _tokenize(content: str) -> list[_Token]:
    tokens: list[_Token] = []
    i = 0
    line = 1
    n = len(content)
    bracket_depth = 0

    while i < n:
        ch = content[i]

        if ch == "\n":
            if bracket_depth == 0:
                tokens.append(_Token("newline", "\n", line))
            line += 1
            i += 1
            continue
        if ch in " \t\r":
            i += 1
            continue
        # Comments: // and # to end of line, /* ... */ blocks.
        if ch == "#" or content.startswith("//", i):
            end = content.find("\n", i)
            i = n if end == -1 else end
            continue
        if content.startswith("/*", i):
            end = content.find("*/", i + 2)
            if end == -1:
                raise ParseError("unterminated comment", line=line)
            line += content.count("\n", i, end)
            i = end + 2
            continue
        if content.startswith("->", i) or content.startswith("--", i):
            tokens.append(_Token("edgeop", content[i : i + 2], line))
            i += 2
            continue
        if ch == '"':
            start_line = line
            i += 1
            buf: list[str] = []
            while i < n and content[i] != '"':
                if content[i] == "\\" and i + 1 < n:
                    nxt = content[i + 1]
                    if nxt == '"':
                        buf.append('"')
                    elif nxt == "\n":
                        line += 1  # line continuation
                    else:
                        buf.append(content[i : i + 2])
                    i += 2
                    continue
                if content[i] == "\n":
                    line += 1
                buf.append(content[i])
                i += 1
            if i >= n:
                raise ParseError("unterminated quoted string", line=start_line)
            i += 1
            tokens.append(_Token("id", "".join(buf), start_line))
            continue
        if ch in _PUNCTUATION:
            if ch == "[":
                bracket_depth += 1
            elif ch == "]":
                bracket_depth = max(0, bracket_depth - 1)
            tokens.append(_Token(ch, ch, line))
            i += 1
            continue

        start = i
        while i < n and not content[i].isspace() and content[i] not in _PUNCTUATION and content[i] != '"':
            if content.startswith("->", i) or content.startswith("--", i):
                break
            i += 1
        if i == start:
            raise ParseError("unexpected character", line=line, fragment=ch)
        tokens.append(_Token("id", content[start:i], line))

    return tokens


def _split_statements(tokens: list[_Token]) -> list[list[_Token]]:
    statements: list[list[_Token]] = []
    current: list[_Token] = []
    depth = 0
    for tok in tokens:
        if tok.kind == "[":
            depth += 1
        elif tok.kind == "]":
            depth -= 1
        if depth == 0 and tok.kind in ("newline", ";", "{", "}"):
            if current:
                # Keep the brace so headers ("digraph x {") can be recognized.
                if tok.kind == "{":
                    current.append(tok)
                statements.append(current)
            current = []
            continue
        current.append(tok)
    if current:
        statements.append(current)
    return statements


def _parse_attributes(stmt: list[_Token], pos: int) -> tuple[dict[str, str], int]:
    attrs: dict[str, str] = {}
    while pos < len(stmt) and stmt[pos].kind == "[":
        pos += 1
        while pos < len(stmt) and stmt[pos].kind != "]":
            tok = stmt[pos]
            if tok.kind in (",", ";"):
                pos += 1
                continue
            if tok.kind != "id":
                raise ParseError("malformed attribute list", line=tok.line, fragment=tok.value)
            key = tok.value
            pos += 1
            if pos < len(stmt) and stmt[pos].kind == "=":
                pos += 1
                if pos >= len(stmt) or stmt[pos].kind != "id":
                    raise ParseError("missing attribute value", line=tok.line, fragment=key)
                attrs[key] = stmt[pos].value
                pos += 1
            else:
                attrs[key] = "true"
        if pos >= len(stmt):
            raise ParseError("unterminated attribute list", line=stmt[-1].line)
        pos += 1  # skip "]"
    return attrs, pos


def _parse_node_id(stmt: list[_Token], pos: int) -> tuple[str, int]:
    if pos >= len(stmt) or stmt[pos].kind != "id":
        tok = stmt[min(pos, len(stmt) - 1)]
        raise ParseError("expected node id", line=tok.line, fragment=tok.value)
    node_id = stmt[pos].value
    pos += 1
    # Ports ("node:port" or "node:port:compass") do not change the node.
    while pos + 1 < len(stmt) and stmt[pos].kind == ":" and stmt[pos + 1].kind == "id":
        pos += 2
    return node_id, pos


def parse_dot(content: str) -> DotGraph:
    """Parse DOT *content* into a :class:`DotGraph`.

    Raises ParseError on malformed statements or edges with undeclared endpoints.
    """
    graph = DotGraph()
    pending_edges: list[tuple[str, str, int]] = []

    for stmt in _split_statements(_tokenize(content)):
        first = stmt[0]

        if stmt[-1].kind == "{":
            if first.kind == "id" and first.value.lower() in _HEADER_KEYWORDS:
                continue
            raise ParseError("unexpected block", line=first.line, fragment=first.value)

        if first.kind != "id":
            raise ParseError("unexpected token", line=first.line, fragment=first.value)

        if first.value.lower() in _DEFAULT_ATTR_KEYWORDS and len(stmt) > 1 and stmt[1].kind == "[":
            continue
        if len(stmt) >= 3 and stmt[1].kind == "=" and stmt[2].kind == "id":
            continue  # graph attribute, e.g. rankdir=LR

        endpoints: list[str] = []
        node_id, pos = _parse_node_id(stmt, 0)
        endpoints.append(node_id)
        while pos < len(stmt) and stmt[pos].kind == "edgeop":
            node_id, pos = _parse_node_id(stmt, pos + 1)
            endpoints.append(node_id)

        attrs, pos = _parse_attributes(stmt, pos)
        if pos != len(stmt):
            tok = stmt[pos]
            raise ParseError("unexpected trailing tokens", line=tok.line, fragment=tok.value)

        if len(endpoints) == 1:
            existing = graph.nodes.get(node_id)
            merged = dict(existing.attributes) if existing else {}
            merged.update(attrs)
            graph.nodes[node_id] = DotNode(
                id=node_id, label=merged.get("label", node_id), attributes=merged
            )
        else:
            for src, dst in zip(endpoints, endpoints[1:]):
                pending_edges.append((src, dst, first.line))

    seen: set[tuple[str, str]] = set()
    for src, dst, line in pending_edges:
        for endpoint in (src, dst):
            if endpoint not in graph.nodes:
                raise ParseError("edge references undeclared node", line=line, fragment=endpoint)
        if (src, dst) in seen:
            continue
        seen.add((src, dst))
        graph.edges.append((src, dst))

    return graph
