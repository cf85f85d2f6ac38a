"""
Diagram validation - Check diagrams for structural issues.

Dangling edges (an endpoint that is not a node of the diagram) are tolerated
everywhere downstream; `find_dangling_edges` and `drop_dangling_edges` make
that tolerance explicit so callers can report what gets ignored.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterator

if TYPE_CHECKING:
    from .models import Diagram, Edge


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    node_id: str | None = None
    edge_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {"type": self.severity.value, "message": self.message}
        if self.node_id:
            result["node_id"] = self.node_id
        if self.edge_id:
            result["edge_id"] = self.edge_id
        return result


def find_dangling_edges(diagram: "Diagram") -> list["Edge"]:
    """Edges whose source or target is not a node of the diagram."""
    node_ids = {n.id for n in diagram.nodes}
    return [e for e in diagram.edges if e.source not in node_ids or e.target not in node_ids]


def drop_dangling_edges(diagram: "Diagram") -> tuple["Diagram", list["Edge"]]:
    """
    Remove dangling edges.

    Returns:
        (diagram without dangling edges, the dropped edges). The diagram is
        returned unchanged when nothing was dropped.
    """
    dangling = find_dangling_edges(diagram)
    if not dangling:
        return diagram, []
    dropped = {id(e) for e in dangling}
    kept = [e for e in diagram.edges if id(e) not in dropped]
    return diagram.model_copy(update={"edges": kept}), dangling


# --- Checks ---
# Each check yields the issues it finds on a non-empty diagram.

def _orphans(diagram: "Diagram") -> Iterator[ValidationIssue]:
    # A lone node is a complete diagram, not an orphan
    if len(diagram.nodes) < 2:
        return
    touched = {e.source for e in diagram.edges} | {e.target for e in diagram.edges}
    orphans = [f"{n.label} ({n.id})" for n in diagram.nodes if n.id not in touched]
    if orphans:
        yield ValidationIssue(IssueSeverity.WARNING, f"Orphan nodes (no connections): {', '.join(orphans)}")


def _blank_labels(diagram: "Diagram") -> Iterator[ValidationIssue]:
    for node in diagram.nodes:
        if not node.label.strip():
            yield ValidationIssue(IssueSeverity.WARNING, "Node has an empty label", node_id=node.id)


def _missing_endpoints(diagram: "Diagram") -> Iterator[ValidationIssue]:
    node_ids = {n.id for n in diagram.nodes}
    for edge in diagram.edges:
        for role, endpoint in (("source", edge.source), ("target", edge.target)):
            if endpoint not in node_ids:
                yield ValidationIssue(
                    IssueSeverity.ERROR,
                    f"Edge references non-existent {role} node: {endpoint}",
                    edge_id=edge.id,
                )


def _self_loops(diagram: "Diagram") -> Iterator[ValidationIssue]:
    for edge in diagram.edges:
        if edge.source == edge.target:
            yield ValidationIssue(
                IssueSeverity.WARNING,
                "Self-referencing edge (node points to itself)",
                node_id=edge.source,
                edge_id=edge.id,
            )


def _duplicates(diagram: "Diagram") -> Iterator[ValidationIssue]:
    # Repeated messages between two actors are normal, so ordered edges are skipped
    seen: set[tuple[str, str]] = set()
    for edge in diagram.edges:
        if edge.order is not None:
            continue
        pair = (edge.source, edge.target)
        if pair in seen:
            yield ValidationIssue(
                IssueSeverity.WARNING,
                f"Duplicate edge from {edge.source} to {edge.target}",
                edge_id=edge.id,
            )
        seen.add(pair)


def _inheritance_cycles(diagram: "Diagram") -> Iterator[ValidationIssue]:
    parent_of = {e.source: e.target for e in diagram.edges if e.type == "inheritance"}
    reported: set[str] = set()
    for start in parent_of:
        path = [start]
        current = parent_of.get(start)
        while current is not None and current not in path:
            path.append(current)
            current = parent_of.get(current)
        if current == start and start not in reported:
            reported.update(path)
            yield ValidationIssue(
                IssueSeverity.ERROR,
                f"Inheritance cycle: {' -> '.join(path + [start])}",
                node_id=start,
            )


def _extra_roots(diagram: "Diagram") -> Iterator[ValidationIssue]:
    roots = Counter(n.type for n in diagram.nodes)["root"]
    if roots > 1:
        yield ValidationIssue(IssueSeverity.INFO, f"Mind map has {roots} root topics; they are stacked vertically")


CHECKS: list[Callable[["Diagram"], Iterator[ValidationIssue]]] = [
    _orphans,
    _blank_labels,
    _missing_endpoints,
    _self_loops,
    _duplicates,
    _inheritance_cycles,
    _extra_roots,
]


def validate_diagram(diagram: "Diagram") -> list[ValidationIssue]:
    """
    Validate a diagram and return a list of issues.

    Checks for:
    - Empty diagram - INFO
    - Orphan nodes (no connections) - WARNING, skipped for one-node diagrams
    - Missing labels - WARNING
    - Invalid edge references (source/target doesn't exist) - ERROR
    - Self-referencing edges - WARNING
    - Duplicate edges (same source->target) - WARNING, ordered messages exempt
    - Inheritance cycles between classes - ERROR
    - Several mind-map roots - INFO

    Args:
        diagram: The diagram to validate

    Returns:
        List of ValidationIssue objects
    """
    if not diagram.nodes:
        return [ValidationIssue(IssueSeverity.INFO, "Diagram has no nodes")]
    return [issue for check in CHECKS for issue in check(diagram)]


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """Counts by severity; a diagram is valid when it has no errors."""
    counts = Counter(issue.severity for issue in issues)
    return {
        "total": len(issues),
        "errors": counts[IssueSeverity.ERROR],
        "warnings": counts[IssueSeverity.WARNING],
        "info": counts[IssueSeverity.INFO],
        "valid": counts[IssueSeverity.ERROR] == 0,
    }
