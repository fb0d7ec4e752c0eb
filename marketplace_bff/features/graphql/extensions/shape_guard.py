"""Static query shape limits.

Rejects operations whose nesting depth or weighted cost exceeds the
configured limits before any resolver runs, so an oversized query never
produces partial data or touches a store.

Depth counts field nesting below the operation root: top-level fields sit
at depth 0, so ``{ me { name } }`` has depth 1. Cost is additive: every
field costs 1, list and connection fields cost ``list_weight``, and named
expensive fields carry their own weight. Fragment spreads and inline
fragments are followed; introspection fields are free.

Usage:
    from marketplace_bff.features.graphql.extensions.shape_guard import QueryShapeGuard

    extensions = [
        QueryShapeGuard(max_depth=6, max_complexity=1000),
    ]
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, ClassVar

from graphql import GraphQLError
from graphql.language import (
    FieldNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
)
from graphql.type import (
    GraphQLInterfaceType,
    GraphQLList,
    GraphQLNonNull,
    GraphQLObjectType,
    get_named_type,
)
from graphql.validation import ValidationRule
from strawberry.extensions import AddValidationRules

from marketplace_bff.core.exceptions import ShapeRejectedError
from marketplace_bff.infra.metrics.tracking import track_shape_rejection

if TYPE_CHECKING:
    from collections.abc import Callable

    from graphql import GraphQLSchema
    from graphql.language import FragmentDefinitionNode, SelectionSetNode

logger = logging.getLogger(__name__)

__all__ = ["QueryShapeGuard", "ShapeMeasure", "ShapeWeights", "create_shape_rule", "measure_operation"]

DEPTH_LIMIT_EXCEEDED = "DEPTH_LIMIT_EXCEEDED"
COMPLEXITY_LIMIT_EXCEEDED = "COMPLEXITY_LIMIT_EXCEEDED"


@dataclass(frozen=True)
class ShapeWeights:
    """Cost table for the shape guard."""

    field_cost: int = 1
    list_weight: int = 10
    expensive_fields: dict[str, int] = field(default_factory=lambda: {"searchProducts": 20})


@dataclass(frozen=True)
class ShapeMeasure:
    depth: int
    complexity: int


def _is_list_like(field_type: Any) -> bool:
    if isinstance(field_type, GraphQLNonNull):
        field_type = field_type.of_type
    if isinstance(field_type, GraphQLList):
        return True
    named = get_named_type(field_type)
    return named is not None and named.name.endswith("Connection")


def measure_operation(
    operation: OperationDefinitionNode,
    schema: GraphQLSchema,
    get_fragment: Callable[[str], FragmentDefinitionNode | None],
    weights: ShapeWeights | None = None,
) -> ShapeMeasure:
    """Compute depth and weighted cost of one operation.

    Fields unknown to the schema still count toward depth and cost; the
    standard validation rules report them separately.
    """
    weights = weights or ShapeWeights()
    root_type = schema.get_root_type(operation.operation)

    def visit(
        selection_set: SelectionSetNode,
        parent_type: Any,
        depth: int,
        visiting: frozenset[str],
    ) -> tuple[int, int]:
        cost = 0
        deepest = 0
        for selection in selection_set.selections:
            if isinstance(selection, FieldNode):
                name = selection.name.value
                if name.startswith("__"):
                    continue
                field_def = None
                if isinstance(parent_type, (GraphQLObjectType, GraphQLInterfaceType)):
                    field_def = parent_type.fields.get(name)
                if name in weights.expensive_fields:
                    cost += weights.expensive_fields[name]
                elif field_def is not None and _is_list_like(field_def.type):
                    cost += weights.list_weight
                else:
                    cost += weights.field_cost
                deepest = max(deepest, depth)
                if selection.selection_set is not None:
                    child_type = get_named_type(field_def.type) if field_def is not None else None
                    child_cost, child_depth = visit(
                        selection.selection_set,
                        child_type,
                        depth + 1,
                        visiting,
                    )
                    cost += child_cost
                    deepest = max(deepest, child_depth)

            elif isinstance(selection, InlineFragmentNode):
                fragment_type = parent_type
                if selection.type_condition is not None:
                    fragment_type = schema.get_type(selection.type_condition.name.value)
                child_cost, child_depth = visit(selection.selection_set, fragment_type, depth, visiting)
                cost += child_cost
                deepest = max(deepest, child_depth)

            elif isinstance(selection, FragmentSpreadNode):
                fragment_name = selection.name.value
                # Cycles are reported by NoFragmentCyclesRule
                if fragment_name in visiting:
                    continue
                fragment = get_fragment(fragment_name)
                if fragment is None:
                    continue
                fragment_type = schema.get_type(fragment.type_condition.name.value)
                child_cost, child_depth = visit(
                    fragment.selection_set,
                    fragment_type,
                    depth,
                    visiting | {fragment_name},
                )
                cost += child_cost
                deepest = max(deepest, child_depth)

        return cost, deepest

    complexity, depth = visit(operation.selection_set, root_type, 0, frozenset())
    return ShapeMeasure(depth=depth, complexity=complexity)


class _QueryShapeRule(ValidationRule):
    """Validation rule reporting operations that exceed the shape limits."""

    max_depth: ClassVar[int] = 6
    max_complexity: ClassVar[int] = 1000
    weights: ClassVar[ShapeWeights] = ShapeWeights()

    def enter_operation_definition(self, node: OperationDefinitionNode, *_args: Any) -> None:
        measure = measure_operation(node, self.context.schema, self.context.get_fragment, self.weights)
        operation_name = node.name.value if node.name else None

        if measure.depth > self.max_depth:
            self._reject(
                node,
                f"Query depth {measure.depth} exceeds limit of {self.max_depth}",
                reason=DEPTH_LIMIT_EXCEEDED,
                operation_name=operation_name,
                value=measure.depth,
                limit=self.max_depth,
            )
        elif measure.complexity > self.max_complexity:
            self._reject(
                node,
                f"Query complexity {measure.complexity} exceeds limit of {self.max_complexity}",
                reason=COMPLEXITY_LIMIT_EXCEEDED,
                operation_name=operation_name,
                value=measure.complexity,
                limit=self.max_complexity,
            )
        else:
            logger.debug(
                "GraphQL query shape",
                extra={
                    "operation_name": operation_name,
                    "depth": measure.depth,
                    "complexity": measure.complexity,
                },
            )

    def _reject(
        self,
        node: OperationDefinitionNode,
        message: str,
        *,
        reason: str,
        operation_name: str | None,
        value: int,
        limit: int,
    ) -> None:
        track_shape_rejection(reason)
        logger.warning(
            "GraphQL query shape rejected",
            extra={"operation_name": operation_name, "reason": reason, "value": value, "limit": limit},
        )
        self.report_error(
            GraphQLError(
                message,
                node,
                original_error=ShapeRejectedError(
                    message,
                    extra={"reason": reason, "value": value, "limit": limit},
                ),
            ),
        )


def create_shape_rule(
    max_depth: int = 6,
    max_complexity: int = 1000,
    weights: ShapeWeights | None = None,
) -> type[ValidationRule]:
    """Build a validation rule class bound to the given limits.

    graphql-core instantiates rules with only the validation context, so the
    limits travel as class attributes.
    """
    return type(
        "QueryShapeRule",
        (_QueryShapeRule,),
        {
            "max_depth": max_depth,
            "max_complexity": max_complexity,
            "weights": weights or ShapeWeights(),
        },
    )


class QueryShapeGuard(AddValidationRules):
    """Schema extension installing the shape rule.

    Example:
        schema = strawberry.Schema(
            query=Query,
            extensions=[QueryShapeGuard(max_depth=6, max_complexity=1000)],
        )
    """

    def __init__(
        self,
        max_depth: int = 6,
        max_complexity: int = 1000,
        list_weight: int = 10,
        expensive_fields: dict[str, int] | None = None,
    ) -> None:
        weights = ShapeWeights(list_weight=list_weight)
        if expensive_fields is not None:
            weights = ShapeWeights(list_weight=list_weight, expensive_fields=expensive_fields)
        self.max_depth = max_depth
        self.max_complexity = max_complexity
        super().__init__([create_shape_rule(max_depth, max_complexity, weights)])
