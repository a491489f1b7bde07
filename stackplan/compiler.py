"""
Resource graph compiler: declarations in, dependency-ordered plan out.
"""
from typing import Dict, Iterable, List, Optional

from stackplan.errors import CyclicDependencyError, DuplicateNameError, UnresolvedReferenceError
from stackplan.models.declaration import ResourceDeclaration
from stackplan.models.plan import PlanStep, ProvisioningPlan

_VISITING = 1
_DONE = 2


def _index_by_name(declarations: List[ResourceDeclaration]) -> Dict[str, ResourceDeclaration]:
    by_name: Dict[str, ResourceDeclaration] = {}
    for d in declarations:
        if d.name in by_name:
            raise DuplicateNameError(d.name)
        by_name[d.name] = d
    return by_name


def build_graph(declarations: Iterable[ResourceDeclaration]) -> Dict[str, List[str]]:
    """
    Map each logical name to the names it references, in discovery order.
    Validates name uniqueness and that every reference resolves.
    """
    decls = list(declarations)
    by_name = _index_by_name(decls)

    edges: Dict[str, List[str]] = {}
    for d in decls:
        targets = []
        for r in d.references:
            if r.target not in by_name:
                raise UnresolvedReferenceError(r.target, d.name)
            targets.append(r.target)
        edges[d.name] = targets
    return edges


def _topological_order(names: List[str], edges: Dict[str, List[str]]) -> List[str]:
    # Iterative DFS, post-order. Roots and each node's children are taken in
    # input order so unrelated resources keep their relative order.
    rank = {name: i for i, name in enumerate(names)}
    state: Dict[str, int] = {}
    order: List[str] = []

    def _children(node: str):
        return iter(sorted(edges[node], key=rank.__getitem__))

    for root in names:
        if root in state:
            continue
        state[root] = _VISITING
        path = [root]
        stack = [(root, _children(root))]
        while stack:
            node, children = stack[-1]
            for child in children:
                seen = state.get(child)
                if seen == _VISITING:
                    raise CyclicDependencyError(path[path.index(child):])
                if seen is None:
                    state[child] = _VISITING
                    path.append(child)
                    stack.append((child, _children(child)))
                    break
            else:
                stack.pop()
                path.pop()
                state[node] = _DONE
                order.append(node)

    return order


def compile(
    declarations: Iterable[ResourceDeclaration],
    target: Optional[Dict[str, Optional[str]]] = None,
) -> ProvisioningPlan:
    """
    Validate the declarations and return them as a ProvisioningPlan in which
    every resource follows all the resources it references.

    target optionally names the deployment environment (account, region)
    the plan is meant for; it travels with the plan and its fingerprint.

    Raises DuplicateNameError, UnresolvedReferenceError or
    CyclicDependencyError; never returns a partial plan.
    """
    decls = list(declarations)
    edges = build_graph(decls)
    by_name = {d.name: d for d in decls}

    order = _topological_order([d.name for d in decls], edges)

    return ProvisioningPlan(
        [
            PlanStep(position=i, declaration=by_name[name], depends_on=tuple(edges[name]))
            for i, name in enumerate(order, 1)
        ],
        target=target,
    )
