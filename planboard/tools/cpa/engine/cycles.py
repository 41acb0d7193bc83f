from typing import Dict, Iterable, List

from planboard.app.db.models import CycleError, DependencyModel, TaskModel

# DFS colours
_UNVISITED, _ON_STACK, _DONE = 0, 1, 2


def _describe_cycle(nodes: List[int]) -> CycleError:
    closing = (nodes[-1], nodes[0])
    edges = [(nodes[i], nodes[i + 1]) for i in range(len(nodes) - 1)] + [closing]
    chain = " -> ".join(str(n) for n in nodes + [nodes[0]])
    return CycleError(
        edges=edges,
        closing_edge=closing,
        message=f"Circular dependency detected: {chain} (closed by activity {closing[0]} -> {closing[1]})",
    )


def validate_dependencies(tasks: Iterable[TaskModel], dependencies: Iterable[DependencyModel]) -> List[CycleError]:
    """Return one CycleError per back edge found among the active dependencies.

    An empty list means the active graph is a DAG. Dependencies pointing at
    activities outside ``tasks`` are ignored here; the graph index reports them.
    """
    task_ids = [t.id for t in tasks]
    successors: Dict[int, List[int]] = {tid: [] for tid in task_ids}
    for dep in dependencies:
        if not dep.is_active:
            continue
        if dep.predecessor_id not in successors or dep.successor_id not in successors:
            continue
        successors[dep.predecessor_id].append(dep.successor_id)

    colour = {tid: _UNVISITED for tid in task_ids}
    errors: List[CycleError] = []
    for root in task_ids:
        if colour[root] != _UNVISITED:
            continue
        colour[root] = _ON_STACK
        path = [root]
        stack = [iter(successors[root])]
        while stack:
            for nxt in stack[-1]:
                if colour[nxt] == _ON_STACK:
                    errors.append(_describe_cycle(path[path.index(nxt):]))
                elif colour[nxt] == _UNVISITED:
                    colour[nxt] = _ON_STACK
                    path.append(nxt)
                    stack.append(iter(successors[nxt]))
                    break
            else:
                colour[path.pop()] = _DONE
                stack.pop()
    return errors
