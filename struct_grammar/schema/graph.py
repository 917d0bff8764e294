"""
Cycle detection over the reference graph of a schema source.

Providers collect every named definition reachable from the root (JSON Schema
``$defs`` entries, Pydantic model classes) and run this check once before
building any nodes, so a cyclic source never produces a partial tree and the
compilers can assume acyclic input.
"""

from typing import Callable, Dict, Hashable, Iterable, List, Optional

_VISITING = 1
_DONE = 2


def find_cycle(
    root: Hashable,
    neighbours: Callable[[Hashable], Iterable[Hashable]],
) -> Optional[List[Hashable]]:
    """
    Return the first reference cycle reachable from ``root``, or None.

    Args:
        root: Starting definition
        neighbours: Returns the definitions directly referenced by a definition

    Returns:
        Optional[List]: The cycle as a path whose last element repeats an
        earlier one, e.g. ``["Node", "Child", "Node"]``
    """
    state: Dict[Hashable, int] = {}
    path: List[Hashable] = [root]
    stack = [iter(neighbours(root))]
    state[root] = _VISITING

    while stack:
        for nxt in stack[-1]:
            seen = state.get(nxt)
            if seen == _VISITING:
                return path[path.index(nxt):] + [nxt]
            if seen is None:
                state[nxt] = _VISITING
                path.append(nxt)
                stack.append(iter(neighbours(nxt)))
                break
        else:
            state[path.pop()] = _DONE
            stack.pop()

    return None
