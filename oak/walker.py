from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple

from .symbol import Symbol


_SCALAR_TYPES = (type(None), bool, int, str, bytes, Symbol)


def identity(node: Any) -> Hashable:
    """Identity key for a node within one walk.

    Containers are tracked by id(). Immutable scalars have no observable
    identity, so equal scalars of the same type share a key. Floats are
    keyed by repr() so 0.0 and -0.0 stay apart and every NaN is one node.
    """
    t = type(node)
    if t is list or t is dict:
        return ("id", id(node))
    if t is float:
        return (float, repr(node))
    if t in _SCALAR_TYPES:
        return (t, node)
    return ("id", id(node))


@dataclass
class Walk:
    seen: List[Any] = field(default_factory=list)
    reseen: List[Any] = field(default_factory=list)
    _index: Dict[Hashable, int] = field(default_factory=dict, repr=False)

    def index_of(self, node: Any) -> int:
        return self._index[identity(node)]


def walk(root: Any, check: Optional[Callable[[Any], None]] = None) -> Walk:
    """Depth-first pre-order walk touching each distinct node once.

    The root is always seen[0]. Sequence children are visited in
    position order; mapping children key then value, pair by pair.
    Nodes met again (shared or cyclic references) go to reseen and are
    not descended into a second time. check, when given, is called on
    every newly seen node before its children and may raise to abort.
    """
    result = Walk()
    stack: List[Any] = [root]
    while stack:
        node = stack.pop()
        key = identity(node)
        if key in result._index:
            result.reseen.append(node)
            continue
        result._index[key] = len(result.seen)
        result.seen.append(node)
        if check is not None:
            check(node)
        t = type(node)
        if t is dict:
            children: List[Any] = []
            for k, v in node.items():
                children.append(k)
                children.append(v)
            stack.extend(reversed(children))
        elif t is list:
            stack.extend(reversed(node))
    return result


def equivalent(a: Any, b: Any) -> bool:
    """Structural equality that also demands the same reference topology.

    Containers must pair up one-to-one: if a holds the same list twice,
    b must hold one list twice, not two equal lists. Mapping order
    counts, types must match exactly, and NaN matches NaN.
    """
    a_to_b: Dict[int, int] = {}
    b_to_a: Dict[int, int] = {}
    stack: List[Tuple[Any, Any]] = [(a, b)]
    while stack:
        x, y = stack.pop()
        t = type(x)
        if t is not type(y):
            return False
        if t is list or t is dict:
            if id(x) in a_to_b or id(y) in b_to_a:
                if a_to_b.get(id(x)) != id(y) or b_to_a.get(id(y)) != id(x):
                    return False
                continue
            a_to_b[id(x)] = id(y)
            b_to_a[id(y)] = id(x)
            if len(x) != len(y):
                return False
            if t is list:
                stack.extend(zip(x, y))
            else:
                for (kx, vx), (ky, vy) in zip(x.items(), y.items()):
                    stack.append((kx, ky))
                    stack.append((vx, vy))
        elif t is float:
            if repr(x) != repr(y):
                return False
        elif x != y:
            return False
    return True
