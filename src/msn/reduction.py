"""Reduction of component paths into one structure function per user node.

The loop repeats until one path remains: parallel reduction merges
identical nodal paths, series reduction collapses runs of nodes that no
other path enters, and bridge reduction folds a Wheatstone bridge (one or two
crossing paths plus their two short counterparts) into a single hop.
A bridge whose inner nodes carry anything else is not reduced; it raises
:class:`UnsupportedTopologyError` like any other uncovered topology.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

from msn.errors import UnsupportedTopologyError
from msn.graph import component_paths
from msn.structure import Bridge, Expr, Hop, parallel, series

if TYPE_CHECKING:
    from msn.network import Network

logger = logging.getLogger(__name__)

NodalPath = list[int]
ComponentPath = list[Hop]
# long left, long right (None for a one-way diagonal), short left, short right, position of p
BridgeSequence = tuple[int, "int | None", int, int, int]


def _find(path: NodalPath, seq: NodalPath) -> int:
    n = len(seq)
    for i in range(len(path) - n + 1):
        if path[i:i + n] == seq:
            return i
    return -1


def _contains(path: NodalPath, seq: NodalPath) -> bool:
    return _find(path, seq) >= 0


def has_duplicate_paths(npaths: list[NodalPath]) -> bool:
    return len({tuple(p) for p in npaths}) < len(npaths)


def _combine(groups: list[tuple[Expr, ...]]) -> tuple[Expr, ...]:
    """Parallel combination of one hop position across several paths.

    Expressions present on every path carry the combined flow and stay
    separate terms; what remains of each path is summed.
    """
    if all(g == groups[0] for g in groups):
        return groups[0]
    common = tuple(e for e in groups[0] if all(e in g for g in groups[1:]))
    rests = [[e for e in g if e not in common] for g in groups]
    if any(not rest for rest in rests):
        return common
    return (parallel(series(rest) for rest in rests),) + common


def parallel_reduction(npaths: list[NodalPath], cpaths: list[ComponentPath]) -> None:
    """Merge every group of identical nodal paths into its first occurrence."""
    groups: dict[tuple[int, ...], list[int]] = {}
    for i, path in enumerate(npaths):
        groups.setdefault(tuple(path), []).append(i)

    new_npaths: list[NodalPath] = []
    new_cpaths: list[ComponentPath] = []
    for path, members in groups.items():
        new_npaths.append(list(path))
        if len(members) == 1:
            new_cpaths.append(cpaths[members[0]])
            continue
        hops = []
        for k in range(len(path) - 1):
            column = [cpaths[i][k] for i in members]
            hops.append(Hop(_combine([h.terms for h in column]), _combine([h.node for h in column])))
        new_cpaths.append(hops)
        logger.debug("Parallel reduction of %d paths along %s", len(members), path)

    npaths[:] = new_npaths
    cpaths[:] = new_cpaths


def unique_sequence(npaths: list[NodalPath]) -> NodalPath | None:
    """Longest run of nodes whose interior is entered only through the run.

    A window ``[a, b, c]`` is collapsible when every path visiting ``b``
    contains the window; overlapping collapsible windows chain into one run.
    """
    windows: list[NodalPath] = []
    for path in npaths:
        for i in range(len(path) - 2):
            window = path[i:i + 3]
            if window not in windows:
                windows.append(window)

    collapsible = [
        w for w in windows
        if all(_contains(p, w) for p in npaths if w[1] in p)
    ]
    if not collapsible:
        return None

    run = list(collapsible[0])
    grown = True
    while grown:
        grown = False
        for w in collapsible:
            if w[:2] == run[-2:] and w[2] not in run:
                run.append(w[2])
                grown = True
            elif w[1:] == run[:2] and w[0] not in run:
                run.insert(0, w[0])
                grown = True
    return run


def series_reduction(
    npaths: list[NodalPath],
    cpaths: list[ComponentPath],
    run: NodalPath,
) -> None:
    """Drop the interior of ``run`` from every path containing it."""
    inside = [i for i, path in enumerate(npaths) if _contains(path, run)]
    shared = {
        e
        for i, cpath in enumerate(cpaths) if i not in inside
        for hop in cpath
        for e in hop.exprs()
    }

    for i in inside:
        path, cpath = npaths[i], cpaths[i]
        start = _find(path, run)
        end = start + len(run) - 1
        spanned = cpath[start:end]
        exprs = [e for hop in spanned[:-1] for e in hop.exprs()] + list(spanned[-1].terms)

        private = [e for e in exprs if e not in shared]
        kept: list[Expr] = []
        for e in exprs:
            if e in shared and e not in kept:
                kept.append(e)
        terms = ((series(private),) if private else ()) + tuple(kept)

        npaths[i] = path[:start + 1] + path[end:]
        cpaths[i] = cpath[:start] + [Hop(terms, spanned[-1].node)] + cpath[end:]
    logger.debug("Series reduction of run %s on %d paths", run, len(inside))


def _swapped(a: NodalPath, b: NodalPath) -> int | None:
    """Position of two adjacent transposed nodes, the only difference of a and b."""
    if len(a) != len(b):
        return None
    diff = [i for i, (x, y) in enumerate(zip(a, b)) if x != y]
    if len(diff) != 2 or diff[1] != diff[0] + 1:
        return None
    i, j = diff
    if a[i] == b[j] and a[j] == b[i]:
        return i
    return None


def _short_paths(npaths: list[NodalPath], long: NodalPath, pos: int) -> tuple[int, int] | None:
    """Indices of ``long`` without ``q`` and without ``p``, where p = long[pos]."""
    short_left = long[:pos + 1] + long[pos + 2:]
    short_right = long[:pos] + long[pos + 1:]
    if short_left in npaths and short_right in npaths:
        return npaths.index(short_left), npaths.index(short_right)
    return None


def bridge_sequence(npaths: list[NodalPath]) -> BridgeSequence | None:
    """Indices (long left, long right, short left, short right) and the position of p.

    A swapped pair a-p-q-d / a-q-p-d is looked for first. Failing that, a
    single long path a-p-q-d with both short paths is a bridge whose
    diagonal only runs p->q; its long right index is None.
    """
    for i, j in itertools.combinations(range(len(npaths)), 2):
        pos = _swapped(npaths[i], npaths[j])
        if pos is None:
            continue
        shorts = _short_paths(npaths, npaths[i], pos)
        if shorts is not None:
            return (i, j) + shorts + (pos,)
    for i, path in enumerate(npaths):
        for pos in range(1, len(path) - 2):
            shorts = _short_paths(npaths, path, pos)
            if shorts is not None:
                return (i, None) + shorts + (pos,)
    return None


def check_isolated_bridge(
    npaths: list[NodalPath],
    cpaths: list[ComponentPath],
    sequence: BridgeSequence,
) -> None:
    """Raise unless the inner nodes p and q are reached only as part of the bridge.

    Every path through p or q must enter from the bridge's entry node ``a``
    and leave through its exit node ``d``; a source on p or q, another entry
    node or another exit would share the branches with flow the bridge term
    does not see. Components on p or q would have to cap the diagonal
    transfer as well, which the bridge term cannot express.
    """
    i, _, k, m, pos = sequence
    a, p, q, d = npaths[i][pos - 1:pos + 3]
    segments = ([a, p, d], [a, q, d], [a, p, q, d], [a, q, p, d])
    for path in npaths:
        inner = [x for x, node in enumerate(path) if node in (p, q)]
        if not inner:
            continue
        start = inner[0] - 1
        if d not in path or path[start:path.index(d) + 1] not in segments:
            raise UnsupportedTopologyError(
                f"path {path} shares the inner nodes of bridge {a}-({p}, {q})-{d}"
            )
    if cpaths[k][pos - 1].node or cpaths[m][pos - 1].node:
        raise UnsupportedTopologyError(
            f"components on inner node {p} or {q} of bridge {a}-({p}, {q})-{d}"
        )


def bridge_reduction(
    npaths: list[NodalPath],
    cpaths: list[ComponentPath],
    sequence: BridgeSequence,
) -> None:
    """Replace the bridge paths a-p-q-d, a-q-p-d, a-p-d, a-q-d by a-d."""
    check_isolated_bridge(npaths, cpaths, sequence)
    i, j, k, m, pos = sequence
    long_left = cpaths[i]
    short_left, short_right = cpaths[k], cpaths[m]

    left_bottom = series(short_left[pos].terms)
    right_bottom = series(short_right[pos].terms)
    bridge = Bridge(
        left_top=series(short_left[pos - 1].exprs()),
        left_bottom=left_bottom,
        right_top=series(short_right[pos - 1].exprs()),
        right_bottom=right_bottom,
        forward=series(long_left[pos].terms),
        backward=series(cpaths[j][pos].terms) if j is not None else None,
    )
    hop = Hop((bridge, parallel([left_bottom, right_bottom])), short_left[pos].node)

    path = npaths[k][:pos] + npaths[k][pos + 1:]
    cpath = short_left[:pos - 1] + [hop] + short_left[pos + 1:]
    logger.debug("Bridge reduction around %s -> %s", npaths[i], path)

    drop = {x for x in (i, j, k, m) if x is not None}
    at = min(drop)
    keep = [x for x in range(len(npaths)) if x not in drop]
    new_npaths = [npaths[x] for x in keep]
    new_cpaths = [cpaths[x] for x in keep]
    new_npaths.insert(at, path)
    new_cpaths.insert(at, cpath)
    npaths[:] = new_npaths
    cpaths[:] = new_cpaths


def reduce_paths(npaths: list[NodalPath], cpaths: list[ComponentPath]) -> Expr:
    """Run the reduction loop to a single path and return its structure function."""
    while len(npaths) > 1:
        if has_duplicate_paths(npaths):
            parallel_reduction(npaths, cpaths)
            continue
        run = unique_sequence(npaths)
        if run is not None:
            series_reduction(npaths, cpaths, run)
            continue
        sequence = bridge_sequence(npaths)
        if sequence is None:
            raise UnsupportedTopologyError(
                f"no parallel, series or bridge reduction applies to paths {npaths}"
            )
        while sequence is not None:
            bridge_reduction(npaths, cpaths, sequence)
            sequence = bridge_sequence(npaths)
    return series(e for hop in cpaths[0] for e in hop.exprs())


def user_structure_function(network: Network, user_node: int) -> Expr | None:
    """Structure function of the users at ``user_node``; None without a source path."""
    npaths, cpaths = component_paths(network, user_node)
    if not npaths:
        return None
    expr = reduce_paths(npaths, cpaths)
    logger.debug("Structure function at node %d: %s", user_node, expr)
    return expr
