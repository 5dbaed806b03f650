"""Boolean combination of two interval lists.

Both operand lists are merged as a stream of boundary events ordered by t.
Walking the events keeps track of whether the ray is inside A and inside B;
the output opens a span whenever the boolean membership of the operation
becomes true and closes it when it becomes false:

    UNION          inside A or inside B
    INTERSECTION   inside A and inside B
    DIFFERENCE     inside A and not inside B

Boundaries contributed by B to a difference are flipped, since the outside
of B becomes the surface of the result. Spans shorter than CSG_EPSILON are
discarded, which makes ``A - A`` and disjoint intersections come out empty.
"""

from enum import IntEnum

import taichi as ti

from buzz.csg.intervals import (
    CSG_EPSILON,
    MAX_INTERVALS,
    iv_code_in,
    iv_code_out,
    iv_count,
    iv_t_in,
    iv_t_out,
    iv_tri_in,
    iv_tri_out,
)


class CsgOp(IntEnum):
    """Boolean operations of a CSG node.

    The values double as opcodes of compiled CSG programs.
    """

    UNION = 1
    INTERSECTION = 2
    DIFFERENCE = 3


@ti.func
def membership(op: ti.i32, in_a: ti.i32, in_b: ti.i32) -> ti.i32:
    """Whether a point inside/outside A and B is inside ``A op B``."""
    result = 0
    if op == int(CsgOp.UNION):
        result = in_a | in_b
    elif op == int(CsgOp.INTERSECTION):
        result = in_a & in_b
    elif op == int(CsgOp.DIFFERENCE):
        result = in_a & (1 - in_b)
    return result


@ti.func
def _read_event(slot: ti.i32, level: ti.i32, event: ti.i32):
    """Boundary event ``event`` of a list: even events enter, odd events exit.

    Returns:
        A tuple (t, entering, code, triangle).
    """
    k = event // 2
    t = 0.0
    entering = 0
    code = 0
    tri = -1
    if event % 2 == 0:
        t = iv_t_in[slot, level, k]
        entering = 1
        code = iv_code_in[slot, level, k]
        tri = iv_tri_in[slot, level, k]
    else:
        t = iv_t_out[slot, level, k]
        code = iv_code_out[slot, level, k]
        tri = iv_tri_out[slot, level, k]
    return t, entering, code, tri


@ti.func
def combine_levels(slot: ti.i32, level_a: ti.i32, level_b: ti.i32, level_out: ti.i32, op: ti.i32):
    """Write ``A op B`` to ``level_out``.

    Args:
        slot: Scratch slot of the calling task.
        level_a: Stack level holding the left operand.
        level_b: Stack level holding the right operand.
        level_out: Stack level receiving the result; must differ from both
            operand levels.
        op: A CsgOp value.
    """
    events_a = 2 * iv_count[slot, level_a]
    events_b = 2 * iv_count[slot, level_b]
    b_sign = 1
    if op == int(CsgOp.DIFFERENCE):
        b_sign = -1

    ea = 0
    eb = 0
    in_a = 0
    in_b = 0
    inside = 0
    open_t = 0.0
    open_code = 0
    open_tri = -1
    n_out = 0

    for _ in range(events_a + events_b):
        ta = 0.0
        a_enter = 0
        a_code = 0
        a_tri = -1
        if ea < events_a:
            ta, a_enter, a_code, a_tri = _read_event(slot, level_a, ea)
        tb = 0.0
        b_enter = 0
        b_code = 0
        b_tri = -1
        if eb < events_b:
            tb, b_enter, b_code, b_tri = _read_event(slot, level_b, eb)

        # Take the earlier event; on a tie, entries go before exits
        take_a = 0
        if eb >= events_b:
            take_a = 1
        elif ea < events_a:
            if ta < tb - CSG_EPSILON:
                take_a = 1
            elif ta <= tb + CSG_EPSILON:
                if a_enter == 1 or b_enter == 0:
                    take_a = 1

        t = 0.0
        code = 0
        tri = -1
        if take_a == 1:
            t = ta
            code = a_code
            tri = a_tri
            in_a = a_enter
            ea += 1
        else:
            t = tb
            code = b_code * b_sign
            tri = b_tri
            in_b = b_enter
            eb += 1

        now = membership(op, in_a, in_b)
        if now != inside:
            if now == 1:
                open_t = t
                open_code = code
                open_tri = tri
            elif t - open_t > CSG_EPSILON and n_out < MAX_INTERVALS:
                iv_t_in[slot, level_out, n_out] = open_t
                iv_t_out[slot, level_out, n_out] = t
                iv_code_in[slot, level_out, n_out] = open_code
                iv_code_out[slot, level_out, n_out] = code
                iv_tri_in[slot, level_out, n_out] = open_tri
                iv_tri_out[slot, level_out, n_out] = tri
                n_out += 1
            inside = now

    iv_count[slot, level_out] = n_out
