"""
Information decomposition of I(X ; Y,Z) from the maximum conditional entropy solution.

Distributions are dicts {(x, y, z): probability}. Logarithms are natural (nats).
"""

import numpy as np


def _marginal(pdf, key):
    marg = dict()
    for xyz, r in pdf.items():
        k = key(xyz)
        marg[k] = marg.get(k, 0.) + r
    return marg


def marginal_xy(pdf):
    return _marginal(pdf, lambda xyz: (xyz[0], xyz[1]))


def marginal_xz(pdf):
    return _marginal(pdf, lambda xyz: (xyz[0], xyz[2]))


def marginal_yz(pdf):
    return _marginal(pdf, lambda xyz: (xyz[1], xyz[2]))


def marginal_x(pdf):
    return _marginal(pdf, lambda xyz: xyz[0])


def marginal_y(pdf):
    return _marginal(pdf, lambda xyz: xyz[1])


def marginal_z(pdf):
    return _marginal(pdf, lambda xyz: xyz[2])


def _positive(pdf):
    return {xyz: r for xyz, r in pdf.items() if r > 0}


def cond_entropy_x_yz(pdf):
    """H(X | Y,Z)."""
    pdf = _positive(pdf)
    p_yz = marginal_yz(pdf)
    return -sum(r * np.log(r / p_yz[y, z]) for (x, y, z), r in pdf.items())


def mutual_info_x_yz(pdf):
    """I(X ; Y,Z)."""
    pdf = _positive(pdf)
    p_x, p_yz = marginal_x(pdf), marginal_yz(pdf)
    return sum(r * np.log(r / (p_x[x] * p_yz[y, z])) for (x, y, z), r in pdf.items())


def mutual_info_x_y(pdf):
    """I(X ; Y)."""
    pdf = _positive(pdf)
    p_x, p_y = marginal_x(pdf), marginal_y(pdf)
    return sum(r * np.log(r / (p_x[x] * p_y[y])) for (x, y), r in marginal_xy(pdf).items())


def mutual_info_x_z(pdf):
    """I(X ; Z)."""
    pdf = _positive(pdf)
    p_x, p_z = marginal_x(pdf), marginal_z(pdf)
    return sum(r * np.log(r / (p_x[x] * p_z[z])) for (x, z), r in marginal_xz(pdf).items())


def marginal_closure(pdf):
    """
    Every triple compatible with the XY and XZ marginals of pdf.

    The triples (x,y,z) with p(x,y) > 0 and p(x,z) > 0 carry the mass
    p(x,y) p(x,z) / p(x). The result has the same XY and XZ marginals as pdf
    and, for each x, a product-set support, so any distribution with those
    marginals lives on its support.

    Args:
        pdf: Mapping (x, y, z) -> non-negative mass

    Returns:
        Dict (x, y, z) -> positive mass
    """
    pdf = _positive(pdf)
    p_x, p_xy, p_xz = marginal_x(pdf), marginal_xy(pdf), marginal_xz(pdf)
    closure = dict()
    for (x, y), r_xy in p_xy.items():
        for (x_, z), r_xz in p_xz.items():
            if x_ == x:
                closure[x, y, z] = r_xy * r_xz / p_x[x]
    return closure


def q_to_pdf(d, q):
    """
    Map an iterate back to a pdf over the original domain values.

    Args:
        d: SetData the iterate is indexed by
        q: Iterate of length d.n (non-negative)

    Returns:
        Dict (x, y, z) -> probability, normalized to total mass 1
    """
    q = np.asarray(q, dtype=np.float64)
    total = float(q.sum())
    return {d.triple(i): float(q[i]) / total for i in range(d.n) if q[i] > 0}


def pid_from_solution(pdf, q_pdf):
    """
    Bivariate decomposition of I_p(X ; Y,Z) given the optimal q.

    q has the same XY and XZ marginals as p, so I_q(X;Y) = I_p(X;Y) and
    I_q(X;Z) = I_p(X;Z). Values are reported raw (round-off may make tiny
    quantities slightly negative).

    Args:
        pdf: Original distribution p
        q_pdf: Maximum conditional entropy distribution q

    Returns:
        Dict with keys 'MI', 'CI' (synergistic), 'SI' (shared),
        'UIY', 'UIZ' (unique); CI + SI + UIY + UIZ == MI.
    """
    total = sum(r for r in pdf.values() if r > 0)
    p = {xyz: r / total for xyz, r in pdf.items() if r > 0}

    mi_p = mutual_info_x_yz(p)
    mi_q = mutual_info_x_yz(q_pdf)
    mi_xy = mutual_info_x_y(p)
    mi_xz = mutual_info_x_z(p)

    ci = mi_p - mi_q
    uiy = mi_q - mi_xz
    uiz = mi_q - mi_xy
    si = mi_xy - uiy

    return {'MI': mi_p, 'CI': ci, 'SI': si, 'UIY': uiy, 'UIZ': uiz}
