"""
Marginal constraint system  q . G^T = rhs  for the maximum conditional entropy problem.
"""

import numpy as np
from scipy.sparse import coo_matrix


def build_constraints(d):
    """
    Build the transposed constraint matrix G^T and the right-hand side.

    Row blocks of G (= columns of G^T):
      - i_x*|Y| + i_y               : sum_z q(x,y,z) = P(X=x, Y=y)
      - |X||Y| + i_x*|Z| + i_z      : sum_y q(x,y,z) = P(X=x, Z=z)
    Every variable has exactly one entry in each block; all coefficients are 1.

    Args:
        d: SetData instance

    Returns:
        Gt: G^T as scipy.sparse CSC matrix, shape (n, m)
        rhs: Right-hand side, shape (m,)
        Gt_K: Row (variable) indices of the nonzeros of G^T
        Gt_L: Column (constraint) indices of the nonzeros of G^T
        Gt_vals: Stored values of G^T, in the same order as Gt_K, Gt_L
    """
    m = d.sz_X * d.sz_Y + d.sz_X * d.sz_Z
    rhs = np.zeros(m)
    rows, cols = [], []

    row = 0
    # xy-marginals
    for i_x in range(d.sz_X):
        for i_y in range(d.sz_Y):
            for i_z in range(d.sz_Z):
                i = d.varidx(i_x, d.to_yz(i_y, i_z))
                if i is not None:
                    rows.append(i)
                    cols.append(row)
                rhs[row] += d.mass(i_x, i_y, i_z)
            row += 1
    # xz-marginals
    for i_x in range(d.sz_X):
        for i_z in range(d.sz_Z):
            for i_y in range(d.sz_Y):
                i = d.varidx(i_x, d.to_yz(i_y, i_z))
                if i is not None:
                    rows.append(i)
                    cols.append(row)
                rhs[row] += d.mass(i_x, i_y, i_z)
            row += 1

    Gt = coo_matrix((np.ones(len(rows)), (rows, cols)), shape=(d.n, m)).tocsc()
    Gt.sort_indices()

    nz = Gt.tocoo()
    Gt_K = nz.row.astype(np.intp)
    Gt_L = nz.col.astype(np.intp)
    Gt_vals = nz.data.copy()

    return Gt, rhs, Gt_K, Gt_L, Gt_vals
