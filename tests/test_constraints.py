import numpy as np

from utils.constraint_utils import build_constraints
from utils.support_utils import SetData


def _original_masses(d):
    return np.array([d.pdf[d.triple(i)] for i in range(d.n)])


def test_shape_and_unit_coefficients(random_pdf_323):
    d = SetData(random_pdf_323)
    Gt, rhs, K, L, vals = build_constraints(d)
    m = 3 * 2 + 3 * 3
    assert Gt.shape == (d.n, m)
    assert rhs.shape == (m,)
    np.testing.assert_array_equal(vals, np.ones(2 * d.n))
    assert set(np.unique(Gt.toarray())) <= {0., 1.}


def test_every_variable_in_one_xy_and_one_xz_row(random_pdf_323):
    d = SetData(random_pdf_323)
    Gt, *_ = build_constraints(d)
    n_xy = d.sz_X * d.sz_Y
    dense = Gt.toarray()
    np.testing.assert_array_equal(dense[:, :n_xy].sum(axis=1), np.ones(d.n))
    np.testing.assert_array_equal(dense[:, n_xy:].sum(axis=1), np.ones(d.n))
    # XY rows hold |Z| variables, XZ rows |Y| variables (full support)
    np.testing.assert_array_equal(dense[:, :n_xy].sum(axis=0), np.full(n_xy, d.sz_Z))
    np.testing.assert_array_equal(dense[:, n_xy:].sum(axis=0), np.full(d.sz_X * d.sz_Z, d.sz_Y))


def test_row_layout(random_pdf_323):
    d = SetData(random_pdf_323)
    Gt, *_ = build_constraints(d)
    dense = Gt.toarray()
    i = d.index_of(2, 1, 0)
    assert dense[i, 2 * d.sz_Y + 1] == 1.
    assert dense[i, d.sz_X * d.sz_Y + 2 * d.sz_Z + 0] == 1.


def test_rhs_is_marginals(random_pdf_323):
    d = SetData(random_pdf_323)
    Gt, rhs, *_ = build_constraints(d)
    n_xy = d.sz_X * d.sz_Y
    np.testing.assert_allclose(rhs[:n_xy], d.marg_xy.ravel())
    np.testing.assert_allclose(rhs[n_xy:], d.marg_xz.ravel())
    # the input distribution itself is feasible
    np.testing.assert_allclose(Gt.T @ _original_masses(d), rhs, atol=1e-15)


def test_sparse_support_rows():
    pdf = {(0, 0, 0): 0.2, (0, 0, 1): 0.2, (1, 1, 0): 0.3, (1, 1, 1): 0.3}
    d = SetData(pdf)
    Gt, rhs, K, L, vals = build_constraints(d)
    assert Gt.shape == (4, 8)
    assert Gt.nnz == 8
    # (x=0, y=1) has no mass: empty constraint with zero rhs
    assert rhs[0 * d.sz_Y + 1] == 0.
    assert Gt.toarray()[:, 1].sum() == 0.


def test_coordinate_lists_match_matrix(random_pdf):
    d = SetData(random_pdf)
    Gt, rhs, K, L, vals = build_constraints(d)
    assert len(K) == len(L) == len(vals) == Gt.nnz
    dense = Gt.toarray()
    np.testing.assert_array_equal(dense[K, L], vals)


def test_rebuild_is_bit_identical(random_pdf_323):
    a = build_constraints(SetData(random_pdf_323))
    b = build_constraints(SetData(random_pdf_323))
    assert (a[0] != b[0]).nnz == 0
    for x, y in zip(a[1:], b[1:]):
        np.testing.assert_array_equal(x, y)
