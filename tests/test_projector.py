import numpy as np
import pytest
from scipy.sparse import csc_matrix

from utils.condent_objective import create_stuff
from utils.errors import IllConditionedConstraints
from utils.projector_utils import compute_projector, tangent_projector


@pytest.fixture
def Gt(random_pdf_323):
    d, e = create_stuff(random_pdf_323)
    return e.Gt


def test_idempotent_and_symmetric(Gt):
    P = tangent_projector(Gt)
    v = np.random.default_rng(1).standard_normal(P.shape[0])
    np.testing.assert_allclose(P @ (P @ v), P @ v, atol=1e-12)
    np.testing.assert_allclose(P, P.T, atol=1e-12)


def test_projects_onto_constraint_tangent_space(Gt):
    P = tangent_projector(Gt)
    v = np.random.default_rng(2).standard_normal(P.shape[0])
    # moving along P v keeps every marginal equation satisfied
    np.testing.assert_allclose(Gt.T @ (P @ v), 0., atol=1e-12)
    # and P leaves tangent directions untouched
    w = P @ v
    np.testing.assert_allclose(P @ w, w, atol=1e-12)


def test_range_projector_complements(Gt):
    R = compute_projector(Gt)
    P = tangent_projector(Gt)
    np.testing.assert_allclose(R + P, np.eye(Gt.shape[0]), atol=1e-12)
    np.testing.assert_allclose(R @ Gt.toarray(), Gt.toarray(), atol=1e-12)


def test_rank_deficient_constraints(Gt):
    # the XY and XZ blocks each sum to the all-ones vector: rank is at most m - 1
    R = compute_projector(Gt)
    rank = int(round(np.trace(R)))
    assert rank == np.linalg.matrix_rank(Gt.toarray())
    assert rank < Gt.shape[1]


def test_threshold_drops_small_singular_values():
    B = np.diag([1., 1e-12, 0.])[:, :2]
    R = compute_projector(B)
    np.testing.assert_allclose(R, np.diag([1., 0., 0.]), atol=1e-14)
    R_loose = compute_projector(B, eps=1e-14)
    np.testing.assert_allclose(R_loose, np.diag([1., 1., 0.]), atol=1e-14)


def test_wide_matrix():
    B = np.array([[1., 0., 1.], [0., 1., 1.]])
    P = tangent_projector(csc_matrix(B))
    np.testing.assert_allclose(P, np.zeros((2, 2)), atol=1e-12)


def test_non_finite_input_raises():
    B = np.array([[1., np.nan], [0., 1.], [1., 1.]])
    with pytest.raises(IllConditionedConstraints):
        compute_projector(B)


def test_non_orthonormal_factor_fails_self_check(monkeypatch):
    def skewed_svd(B, full_matrices=True):
        # singular vectors that are not orthonormal: U U^T is not idempotent
        U = np.array([[1., 1.], [0., 1.]])
        return U, np.array([1., 1.]), np.eye(2)

    monkeypatch.setattr("utils.projector_utils.la.svd", skewed_svd)
    with pytest.raises(IllConditionedConstraints, match=r"P\^2 != P"):
        compute_projector(np.eye(2))
