"""
Orthogonal projectors onto the range of a matrix and onto its orthogonal complement,
computed via SVD with a numerical-rank threshold.
"""

import numpy as np
import scipy.linalg as la
from scipy.sparse import issparse

from .errors import IllConditionedConstraints


def compute_projector(B, eps=1e-10):
    """
    Projection operator onto the image (column space) of B.

    Singular values <= eps are considered 0.

    Args:
        B: Matrix of shape (n, m), dense or scipy.sparse
        eps: Numerical rank threshold

    Returns:
        P: (n, n) symmetric idempotent matrix U_r U_r^T

    Raises:
        IllConditionedConstraints: if the SVD fails or P is not a projector
    """
    B_full = B.toarray() if issparse(B) else np.array(B, dtype=np.float64)
    n, m = B_full.shape

    try:
        U, S, _ = la.svd(B_full, full_matrices=True)
    except (np.linalg.LinAlgError, ValueError) as exc:
        raise IllConditionedConstraints(f"SVD of the {n}x{m} constraint matrix failed") from exc

    NZ = np.flatnonzero(S > eps)

    # partial isometry
    PI = U[:, NZ]
    P = PI @ PI.T

    if not np.allclose(P @ P, P, rtol=1e-8, atol=1e-10):
        raise IllConditionedConstraints("compute_projector(B): P^2 != P")
    if not np.allclose(P.T, P, rtol=1e-8, atol=1e-10):
        raise IllConditionedConstraints("compute_projector(B): P^T != P")

    return P


def tangent_projector(B, eps=1e-10):
    """Projector I - U_r U_r^T onto the orthogonal complement of the image of B."""
    P = compute_projector(B, eps=eps)
    return np.eye(P.shape[0]) - P
