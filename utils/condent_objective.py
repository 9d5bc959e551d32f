"""
Objective for the maximum conditional entropy problem, with the constraint
evaluations and the callback set a generic NLP solver needs.

The variables q are (un-normalized) probabilities of the triples in the support,
viewed as an |X| x |YZ| matrix P. The objective is

    f(q) = sum_{x,yz} P[x,yz] * log( P[x,yz] / P[*,yz] )  =  -H(X | Y,Z),

where P[*,yz] is the column sum. Entries P[x,yz] <= 0 contribute exactly 0 to
the value and have gradient 0 (they are not -inf).
"""

from enum import Enum

import mpmath as mp
import numpy as np
from scipy.sparse import coo_matrix

from .constraint_utils import build_constraints
from .errors import UnsupportedFeatureRequested
from .support_utils import SetData


class Precision(Enum):
    """Floating point type used inside an evaluation; results are always float64."""
    STANDARD = "float64"
    EXTENDED = "mpmath"


features_list = ["Grad", "Jac", "JacVec", "Hess"]  # not doing HessVec right now


class CondEntropyEval:
    """
    Evaluator of f = -H(X|YZ), its derivatives and the marginal constraints.

    Shape parameters (n, m, sz_X, sz_YZ) and the support data are carried on
    the instance and used by every callback.
    """

    def __init__(self, d, precision=Precision.STANDARD, bigfloat_nbits=256):
        """
        Args:
            d: SetData instance
            precision: Precision mode used inside evaluations
            bigfloat_nbits: Mantissa width in bits for Precision.EXTENDED
        """
        self.d = d
        self.n = d.n
        self.sz_X = d.sz_X
        self.sz_YZ = d.sz_YZ
        self.var_x = d.var_x
        self.var_yz = d.var_yz

        self.Gt, self.rhs, self.Gt_K, self.Gt_L, self.Gt_vals = build_constraints(d)
        self.m = self.Gt.shape[1]
        self.G = self.Gt.T.tocsr()

        self.precision = Precision(precision)
        self.bigfloat_nbits = int(bigfloat_nbits)

        # variables of each (y,z) column, in X order; empty columns are skipped
        order = np.argsort(self.var_yz, kind="stable")
        cuts = np.flatnonzero(np.diff(self.var_yz[order])) + 1
        self.blocks = [b for b in np.split(order, cuts) if b.size > 0]

        self._hess_K, self._hess_L = self._make_hess_structure()

    # ------------
    # B a s i c s
    # ------------

    def initialize(self, requested_features):
        """Check that every requested feature is available."""
        for feat in requested_features:
            if feat not in features_list:
                raise UnsupportedFeatureRequested(
                    f"Solver is asking for a feature ({feat}) that this evaluator doesn't have. "
                    f"Available: {features_list}. Maybe use another solver?")

    def features_available(self):
        return list(features_list)

    def isobjlinear(self):
        return False

    def isobjquadratic(self):
        return False

    def isconstrlinear(self, i):
        return True

    def numo_vars(self):
        return self.n

    def numo_constraints(self):
        return self.m

    def vars_lowerbounds_vec(self):
        return np.zeros(self.n)

    def vars_upperbounds_vec(self):
        return np.full(self.n, np.inf)

    def constraints_lowerbounds_vec(self):
        """Lower bounds of eval_g(); eval_g is already shifted by rhs, so these are 0."""
        return np.zeros(self.m)

    def constraints_upperbounds_vec(self):
        """Upper bounds of eval_g(); equal to the lower bounds (equality constraints)."""
        return np.zeros(self.m)

    def _with_precision(self, standard, extended, *args):
        if self.precision is Precision.EXTENDED:
            with mp.workprec(self.bigfloat_nbits):
                return extended(*args)
        return standard(*args)

    def _col_sums(self, q):
        """Marginal P(*,yz) of every column."""
        return np.bincount(self.var_yz, weights=q, minlength=self.sz_YZ)

    # ------------------------------------------
    # E v a l u a t i o n :   0 t h   o r d e r
    # ------------------------------------------

    def _cond_entropy_f64(self, q):
        S = self._col_sums(q)[self.var_yz]
        pos = q > 0
        return float(np.sum(q[pos] * np.log(q[pos] / S[pos])))

    def _cond_entropy_mp(self, q):
        s = mp.mpf(0)
        for block in self.blocks:
            P = [mp.mpf(float(q[i])) for i in block]
            P_yz = mp.fsum(P)
            for P_xyz in P:
                if P_xyz > 0:
                    s += P_xyz * mp.log(P_xyz / P_yz)
        return float(s)

    def eval_f(self, q):
        """Objective f(q) = sum P log(P / P(*yz))."""
        q = np.asarray(q, dtype=np.float64)
        return self._with_precision(self._cond_entropy_f64, self._cond_entropy_mp, q)

    def eval_g(self, q):
        """Constraint residual q . G^T - rhs (length m)."""
        return self.G @ np.asarray(q, dtype=np.float64) - self.rhs

    # ------------------------------------------
    # E v a l u a t i o n :   1 s t   o r d e r
    # ------------------------------------------

    def _grad_f64(self, q):
        S = self._col_sums(q)[self.var_yz]
        g = np.zeros(self.n)
        pos = q > 0
        g[pos] = np.log(q[pos] / S[pos])
        return g

    def _grad_mp(self, q):
        g = np.zeros(self.n)
        for block in self.blocks:
            P = [mp.mpf(float(q[i])) for i in block]
            P_yz = mp.fsum(P)
            for i, P_xyz in zip(block, P):
                g[i] = float(mp.log(P_xyz / P_yz)) if P_xyz > 0 else 0.
        return g

    def eval_grad_f(self, q):
        """Gradient log(P / P(*yz)), 0 where P <= 0."""
        q = np.asarray(q, dtype=np.float64)
        return self._with_precision(self._grad_f64, self._grad_mp, q)

    def jac_structure(self):
        """
        Zero-nonzero pattern of the constraint Jacobian G (m x n).

        Returns (constraint indices, variable indices); these are the column and
        row indices of G^T, i.e. swapped with respect to Gt_K, Gt_L.
        """
        return self.Gt_L, self.Gt_K

    def eval_jac_g(self, q):
        """Constraint Jacobian values, in jac_structure() order (constant: all ones)."""
        return self.Gt_vals.copy()

    def eval_jac_prod(self, q, w):
        """Constraint Jacobian times w (w of length n, result of length m)."""
        return self.G @ np.asarray(w, dtype=np.float64)

    def eval_jac_prod_t(self, q, w):
        """Transposed constraint Jacobian times w (w of length m, result of length n)."""
        return self.Gt @ np.asarray(w, dtype=np.float64)

    # ------------------------------------------
    # E v a l u a t i o n :   2 n d   o r d e r
    # ------------------------------------------

    # Lagrangian: L(q, (sigma, mu)) = sigma f(q) + mu' G(q).
    # G is linear, so only sigma * Hess f contributes.

    def _make_hess_structure(self):
        K, L = [], []
        for block in self.blocks:
            # diagonal first
            for k in block:
                K.append(k)
                L.append(k)
            # then every ordered off-diagonal pair of the block
            for k in block:
                for l in block:
                    if k != l:
                        K.append(k)
                        L.append(l)
        return np.array(K, dtype=np.intp), np.array(L, dtype=np.intp)

    def hesslag_structure(self):
        """
        Coordinate list (K, L) of the Hessian of the Lagrangian.

        Per (y,z) block: the diagonal (k,k) of every present variable, then every
        ordered pair (k,l), k != l. Both (k,l) and (l,k) are listed and each holds
        half of the off-diagonal value, so an adapter that adds up duplicates of a
        symmetric matrix recovers the full entry -sigma / P(*yz).
        """
        return self._hess_K, self._hess_L

    def _hess_f64(self, q, sigma):
        H = np.empty(self._hess_K.size)
        counter = 0
        for block in self.blocks:
            P = q[block]
            P_yz = P.sum()
            k = block.size
            # x == u:  (P_yz - P(xyz)) / (P_yz * P(xyz))
            diag = np.zeros(k)
            pos = P > 0
            diag[pos] = sigma * (P_yz - P[pos]) / (P_yz * P[pos])
            H[counter:counter + k] = diag
            counter += k
            # x != u:  -1 / P_yz, halved for the symmetric storage
            n_off = k * (k - 1)
            H[counter:counter + n_off] = 0.5 * (-sigma / P_yz)
            counter += n_off
        return H

    def _hess_mp(self, q, sigma):
        H = np.empty(self._hess_K.size)
        s = mp.mpf(sigma)
        counter = 0
        for block in self.blocks:
            P = [mp.mpf(float(q[i])) for i in block]
            P_yz = mp.fsum(P)
            for P_xyz in P:
                H[counter] = float(s * (P_yz - P_xyz) / (P_yz * P_xyz)) if P_xyz > 0 else 0.
                counter += 1
            off = 0.5 * float(-s / P_yz)
            n_off = len(P) * (len(P) - 1)
            H[counter:counter + n_off] = off
            counter += n_off
        return H

    def eval_hesslag(self, q, sigma, mu=None):
        """Values of sigma * Hess f in hesslag_structure() order; mu is unused."""
        q = np.asarray(q, dtype=np.float64)
        return self._with_precision(self._hess_f64, self._hess_mp, q, float(sigma))

    # ----------------------------------
    # D i r e c t   a c c e s s o r s
    # ----------------------------------

    def f(self, q):
        return self.eval_f(q)

    def grad(self, q):
        return self.eval_grad_f(q)

    def residual(self, q):
        return self.eval_g(q)

    def cond_entropy(self, q):
        """H(X|YZ) of q, i.e. -f(q)."""
        return -self.eval_f(q)

    def hess(self, q, sigma=1.0):
        """Dense symmetric Hessian sigma * Hess f, assembled from the coordinate list."""
        vals = self.eval_hesslag(q, sigma)
        H = coo_matrix((vals, (self._hess_K, self._hess_L)), shape=(self.n, self.n)).toarray()
        return H + H.T - np.diag(np.diag(H))


def create_stuff(pdf, precision=Precision.STANDARD, bigfloat_nbits=256):
    """
    Build support data and evaluator for a joint distribution.

    Args:
        pdf: Mapping (x, y, z) -> non-negative mass
        precision: Precision mode of the evaluator
        bigfloat_nbits: Mantissa width for Precision.EXTENDED

    Returns:
        d: SetData instance
        e: CondEntropyEval instance
    """
    d = SetData(pdf)
    e = CondEntropyEval(d, precision=precision, bigfloat_nbits=bigfloat_nbits)
    return d, e
