"""
Projected gradient ascent for maximum conditional entropy H(X|Y,Z) under fixed
XY and XZ marginals.

The gradient of f = -H is projected once per iteration onto the tangent space of
the marginal constraints (projector precomputed by SVD), and the iterate moves a
damped fraction of the largest step that keeps it non-negative. The best iterate
seen is returned, since fixed damped steps can transiently worsen the objective.
"""

import time
from enum import Enum
from typing import NamedTuple

import numpy as np

from utils.condent_objective import Precision, create_stuff
from utils.pid_utils import marginal_closure, pid_from_solution, q_to_pdf
from utils.projector_utils import tangent_projector


class Status(Enum):
    """Why the main loop stopped."""
    GRAD0 = "grad0"   # projected gradient vanished
    STEP0 = "step0"   # feasible step length vanished
    ITER = "iter"     # iteration budget exhausted


class SolutionStats(NamedTuple):
    optimum: float          # best H(X|YZ) found
    q: np.ndarray           # iterate achieving it
    nm_pr_grad: float       # ||projected gradient|| at that iterate
    max_eta: float          # max feasible step length at that iterate
    iter: int               # iteration at which it was found
    status: Status
    time: float             # seconds
    history: list           # (iter, H, best_H, nm_pr_grad, max_eta, feas, time) per iteration


def initial_interior_point(e):
    """
    Standard interior feasible point q0 = P(x,y) P(x,z) / P(x).

    Args:
        e: CondEntropyEval instance

    Returns:
        q0: Array of length e.n
    """
    d = e.d
    p_x = d.marg_x[d.var_x]
    return d.marg_xy[d.var_x, d.var_y] * d.marg_xz[d.var_x, d.var_z] / p_x


def input_masses(e):
    """Masses of the input distribution, one per variable; always feasible."""
    d = e.d
    return np.array([d.pdf[d.triple(i)] for i in range(d.n)])


def max_steplength(q, pr_grad):
    """
    Largest eta with q - eta * pr_grad >= 0.

    Only coordinates with pr_grad > 0 bound the step; returns inf if there are none.
    """
    bounded = pr_grad > 0
    if not np.any(bounded):
        return np.inf
    return float(np.min(q[bounded] / pr_grad[bounded]))


def PGA_condent(e, max_iter=1000, eps_grad=1e-20, eps_steplength=1e-20,
                stepfactor=0.1, q0=None, print_every=50, verbose=False):
    """
    Projected gradient ascent on H(X|YZ) over {q >= 0, q . G^T = rhs}.

    Args:
        e: CondEntropyEval instance
        max_iter: Maximum iterations
        eps_grad: Stop when ||projected gradient|| <= eps_grad
        eps_steplength: Stop when the max feasible step length <= eps_steplength
        stepfactor: Fraction in (0, 1] of the (clamped) max step actually taken
        q0: Feasible starting point. If None, uses initial_interior_point, or the
            input masses where that point misses the marginals (the support of
            some x is not a product set)
        print_every: Progress line period when verbose
        verbose: Print iteration progress

    Returns:
        SolutionStats of the best iterate
    """
    if not 0. < stepfactor <= 1.:
        raise ValueError(f"stepfactor must be in (0, 1], got {stepfactor}")
    if max_iter < 1:
        raise ValueError(f"max_iter must be >= 1, got {max_iter}")

    if q0 is None:
        q = initial_interior_point(e)
        if not verify(e, q)[0]:
            q = input_masses(e)
            if verbose:
                print("[PGA-condent] initial interior point infeasible, starting from the input masses")
    else:
        q = np.array(q0, dtype=np.float64)
        if q.shape != (e.n,):
            raise ValueError(f"q0 must have length {e.n}, got shape {q.shape}")
        if np.any(q < 0):
            raise ValueError("q0 must be non-negative")

    # projection operator onto the tangent space (lin space of the constraints)
    P = tangent_projector(e.Gt)

    status = Status.ITER
    best_obj_val = -np.inf
    q_best = q.copy()
    nm_pr_grad_best = np.nan
    max_eta_best = np.nan
    iter_best = 0

    history = []
    t0 = time.time()

    for k in range(max_iter):
        # gradient of f = -H, so stepping against it ascends H
        grad = e.grad(q)
        assert np.all(np.isfinite(grad)), f"non-finite gradient at iteration {k}"

        pr_grad = P @ grad
        nm_pr_grad = np.linalg.norm(pr_grad)

        # max steplength which retains feasibility
        max_eta = max_steplength(q, pr_grad)

        obj_val = e.cond_entropy(q)
        assert np.isfinite(obj_val), f"non-finite objective at iteration {k}"

        if obj_val >= best_obj_val:
            best_obj_val = obj_val
            q_best = q.copy()
            nm_pr_grad_best = nm_pr_grad
            max_eta_best = max_eta
            iter_best = k

        feas = np.linalg.norm(e.residual(q))
        current_time = time.time() - t0
        history.append((k, obj_val, best_obj_val, nm_pr_grad, max_eta, feas, current_time))

        if verbose and k % print_every == 0:
            print(f"[PGA-condent] iter={k:4d} H={obj_val:.10e} ||pr∇||={nm_pr_grad:.3e} "
                  f"max_η={max_eta:.3e} feas={feas:.2e} time={current_time:.2f}s")

        if nm_pr_grad <= eps_grad:
            status = Status.GRAD0
            break

        if max_eta <= eps_steplength:
            status = Status.STEP0
            break

        q = q - (stepfactor * min(1., max_eta)) * pr_grad

    tm = time.time() - t0

    if verbose:
        print(f"[PGA-condent] terminated with status={status.value} after {len(history)} iterations: "
              f"best H={best_obj_val:.10e} at iter={iter_best} ||pr∇||={nm_pr_grad_best:.3e} "
              f"time={tm:.2f}s")

    return SolutionStats(best_obj_val, q_best, nm_pr_grad_best, max_eta_best,
                         iter_best, status, tm, history)


def verify(e, q, tol=1e-6):
    """
    Check feasibility of an iterate.

    Returns:
        ok: True if the relative constraint residual and the negativity are within tol
        feas: ||q . G^T - rhs|| / ||rhs||
        min_q: Smallest entry of q
    """
    q = np.asarray(q, dtype=np.float64)
    feas = float(np.linalg.norm(e.residual(q)) / np.linalg.norm(e.rhs))
    min_q = float(np.min(q))
    return feas <= tol and min_q >= -tol, feas, min_q


def decomp(pdf, precision=Precision.STANDARD, bigfloat_nbits=256, **kwargs):
    """
    Information decomposition of I(X ; Y,Z) for a joint distribution.

    The maximization runs over every triple compatible with the XY and XZ
    marginals (see marginal_closure), not only over the support of pdf, so q may
    put mass where p has none (XOR: q is uniform on all 8 triples).

    Args:
        pdf: Mapping (x, y, z) -> non-negative mass
        precision: Precision mode of the evaluator
        bigfloat_nbits: Mantissa width for extended precision
        **kwargs: Passed on to PGA_condent

    Returns:
        stats: SolutionStats of the optimization (q indexed over the closure support)
        pid: Dict with 'MI', 'CI', 'SI', 'UIY', 'UIZ'
    """
    d, e = create_stuff(marginal_closure(pdf), precision=precision, bigfloat_nbits=bigfloat_nbits)
    stats = PGA_condent(e, **kwargs)
    pid = pid_from_solution(pdf, q_to_pdf(d, stats.q))
    return stats, pid
