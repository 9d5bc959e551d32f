"""
Support indexing for joint distributions of three discrete random variables.

Turns a sparse pdf {(x, y, z): mass} into sorted domains X, Y, Z, a dense
variable index over the triples with positive mass, and the XY / XZ / X
marginal tables the constraint system is built from.
"""

import numpy as np

from .errors import DegenerateSupport


class SetData:
    """
    X, Y, Z and all that.

    Variables are enumerated with the outer loop over Y, then Z, then X, so
    that X varies fastest: the iterate viewed as an |X| x |YZ| matrix is in
    column-major order, with yz = i_y * |Z| + i_z.

    Attributes:
        X, Y, Z: Sorted domains (values occurring with positive mass)
        pdf: Filtered copy of the input, positive entries only
        n: Number of variables
        var_idx: Dict (i_x, i_yz) -> variable index
        var_x, var_y, var_z, var_yz: Per-variable domain indices (int arrays)
        marg_xy: |X| x |Y| array of P(X=x, Y=y)
        marg_xz: |X| x |Z| array of P(X=x, Z=z)
        marg_x: |X| array of P(X=x)
    """

    def __init__(self, pdf):
        """
        Build the support data of a joint distribution.

        Args:
            pdf: Mapping (x, y, z) -> non-negative mass. Entries with mass <= 0
                are treated as absent. Domain values must be mutually comparable.

        Raises:
            DegenerateSupport: if X, Y or Z has fewer than 2 values.
        """
        self.pdf = {xyz: float(val) for xyz, val in pdf.items() if val > 0}

        X_set, Y_set, Z_set = set(), set(), set()
        for x, y, z in self.pdf:
            X_set.add(x)
            Y_set.add(y)
            Z_set.add(z)

        self.X = sorted(X_set)
        self.Y = sorted(Y_set)
        self.Z = sorted(Z_set)

        for name, dom in (("X", self.X), ("Y", self.Y), ("Z", self.Z)):
            if len(dom) < 2:
                raise DegenerateSupport(f"|Range({name})| >= 2 needed, got {len(dom)}")

        self.sz_X = len(self.X)
        self.sz_Y = len(self.Y)
        self.sz_Z = len(self.Z)
        self.sz_YZ = self.sz_Y * self.sz_Z

        # X x (YxZ) in column major
        var_list = []
        for i_y, y in enumerate(self.Y):
            for i_z, z in enumerate(self.Z):
                for i_x, x in enumerate(self.X):
                    if self.pdf.get((x, y, z), -1.) > 0:
                        var_list.append((i_x, i_y, i_z))

        self.n = len(var_list)
        self.var_idx = {(i_x, self.to_yz(i_y, i_z)): i
                        for i, (i_x, i_y, i_z) in enumerate(var_list)}

        coords = np.array(var_list, dtype=np.intp).reshape(-1, 3)
        self.var_x = coords[:, 0].copy()
        self.var_y = coords[:, 1].copy()
        self.var_z = coords[:, 2].copy()
        self.var_yz = self.var_y * self.sz_Z + self.var_z

        self._pos_x = {x: i for i, x in enumerate(self.X)}
        self._pos_y = {y: i for i, y in enumerate(self.Y)}
        self._pos_z = {z: i for i, z in enumerate(self.Z)}

        self.marg_xy = np.zeros((self.sz_X, self.sz_Y))
        self.marg_xz = np.zeros((self.sz_X, self.sz_Z))
        for (x, y, z), val in self.pdf.items():
            i_x = self._pos_x[x]
            self.marg_xy[i_x, self._pos_y[y]] += val
            self.marg_xz[i_x, self._pos_z[z]] += val
        self.marg_x = self.marg_xy.sum(axis=1)

    def to_yz(self, i_y, i_z):
        """Combined column index of (Y, Z) domain indices."""
        return i_y * self.sz_Z + i_z

    def varidx(self, i_x, i_yz):
        """Variable index of (i_x, i_yz), or None if that triple has no mass."""
        return self.var_idx.get((i_x, i_yz))

    def index_of(self, x, y, z):
        """Variable index of the triple of domain values (x, y, z), or None."""
        try:
            i_x, i_y, i_z = self._pos_x[x], self._pos_y[y], self._pos_z[z]
        except KeyError:
            return None
        return self.varidx(i_x, self.to_yz(i_y, i_z))

    def triple(self, i):
        """Domain values (x, y, z) of variable i."""
        return self.X[self.var_x[i]], self.Y[self.var_y[i]], self.Z[self.var_z[i]]

    def mass(self, i_x, i_y, i_z):
        """Input mass of the triple with the given domain indices (0 if absent)."""
        return self.pdf.get((self.X[i_x], self.Y[i_y], self.Z[i_z]), 0.)
