import itertools

import numpy as np
import pytest


def product_pdf(nx, ny, nz, seed):
    """Random joint distribution with full support on nx x ny x nz."""
    rng = np.random.default_rng(seed)
    w = rng.uniform(0.2, 1.0, size=(nx, ny, nz))
    w /= w.sum()
    return {(x, y, z): float(w[x, y, z])
            for x, y, z in itertools.product(range(nx), range(ny), range(nz))}


@pytest.fixture
def uniform_pdf():
    """X, Y, Z independent and uniform on {0,1}."""
    return {xyz: 0.125 for xyz in itertools.product((0, 1), repeat=3)}


@pytest.fixture
def random_pdf():
    return product_pdf(2, 2, 2, seed=7)


@pytest.fixture
def random_pdf_323():
    return product_pdf(3, 2, 3, seed=11)


@pytest.fixture
def noisy_and_pdf():
    """X = Y AND Z on uniform inputs, mixed with 10% uniform noise."""
    pdf = {}
    for x, y, z in itertools.product((0, 1), repeat=3):
        gate = 0.25 if x == (y & z) else 0.
        pdf[(x, y, z)] = 0.9 * gate + 0.1 * 0.125
    return pdf


@pytest.fixture
def copy_pdf():
    """X = Y, with Y and Z independent and uniform."""
    return {(y, y, z): 0.25 for y in (0, 1) for z in (0, 1)}


@pytest.fixture
def xor_pdf():
    return {(y ^ z, y, z): 0.25 for y in (0, 1) for z in (0, 1)}
