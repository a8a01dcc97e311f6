from __future__ import annotations

import numpy as np
from numpy.typing import NDArray

# Quaternions are length-4 arrays (w, x, y, z); 3-vectors are length-3 arrays.
# Floating inputs keep their precision; anything else becomes float64.


def as_floating(x) -> NDArray[np.floating]:
    x = np.asarray(x)
    if not np.issubdtype(x.dtype, np.floating):
        x = x.astype(float)
    return x


def multiply(p: NDArray[np.float64], q: NDArray[np.float64]) -> NDArray[np.float64]:
    pw, px, py, pz = p[0], p[1], p[2], p[3]
    qw, qx, qy, qz = q[0], q[1], q[2], q[3]
    out = np.empty(4, dtype=np.result_type(p, q))
    out[0] = pw*qw - px*qx - py*qy - pz*qz
    out[1] = pw*qx + px*qw + py*qz - pz*qy
    out[2] = pw*qy - px*qz + py*qw + pz*qx
    out[3] = pw*qz + px*qy - py*qx + pz*qw
    return out


def conjugate(q: NDArray[np.float64]) -> NDArray[np.float64]:
    q = as_floating(q)
    return np.array([q[0], -q[1], -q[2], -q[3]], dtype=q.dtype)


def pure(vec: NDArray[np.float64]) -> NDArray[np.float64]:
    vec = as_floating(vec)
    return np.array([0, vec[0], vec[1], vec[2]], dtype=vec.dtype)


def normalized(q: NDArray[np.float64]) -> NDArray[np.float64]:
    q = as_floating(q)
    return q / np.sqrt(np.dot(q, q))


def from_axis_angle(axis, angle: float) -> NDArray[np.float64]:
    axis = as_floating(axis)
    axis = axis / np.linalg.norm(axis)
    s = np.sin(angle / 2)
    return np.array([np.cos(angle / 2), s*axis[0], s*axis[1], s*axis[2]])


def rotate(R: NDArray[np.float64], vec: NDArray[np.float64]) -> NDArray[np.float64]:
    """``R vec R̄`` (no normalization of ``R``)."""
    return multiply(multiply(R, pure(vec)), conjugate(R))[1:]


# The frame vectors below are R x̂ R̄, R ŷ R̄ and R ẑ R̄ written out by component.

def n_hat(R: NDArray[np.float64]) -> NDArray[np.float64]:
    w, x, y, z = R[0], R[1], R[2], R[3]
    return np.array([w*w + x*x - y*y - z*z, 2*(x*y + w*z), 2*(x*z - w*y)])


def lambda_hat(R: NDArray[np.float64]) -> NDArray[np.float64]:
    w, x, y, z = R[0], R[1], R[2], R[3]
    return np.array([2*(x*y - w*z), w*w - x*x + y*y - z*z, 2*(y*z + w*x)])


def ell_hat(R: NDArray[np.float64]) -> NDArray[np.float64]:
    w, x, y, z = R[0], R[1], R[2], R[3]
    return np.array([2*(x*z + w*y), 2*(y*z - w*x), w*w - x*x - y*y + z*z])


def omega_times_rotor(omega: NDArray[np.float64], R: NDArray[np.float64]) -> NDArray[np.float64]:
    """Quaternion product of the pure quaternion ``omega`` with ``R``."""
    ox, oy, oz = omega[0], omega[1], omega[2]
    w, x, y, z = R[0], R[1], R[2], R[3]
    return np.array([
        -ox*x - oy*y - oz*z,
        ox*w + oy*z - oz*y,
        oy*w + oz*x - ox*z,
        oz*w + ox*y - oy*x,
    ])
