"""Composite operators of the projection step: BN and C = QT BN Q."""

import scipy.sparse as sp


def approximate_inverse(Minv, L, alpha, order=1):
    """Truncated Neumann series for A^-1 with A = M - alpha L.

    A^-1 = sum_k (alpha Minv L)^k Minv; ``order`` terms are kept, so
    order 1 gives BN = Minv. Every term is symmetric when L is.
    """
    if order < 1:
        raise ValueError(f"BN order must be >= 1, got {order}")

    BN = sp.csr_matrix(Minv)
    term = sp.csr_matrix(Minv)
    for _ in range(order - 1):
        term = (alpha * (Minv @ (L @ term))).tocsr()
        BN = BN + term
    return BN.tocsr()


def schur_complement(QT, BN, Q):
    """C = QT BN Q, the operator of the pressure/force projection solve."""
    return (QT @ (BN @ Q)).tocsr()
