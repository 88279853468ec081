"""Time integration schemes for the fractional-step solvers.

Convection is explicit (Euler, Adams-Bashforth 2 or low-storage RK3) and
diffusion is explicit, implicit or Crank-Nicolson. Sub-step ``k`` advances

    M (q^{k+1} - q^k) = -gamma_k H^k - zeta_k H^{k-1}
                        + alpha_E,k L q^k + alpha_I,k L q^{k+1} - ...

with alpha_{E,I},k = w_{E,I} (gamma_k + zeta_k).
"""

from dataclasses import dataclass
from typing import Tuple


CONVECTION_SCHEMES = {
    "euler-explicit": ((1.0,), (0.0,)),
    "adams-bashforth-2": ((1.5,), (-0.5,)),
    "runge-kutta-3": ((8.0 / 15.0, 5.0 / 12.0, 3.0 / 4.0), (0.0, -17.0 / 60.0, -5.0 / 12.0)),
}

# (explicit weight, implicit weight)
DIFFUSION_SCHEMES = {
    "euler-explicit": (1.0, 0.0),
    "euler-implicit": (0.0, 1.0),
    "crank-nicolson": (0.5, 0.5),
}


@dataclass(frozen=True)
class IntegrationScheme:
    """Per-sub-step coefficients of a convection/diffusion scheme pair."""

    gamma: Tuple[float, ...]
    zeta: Tuple[float, ...]
    alpha_explicit: Tuple[float, ...]
    alpha_implicit: Tuple[float, ...]
    convection: str = ""
    diffusion: str = ""

    @property
    def sub_steps(self) -> int:
        return len(self.gamma)

    @classmethod
    def from_names(cls, convection: str, diffusion: str) -> "IntegrationScheme":
        """Build a scheme from its convection and diffusion names."""
        convection = convection.lower()
        diffusion = diffusion.lower()
        if convection not in CONVECTION_SCHEMES:
            raise ValueError(
                f"Unknown convection scheme: {convection}. "
                f"Use one of {sorted(CONVECTION_SCHEMES)}"
            )
        if diffusion not in DIFFUSION_SCHEMES:
            raise ValueError(
                f"Unknown diffusion scheme: {diffusion}. "
                f"Use one of {sorted(DIFFUSION_SCHEMES)}"
            )

        gamma, zeta = CONVECTION_SCHEMES[convection]
        w_explicit, w_implicit = DIFFUSION_SCHEMES[diffusion]
        weights = [g + z for g, z in zip(gamma, zeta)]
        return cls(
            gamma=tuple(gamma),
            zeta=tuple(zeta),
            alpha_explicit=tuple(w_explicit * w for w in weights),
            alpha_implicit=tuple(w_implicit * w for w in weights),
            convection=convection,
            diffusion=diffusion,
        )

    def time_fraction(self, sub_step: int) -> float:
        """Fraction of dt covered once ``sub_step`` is complete."""
        return sum(g + z for g, z in zip(self.gamma[: sub_step + 1], self.zeta[: sub_step + 1]))
