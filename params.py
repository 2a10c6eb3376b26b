import json
import math
from dataclasses import dataclass, asdict, fields, replace

# Bertuzzi, Salinari & Mingrone, Am J Physiol Endocrinol Metab 293:E396-E409 (2007)
@dataclass(frozen=True)
class Params:
    # granule dynamics (Eqs. 1-6)
    k: float = 1e-2          # min^-1, granule formation in trans-Golgi
    bI: float = 4.0          # min^-1, proinsulin aggregate biosynthesis
    alpha_I: float = 0.3     # min^-1, proinsulin degradation
    bV: float = 6.0          # min^-1, membrane material biosynthesis
    alpha_V: float = 0.6     # min^-1, = 2*alpha_I
    tau_V: float = 5.0       # min, membrane recycling delay
    CT: float = 500.0        # total Ca2+ channels
    k1p: float = 1.447e-5    # min^-1, granule/channel association
    k1m: float = 0.10375     # min^-1, granule/channel dissociation
    sigma: float = 30.0      # min^-1, release from fused granules

    # stimulus-secretion coupling (Eqs. 7-10)
    eta: float = 4.0         # min^-1
    gamma_b: float = 1e-4    # min^-1
    tau_G: float = 1.0       # min, glucose metabolism delay
    G_star: float = 4.58     # mmol/l, gamma activation threshold
    h_hat: float = 3.93e-3   # min^-1, max of h_gamma
    G_hat: float = 10.0      # mmol/l, h_gamma plateau onset
    zeta: float = 4.0        # min^-1
    rho_b: float = 0.02      # min^-1
    k_rho: float = 350.0

    # responding fraction f(G) (Eq. A5)
    fb: float = 0.05
    Kf: float = 3.43         # mmol/l

    # secretion scaling (Eq. 11)
    I0: float = 1.6          # amol insulin per granule
    Nc: float = 1000.0       # beta cells per islet
    Ni: float = 1.0          # islets

    def __post_init__(self):
        for fld in fields(self):
            v = getattr(self, fld.name)
            if isinstance(v, bool) or not isinstance(v, (int, float)):
                raise ValueError(f"parameter {fld.name} must be a number, got {v!r}")
            if not math.isfinite(v):
                raise ValueError(f"parameter {fld.name} is not finite: {v!r}")
            object.__setattr__(self, fld.name, float(v))
        if self.tau_V <= 0.0 or self.tau_G < 0.0:
            raise ValueError("delays must satisfy tau_V > 0 and tau_G >= 0")
        if self.G_hat <= self.G_star:
            raise ValueError("G_hat must be above G_star")

    def replace(self, **changes) -> "Params":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Params":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"unknown parameters: {sorted(unknown)}")
        return cls(**data)

    def to_json(self) -> str:
        # json writes floats with repr(), so the round trip is exact
        return json.dumps(self.to_dict(), sort_keys=True)

    @classmethod
    def from_json(cls, text: str) -> "Params":
        return cls.from_dict(json.loads(text))
