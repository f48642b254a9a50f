"""Particle-species helpers used by the per-species pt spectra.

Classification only looks at the absolute PDG code, so particles and
antiparticles share a species.
"""

from __future__ import annotations

import enum


class Species(enum.Enum):
    """Identified charged-hadron species."""

    PION = 211
    KAON = 321
    PROTON = 2212


_PDG_TO_SPECIES: dict[int, Species] = {s.value: s for s in Species}


def species_from_pdg(pdg_code: int) -> Species | None:
    """Return the species for a PDG code, or None for anything else."""
    return _PDG_TO_SPECIES.get(abs(int(pdg_code)))

