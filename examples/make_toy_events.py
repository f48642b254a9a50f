"""Generate a synthetic events JSON for the histogramming tasks.

Each simulated collision produces primary pions/kaons/protons plus a few
secondaries. A collision is reconstructed zero, one or two times (split
vertex), and reconstructed tracks carry truth links, smeared pt and random
quality variables so that every cut and histogram gets exercised. A fraction
of collisions contain a back-to-back high-pt pair to make a visible
correlation peak.

Run from repository root:
    PYTHONPATH=src python3 examples/make_toy_events.py --out examples/events.json
"""

from __future__ import annotations
__author__ = "Renato Quagliani <rquaglia@cern.ch>"


import argparse
import json
import math
from pathlib import Path
from random import Random
from typing import Any

SPECIES_PDG = (211, 211, 211, 321, 2212)
SECONDARY_PDG = (11, 13, 211, 2112, 3122)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse generator options."""
    parser = argparse.ArgumentParser(description="Generate toy events JSON for trackhist.")
    parser.add_argument("--n-events", type=int, default=500, help="Number of simulated collisions.")
    parser.add_argument("--multiplicity", type=float, default=12.0, help="Mean primaries per collision.")
    parser.add_argument("--jet-fraction", type=float, default=0.3, help="Fraction with a back-to-back high-pt pair.")
    parser.add_argument("--split-fraction", type=float, default=0.05, help="Fraction reconstructed twice.")
    parser.add_argument("--lost-fraction", type=float, default=0.05, help="Fraction never reconstructed.")
    parser.add_argument("--seed", type=int, default=12345, help="RNG seed for reproducibility.")
    parser.add_argument("--out", default="examples/events.json", help="Output JSON path.")
    return parser.parse_args(argv)


def _poisson(rng: Random, mean: float) -> int:
    """Knuth sampling, fine for the small means used here."""
    limit = math.exp(-mean)
    k = 0
    p = rng.random()
    while p > limit:
        k += 1
        p *= rng.random()
    return k


def _rapidity(pt: float, eta: float, mass: float) -> float:
    """Rapidity from pt, eta and mass."""
    pz = pt * math.sinh(eta)
    e = math.sqrt(pt * pt + pz * pz + mass * mass)
    return 0.5 * math.log((e + pz) / (e - pz))


_MASS = {11: 0.000511, 13: 0.1057, 211: 0.1396, 321: 0.4937, 2112: 0.9396, 2212: 0.9383, 3122: 1.1157}


def generate(args: argparse.Namespace) -> dict[str, Any]:
    """Build the events payload."""
    rng = Random(args.seed)
    collisions: list[dict[str, Any]] = []
    tracks: list[dict[str, Any]] = []
    mc_collisions: list[dict[str, Any]] = []
    mc_particles: list[dict[str, Any]] = []

    for mc_id in range(args.n_events):
        mc_collisions.append({"mc_collision_id": mc_id})
        true_z = rng.gauss(0.0, 7.0)

        particles: list[tuple[dict[str, Any], float, float]] = []
        n_primaries = _poisson(rng, args.multiplicity)
        kinematics = [(rng.expovariate(1.0 / 0.6), rng.uniform(-1.2, 1.2), rng.uniform(0.0, 2.0 * math.pi), True, rng.choice(SPECIES_PDG)) for _ in range(n_primaries)]
        kinematics += [(rng.expovariate(1.0 / 0.4), rng.uniform(-1.2, 1.2), rng.uniform(0.0, 2.0 * math.pi), False, rng.choice(SECONDARY_PDG)) for _ in range(_poisson(rng, 3.0))]
        if rng.random() < args.jet_fraction:
            phi = rng.uniform(0.0, 2.0 * math.pi)
            kinematics.append((rng.uniform(6.0, 9.0), rng.uniform(-0.5, 0.5), phi, True, 211))
            kinematics.append((rng.uniform(4.0, 6.0), rng.uniform(-0.5, 0.5), (phi + math.pi + rng.gauss(0.0, 0.3)) % (2.0 * math.pi), True, 211))
            kinematics.append((rng.uniform(4.0, 6.0), rng.uniform(-0.5, 0.5), (phi + rng.gauss(0.0, 0.3)) % (2.0 * math.pi), True, 321))

        for pt, eta, phi, primary, pdg in kinematics:
            sign = -1 if rng.random() < 0.5 and pdg in (211, 321, 2212, 11, 13) else 1
            particle = {
                "mc_particle_id": len(mc_particles),
                "mc_collision_id": mc_id,
                "pt": pt,
                "y": _rapidity(pt, eta, _MASS[pdg]),
                "pdg_code": sign * pdg,
                "is_physical_primary": primary,
            }
            mc_particles.append(particle)
            particles.append((particle, eta, phi))

        u = rng.random()
        n_reco = 0 if u < args.lost_fraction else 2 if u < args.lost_fraction + args.split_fraction else 1
        reco_ids = []
        for _ in range(n_reco):
            collision_id = len(collisions)
            reco_ids.append(collision_id)
            collisions.append({
                "collision_id": collision_id,
                "pos_z": true_z + rng.gauss(0.0, 0.05),
                "mc_collision_id": mc_id,
            })
        if not reco_ids:
            continue

        for particle, eta, phi in particles:
            if rng.random() > 0.85 or particle["pdg_code"] in (2112, 3122):
                continue  # neutral or not found
            tracks.append({
                "track_id": len(tracks),
                "collision_id": rng.choice(reco_ids),
                "pt": max(0.0, particle["pt"] * (1.0 + rng.gauss(0.0, 0.02))),
                "eta": eta + rng.gauss(0.0, 0.005),
                "phi": (phi + rng.gauss(0.0, 0.005)) % (2.0 * math.pi),
                "tpc_n_cls_crossed_rows": int(rng.uniform(40, 160)),
                "dca_xy": rng.gauss(0.0, 0.05 if particle["is_physical_primary"] else 0.5),
                "mc_particle_id": particle["mc_particle_id"] if rng.random() < 0.95 else -1,
            })

    # Fake tracks without any truth link.
    for collision in collisions:
        for _ in range(_poisson(rng, 0.5)):
            tracks.append({
                "track_id": len(tracks),
                "collision_id": collision["collision_id"],
                "pt": rng.expovariate(1.0 / 0.5),
                "eta": rng.uniform(-1.2, 1.2),
                "phi": rng.uniform(0.0, 2.0 * math.pi),
                "tpc_n_cls_crossed_rows": int(rng.uniform(40, 160)),
                "dca_xy": rng.gauss(0.0, 0.3),
            })

    return {
        "collisions": collisions,
        "tracks": tracks,
        "mc_collisions": mc_collisions,
        "mc_particles": mc_particles,
    }


def main(argv: list[str] | None = None) -> int:
    """Generate and write the toy sample."""
    args = parse_args(argv)
    payload = generate(args)
    out = Path(args.out)
    out.write_text(json.dumps(payload), encoding="utf-8")
    print(
        f"Wrote {len(payload['collisions'])} collisions, {len(payload['tracks'])} tracks, "
        f"{len(payload['mc_particles'])} MC particles to {out}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
