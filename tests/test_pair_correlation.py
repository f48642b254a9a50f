"""Unit tests for the two-particle correlation consumer."""

from __future__ import annotations

import math
import unittest

from trackhist import (
    Collision,
    CorrelationBands,
    EventTables,
    HistogramId,
    PairCorrelationConsumer,
    TaskConfig,
    Track,
    TrackTable,
    compute_delta_phi,
    run_pair_correlation,
)

_EPS = 1e-6


def _track(track_id: int, collision_id: int, pt: float, phi: float = 0.0, eta: float = 0.0) -> Track:
    return Track(
        track_id=track_id,
        collision_id=collision_id,
        pt=pt,
        eta=eta,
        phi=phi,
        tpc_n_cls_crossed_rows=100,
        dca_xy=0.0,
    )


class TestDeltaPhi(unittest.TestCase):
    """Folding of the azimuthal difference into [-pi/2, 3pi/2]."""

    def test_values_inside_range_are_unchanged(self) -> None:
        self.assertAlmostEqual(compute_delta_phi(1.0, 0.5), 0.5, places=12)
        self.assertAlmostEqual(compute_delta_phi(0.5, 1.0), -0.5, places=12)
        self.assertAlmostEqual(compute_delta_phi(4.0, 0.0), 4.0, places=12)

    def test_just_below_lower_edge_wraps_up(self) -> None:
        result = compute_delta_phi(0.0, math.pi / 2.0 + _EPS)
        self.assertAlmostEqual(result, 1.5 * math.pi - _EPS, places=9)

    def test_just_above_upper_edge_wraps_down(self) -> None:
        result = compute_delta_phi(1.5 * math.pi + _EPS, 0.0)
        self.assertAlmostEqual(result, -0.5 * math.pi + _EPS, places=9)

    def test_lower_edge_itself_is_kept(self) -> None:
        self.assertAlmostEqual(compute_delta_phi(0.0, math.pi / 2.0), -math.pi / 2.0, places=12)

    def test_range_for_azimuths_within_one_turn(self) -> None:
        steps = 37
        for i in range(steps):
            for j in range(steps):
                phi1 = 2.0 * math.pi * i / steps
                phi2 = 2.0 * math.pi * j / steps
                d = compute_delta_phi(phi1, phi2)
                self.assertGreaterEqual(d, -math.pi / 2.0)
                self.assertLessEqual(d, 1.5 * math.pi)
                # Folding never changes the angle modulo 2pi.
                self.assertAlmostEqual(math.cos(d), math.cos(phi1 - phi2), places=9)


class TestPairCorrelationConsumer(unittest.TestCase):
    """Band partitioning, pair counting and collision filtering."""

    def test_pair_count_is_trigger_times_associated(self) -> None:
        tracks = TrackTable(
            [
                _track(0, 0, pt=6.5, phi=0.1),
                _track(1, 0, pt=7.0, phi=0.2),
                _track(2, 0, pt=9.5, phi=3.0),
                _track(3, 0, pt=4.5, phi=1.0),
                _track(4, 0, pt=5.9, phi=2.0),
                _track(5, 0, pt=1.0, phi=2.0),
            ]
        )
        consumer = PairCorrelationConsumer()
        n_pairs = consumer.process(Collision(collision_id=0, pos_z=0.0), tracks)

        self.assertEqual(n_pairs, 6)  # 3 triggers x 2 associated
        self.assertEqual(consumer.histos.entries(HistogramId.CORRELATION), 6.0)
        self.assertEqual(consumer.histos.entries(HistogramId.CORRELATION_2D), 6.0)
        self.assertEqual(consumer.histos.entries(HistogramId.PT_TRIGGER), 3.0)
        self.assertEqual(consumer.histos.entries(HistogramId.PT_ASSOCIATED), 2.0)
        self.assertEqual(consumer.histos.entries(HistogramId.EVENT_COUNTER), 1.0)

    def test_band_edges_are_exclusive(self) -> None:
        tracks = TrackTable(
            [
                _track(0, 0, pt=4.0),
                _track(1, 0, pt=6.0),
                _track(2, 0, pt=6.0001),
                _track(3, 0, pt=4.0001),
            ]
        )
        consumer = PairCorrelationConsumer()
        self.assertEqual(consumer.process(Collision(0, pos_z=1.0), tracks), 1)
        self.assertEqual(consumer.histos.entries(HistogramId.PT_TRIGGER), 1.0)
        self.assertEqual(consumer.histos.entries(HistogramId.PT_ASSOCIATED), 1.0)

    def test_pairs_never_cross_collisions(self) -> None:
        tracks = TrackTable(
            [
                _track(0, 0, pt=8.0),
                _track(1, 1, pt=5.0),
                _track(2, 1, pt=5.5),
            ]
        )
        consumer = PairCorrelationConsumer()
        self.assertEqual(consumer.process(Collision(0, pos_z=0.0), tracks), 0)
        self.assertEqual(consumer.process(Collision(1, pos_z=0.0), tracks), 0)
        self.assertEqual(consumer.histos.entries(HistogramId.CORRELATION), 0.0)
        self.assertEqual(consumer.histos.entries(HistogramId.EVENT_COUNTER), 2.0)

    def test_fills_use_folded_delta_phi_and_delta_eta(self) -> None:
        tracks = TrackTable(
            [
                _track(0, 0, pt=7.0, phi=0.0, eta=0.35),
                _track(1, 0, pt=5.0, phi=5.0, eta=0.1),
            ]
        )
        consumer = PairCorrelationConsumer()
        consumer.process(Collision(0, pos_z=0.0), tracks)

        expected_dphi = 0.0 - 5.0 + 2.0 * math.pi
        h1 = consumer.histos[HistogramId.CORRELATION]
        self.assertEqual(float(h1[h1.axes[0].index(expected_dphi)]), 1.0)
        h2 = consumer.histos[HistogramId.CORRELATION_2D]
        ix = h2.axes[0].index(expected_dphi)
        iy = h2.axes[1].index(0.35 - 0.1)
        self.assertEqual(float(h2.values()[ix, iy]), 1.0)

    def test_vertex_z_window_rejects_collision(self) -> None:
        tracks = TrackTable([_track(0, 0, pt=7.0), _track(1, 0, pt=5.0)])
        consumer = PairCorrelationConsumer()
        self.assertEqual(consumer.process(Collision(0, pos_z=10.0), tracks), 0)
        self.assertEqual(consumer.process(Collision(0, pos_z=-12.0), tracks), 0)
        self.assertEqual(consumer.histos.entries(HistogramId.EVENT_COUNTER), 0.0)
        self.assertEqual(consumer.histos.entries(HistogramId.COL_Z), 0.0)
        self.assertEqual(consumer.histos.entries(HistogramId.PT_TRIGGER), 0.0)

    def test_custom_bands(self) -> None:
        config = TaskConfig(correlation=CorrelationBands(assoc_min_pt=1.0, assoc_max_pt=2.0, trigger_min_pt=2.0))
        tracks = TrackTable([_track(0, 0, pt=1.5), _track(1, 0, pt=1.7), _track(2, 0, pt=3.0)])
        consumer = PairCorrelationConsumer(config=config)
        self.assertEqual(consumer.process(Collision(0, pos_z=0.0), tracks), 2)

    def test_col_z_binning_follows_config(self) -> None:
        consumer = PairCorrelationConsumer(config=TaskConfig(n_bins_col_z=20))
        self.assertEqual(consumer.histos[HistogramId.COL_Z].axes[0].size, 20)

    def test_partition_is_cached_per_table(self) -> None:
        tracks = TrackTable([_track(0, 0, pt=7.0), _track(1, 1, pt=5.0)])
        consumer = PairCorrelationConsumer()
        consumer.process(Collision(0, pos_z=0.0), tracks)
        consumer.process(Collision(1, pos_z=0.0), tracks)
        self.assertEqual(len(tracks.cache), 2)  # one grouping per band

    def test_consumers_with_close_bands_do_not_share_groupings(self) -> None:
        tracks = TrackTable([_track(0, 0, pt=4.0000001), _track(1, 0, pt=7.0)])
        loose = PairCorrelationConsumer(config=TaskConfig(correlation=CorrelationBands(assoc_min_pt=4.0)))
        tight = PairCorrelationConsumer(config=TaskConfig(correlation=CorrelationBands(assoc_min_pt=4.0000002)))
        self.assertEqual(loose.associated.name, tight.associated.name)
        self.assertEqual(loose.process(Collision(0, pos_z=0.0), tracks), 1)
        self.assertEqual(tight.process(Collision(0, pos_z=0.0), tracks), 0)
        self.assertEqual(tight.histos.entries(HistogramId.PT_ASSOCIATED), 0.0)
        self.assertEqual(len(tracks.cache), 4)


class TestRunPairCorrelation(unittest.TestCase):
    """Driver loop over all collisions of the tables."""

    def test_driver_skips_collisions_outside_window(self) -> None:
        tables = EventTables(
            collisions=[Collision(0, pos_z=1.0), Collision(1, pos_z=15.0), Collision(2, pos_z=-3.0)],
            tracks=[
                _track(0, 0, pt=7.0),
                _track(1, 0, pt=5.0),
                _track(2, 1, pt=7.0),
                _track(3, 1, pt=5.0),
                _track(4, 2, pt=8.0),
                _track(5, 2, pt=4.5),
                _track(6, 2, pt=5.5),
            ],
        )
        result = run_pair_correlation(tables)
        self.assertEqual(result.n_collisions, 2)
        self.assertEqual(result.n_pairs, 3)
        self.assertEqual(result.histos.entries(HistogramId.COL_Z), 2.0)

    def test_config_and_consumer_together_raise(self) -> None:
        tables = EventTables(collisions=[Collision(0, pos_z=0.0)], tracks=[])
        with self.assertRaises(ValueError):
            run_pair_correlation(tables, TaskConfig(), consumer=PairCorrelationConsumer())


if __name__ == "__main__":
    unittest.main()
