"""
test_color_pipeline.py
Tests for the send path: colour correction, change gate, setPilot payload,
UDP sender and config clamping. No real light is needed; UDP tests use a
loopback socket.
"""
import socket
import unittest
from unittest import mock

import numpy as np

from wiz_ambient.change_gate import ChangeGate, accept
from wiz_ambient.color_correction import ColorCorrector, correct_color
from wiz_ambient.config import Config
from wiz_ambient.models import BLACK, Color, CorrectionParams, DeviceTarget
from wiz_ambient.packet_builder import PacketBuilder
from wiz_ambient.udp_sender import UDPSender

IDENTITY = CorrectionParams(gamma=1.0, saturation=1.0, red=1.0, green=1.0, blue=1.0)
EXTREME = CorrectionParams(gamma=3.0, saturation=2.5, red=0.5, green=2.0, blue=0.5)


def _random_colors(n, seed=7):
    rng = np.random.default_rng(seed)
    return [Color(*(int(c) for c in rgb)) for rgb in rng.integers(0, 256, size=(n, 3))]


class TestColorCorrection(unittest.TestCase):
    def test_identity_params_leave_colors_unchanged(self):
        colors = [Color(10, 20, 30), Color(128, 128, 128), Color(255, 0, 0), Color(6, 250, 251)]
        for c in colors + _random_colors(300):
            self.assertEqual(correct_color(c, IDENTITY), c)

    def test_near_black_and_near_white_bypass_any_params(self):
        for c in (Color(0, 0, 0), Color(4, 1, 3), Color(251, 255, 253), Color(255, 255, 255)):
            self.assertEqual(correct_color(c, EXTREME), c)

    def test_bypass_needs_every_channel(self):
        # One channel at the boundary means the colour is corrected normally.
        params = CorrectionParams(gamma=2.0)
        self.assertNotEqual(correct_color(Color(4, 5, 4), params), Color(4, 5, 4))
        self.assertNotEqual(correct_color(Color(251, 250, 251), CorrectionParams(red=0.5)), Color(251, 250, 251))

    def test_invalid_color_becomes_black(self):
        self.assertEqual(correct_color(None, EXTREME), BLACK)

    def test_inverse_gamma_on_grey(self):
        # sqrt(64/255) * 255 = 127.75
        self.assertEqual(correct_color(Color(64, 64, 64), CorrectionParams(gamma=2.0)), Color(128, 128, 128))

    def test_saturation_multiplier_keeps_hue_and_lightness(self):
        self.assertEqual(correct_color(Color(200, 100, 100), CorrectionParams(saturation=2.0)), Color(250, 50, 50))

    def test_channel_gain_clamps_at_full_scale(self):
        self.assertEqual(correct_color(Color(200, 100, 100), CorrectionParams(red=2.0)), Color(255, 100, 100))

    def test_grey_stays_grey_under_saturation(self):
        self.assertEqual(correct_color(Color(90, 90, 90), CorrectionParams(saturation=2.5)), Color(90, 90, 90))

    def test_out_of_range_params_do_not_raise(self):
        for params in (CorrectionParams(gamma=0.0), CorrectionParams(gamma=-1.0, saturation=-3.0, red=9.0)):
            out = correct_color(Color(100, 150, 200), params)
            for channel in out:
                self.assertTrue(0 <= channel <= 255)

    def test_deterministic(self):
        params = Config().correction_params()
        c = Color(37, 120, 201)
        self.assertEqual(correct_color(c, params), correct_color(c, params))

    def test_corrector_reads_replaced_params(self):
        corrector = ColorCorrector(IDENTITY)
        c = Color(64, 64, 64)
        self.assertEqual(corrector.correct(c), c)
        corrector.params = CorrectionParams(gamma=2.0)
        self.assertEqual(corrector.correct(c), Color(128, 128, 128))


class TestChangeGate(unittest.TestCase):
    def test_first_sample_always_accepted(self):
        for t in (0, 5, 765, 10000):
            self.assertTrue(accept(Color(1, 2, 3), None, t))

    def test_identical_color_never_reaccepted(self):
        c = Color(40, 50, 60)
        for t in (0, 1, 100):
            self.assertFalse(accept(c, c, t))

    def test_threshold_is_strictly_greater(self):
        last = Color(0, 0, 0)
        self.assertTrue(accept(Color(0, 0, 6), last, 5))
        self.assertFalse(accept(Color(0, 0, 5), last, 5))

    def test_manhattan_not_euclidean(self):
        # Euclidean distance would be ~3.46, Manhattan is 6.
        self.assertTrue(accept(Color(2, 2, 2), Color(0, 0, 0), 5))
        self.assertTrue(accept(Color(0, 10, 0), Color(3, 10, 3), 5))

    def test_gate_tracks_last_accepted_not_last_seen(self):
        gate = ChangeGate(threshold=5)
        self.assertTrue(gate.offer(Color(0, 0, 0)))
        self.assertFalse(gate.offer(Color(0, 0, 3)))
        self.assertFalse(gate.offer(Color(0, 0, 5)))
        self.assertTrue(gate.offer(Color(0, 0, 6)))
        self.assertEqual(gate.last_accepted, Color(0, 0, 6))

    def test_threshold_change_does_not_reconsider(self):
        gate = ChangeGate(threshold=0)
        gate.offer(Color(10, 10, 10))
        gate.threshold = 50
        self.assertEqual(gate.last_accepted, Color(10, 10, 10))
        self.assertFalse(gate.offer(Color(20, 20, 20)))
        self.assertTrue(gate.offer(Color(20, 20, 20), threshold=29))

    def test_reset_accepts_next_sample(self):
        gate = ChangeGate(threshold=100)
        gate.offer(Color(1, 1, 1))
        gate.reset()
        self.assertTrue(gate.offer(Color(1, 1, 1)))


class TestPacketBuilder(unittest.TestCase):
    def setUp(self):
        self.builder = PacketBuilder(Config())

    def test_set_pilot_format(self):
        packet = self.builder.build(Color(10, 20, 30), 75)
        self.assertEqual(packet, b'{"id":1,"method":"setPilot","params":{"r":10,"g":20,"b":30,"dimming":75}}')

    def test_values_are_clamped(self):
        packet = self.builder.build((300, -5, 12.6), 0)
        self.assertEqual(packet, b'{"id":1,"method":"setPilot","params":{"r":255,"g":0,"b":13,"dimming":1}}')
        packet = self.builder.build(Color(1, 2, 3), 150)
        self.assertIn(b'"dimming":100', packet)

    def test_brightness_cap_from_config(self):
        cfg = Config()
        cfg.brightness_cap = 60
        builder = PacketBuilder(cfg)
        self.assertIn(b'"dimming":60', builder.build(Color(1, 2, 3), 100))
        self.assertIn(b'"dimming":40', builder.build(Color(1, 2, 3), 40))
        # No config means the protocol ceiling
        self.assertIn(b'"dimming":100', PacketBuilder().build(Color(1, 2, 3), 100))


class TestUDPSender(unittest.TestCase):
    def setUp(self):
        self.sock = mock.Mock()
        self.resolver = mock.Mock(return_value='192.168.50.110')
        self.on_status = mock.Mock()
        self.sender = UDPSender(Config(), sock=self.sock, resolver=self.resolver, on_status=self.on_status)

    def test_loopback_datagram(self):
        rx = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.addCleanup(rx.close)
        rx.bind(('127.0.0.1', 0))
        rx.settimeout(2.0)
        sender = UDPSender(Config())
        self.addCleanup(sender.close)

        self.assertTrue(sender.send(DeviceTarget('127.0.0.1', rx.getsockname()[1], 75), Color(10, 20, 30)))
        data, _ = rx.recvfrom(1024)
        self.assertEqual(data, b'{"id":1,"method":"setPilot","params":{"r":10,"g":20,"b":30,"dimming":75}}')

    def test_same_host_resolves_once(self):
        target = DeviceTarget('bulb.local', 38899, 100)
        self.sender.send(target, Color(1, 2, 3))
        self.sender.send(target, Color(4, 5, 6))
        self.sender.send(target._replace(port=40000, brightness=10), Color(7, 8, 9))
        self.assertEqual(self.resolver.call_count, 1)
        self.sock.sendto.assert_called_with(mock.ANY, ('192.168.50.110', 40000))

    def test_new_host_resolves_again(self):
        self.sender.send(DeviceTarget('bulb.local'), Color(1, 2, 3))
        self.resolver.return_value = '192.168.50.111'
        self.sender.send(DeviceTarget('bulb2.local'), Color(1, 2, 3))
        self.assertEqual(self.resolver.call_count, 2)
        self.sock.sendto.assert_called_with(mock.ANY, ('192.168.50.111', 38899))

    def test_unresolvable_host_skips_send_and_keeps_cache(self):
        self.sender.send(DeviceTarget('bulb.local'), Color(1, 2, 3))
        self.resolver.side_effect = OSError("Name or service not known")
        ok = self.sender.send(DeviceTarget('nope.invalid'), Color(1, 2, 3))
        self.assertFalse(ok)
        self.assertEqual(self.sock.sendto.call_count, 1)
        self.assertEqual(self.sender.cached_host, 'bulb.local')
        self.assertEqual(self.sender.cached_address, '192.168.50.110')
        self.assertIn('nope.invalid', self.sender.last_error)
        self.on_status.assert_called_once()

    def test_unresolvable_host_is_looked_up_once(self):
        self.resolver.side_effect = OSError("Name or service not known")
        bad = DeviceTarget('nope.invalid')
        for _ in range(5):
            self.assertFalse(self.sender.send(bad, Color(1, 2, 3)))
        self.assertEqual(self.resolver.call_count, 1)
        self.on_status.assert_called_once()
        self.sock.sendto.assert_not_called()

        self.resolver.side_effect = None
        self.assertTrue(self.sender.send(DeviceTarget('bulb.local'), Color(1, 2, 3)))
        self.assertEqual(self.resolver.call_count, 2)
        # Switching back to the failed host tries it again, once
        self.resolver.side_effect = OSError("Name or service not known")
        self.sender.send(bad, Color(1, 2, 3))
        self.sender.send(bad, Color(1, 2, 3))
        self.assertEqual(self.resolver.call_count, 3)
        self.assertEqual(self.sender.cached_host, 'bulb.local')

    def test_cached_host_and_address_change_together(self):
        self.sender.send(DeviceTarget('bulb.local'), Color(1, 2, 3))
        before = self.sender._cache
        self.resolver.return_value = '192.168.50.111'
        self.sender.send(DeviceTarget('bulb2.local'), Color(1, 2, 3))
        self.assertEqual(before, ('bulb.local', '192.168.50.110'))
        self.assertEqual(self.sender._cache, ('bulb2.local', '192.168.50.111'))
        self.assertEqual((self.sender.cached_host, self.sender.cached_address), self.sender._cache)

    def test_send_failure_is_reported_not_raised(self):
        self.sock.sendto.side_effect = BlockingIOError("would block")
        ok = self.sender.send(DeviceTarget('bulb.local'), Color(1, 2, 3))
        self.assertFalse(ok)
        self.assertIn('UDP send failed', self.sender.last_error)
        self.sock.sendto.side_effect = None
        self.assertTrue(self.sender.send(DeviceTarget('bulb.local'), Color(1, 2, 3)))
        self.assertEqual(self.sender.last_error, "")


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        cfg = Config()
        self.assertEqual(cfg.device_target(), DeviceTarget('192.168.50.110', 38899, 100))
        self.assertEqual(cfg.correction_params(), CorrectionParams(0.6, 1.8, 1.2, 1.0, 1.2))
        self.assertEqual(cfg.validate(), [])

    def test_validate_clamps(self):
        cfg = Config()
        cfg.gamma = 5.0
        cfg.brightness = 0
        cfg.capture_size = 80
        changed = cfg.validate()
        self.assertEqual(sorted(changed), ['brightness', 'capture_size', 'gamma'])
        self.assertEqual(cfg.gamma, 3.0)
        self.assertEqual(cfg.brightness, 1)
        self.assertEqual(cfg.capture_size, 50)

    def test_capture_region_defaults_to_given_center(self):
        cfg = Config()
        region = cfg.capture_region(default_center=(960, 540))
        self.assertEqual((region.x, region.y, region.size), (960, 540, 10))
        cfg.capture_x, cfg.capture_y = 5, 6
        self.assertEqual(cfg.capture_region(default_center=(960, 540))[:2], (5, 6))


if __name__ == "__main__":
    unittest.main()
