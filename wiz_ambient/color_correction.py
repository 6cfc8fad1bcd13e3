"""
color_correction.py
Perceptual correction applied to a sampled colour right before it is sent
to the light: inverse gamma, per-channel white balance gain, then an HSL
saturation boost.
"""

import colorsys

import numpy as np

from wiz_ambient.models import BLACK, Color

# Scenes darker or brighter than this on every channel are sent untouched.
NEAR_BLACK = 5
NEAR_WHITE = 250

MIN_GAMMA = 1e-3


def is_near_black_or_white(color):
    return (
        (color.r < NEAR_BLACK and color.g < NEAR_BLACK and color.b < NEAR_BLACK)
        or (color.r > NEAR_WHITE and color.g > NEAR_WHITE and color.b > NEAR_WHITE)
    )


def correct_color(original, params):
    """
    Map a sampled colour to the colour the light should show.
    Args:
        original: Color, or None for an invalid sample.
        params: CorrectionParams snapshot.
    Returns:
        Color: corrected colour, 8-bit channels.
    """
    if original is None:
        return BLACK
    if is_near_black_or_white(original):
        return original

    gamma = max(float(params.gamma), MIN_GAMMA)
    rgb = np.clip(np.array(original, dtype=np.float64) / 255.0, 0.0, 1.0)
    rgb = np.power(rgb, 1.0 / gamma) * np.array(params.gains, dtype=np.float64)
    rgb = np.clip(rgb, 0.0, 1.0)

    # colorsys works in HLS order; hue is 0 for achromatic colours and
    # saturation stays 0 there regardless of the multiplier.
    h, l, s = colorsys.rgb_to_hls(*rgb)
    s = float(np.clip(s * float(params.saturation), 0.0, 1.0))
    r, g, b = colorsys.hls_to_rgb(h, l, s)

    out = np.clip(np.round(np.array([r, g, b]) * 255.0), 0, 255).astype(int)
    return Color(int(out[0]), int(out[1]), int(out[2]))


class ColorCorrector:
    """Holds the current correction snapshot; `params` is replaced, never mutated."""

    def __init__(self, params):
        self.params = params

    def correct(self, original):
        return correct_color(original, self.params)
