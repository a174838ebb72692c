import pytest

pytest.importorskip("pygame")

from variants import VARIANT_TABLE, get_variant  # noqa: E402
from constants import GLOW_FADE, GLOW_HOLD, GLOW_SPIN_PERIOD  # noqa: E402
from visualization import (  # noqa: E402
    KEY_COMMANDS, coin_aspect, coin_shades, glow_alpha, glow_angle, shade_color
)


def test_shade_color_identity_and_clamping():
    assert shade_color((10, 128, 250), 1.0, 1.0) == (10, 128, 250)
    assert shade_color((255, 255, 255), 2.0, 1.0) == (255, 255, 255)
    assert shade_color((0, 0, 0), 1.0, 3.0) == (0, 0, 0)


def test_lower_coins_are_darker():
    gold = (232, 178, 54)
    bottom = shade_color(gold, 0.85, 1.05)
    top = shade_color(gold, 1.0, 1.0)
    assert sum(bottom) < sum(top)


def test_side_coins_are_narrow():
    assert coin_aspect(get_variant("coin-0")) == 1.0
    assert coin_aspect(get_variant("coin-5")) < coin_aspect(get_variant("coin-3")) < 1.0
    assert all(0 < coin_aspect(v) <= 1.0 for v in VARIANT_TABLE)


def test_key_commands_cover_host_commands():
    assert set(KEY_COMMANDS.values()) == {"add", "add_many", "remove", "remove_many", "reset"}


def test_coin_shades_repeat_for_equal_depths():
    # Depth shading collapses to a handful of colours, so sprites can be cached.
    assert coin_shades(0.9, 1.02) == coin_shades(0.9, 1.02)
    assert coin_shades(0.9000001, 1.02) == coin_shades(0.9, 1.02)
    assert coin_shades(0.85, 1.05) != coin_shades(1.0, 1.0)
    fill, edge = coin_shades(1.0, 1.0)
    assert fill == (232, 178, 54)
    assert sum(edge) < sum(fill)


def test_glow_fades_in_holds_and_fades_out():
    assert glow_alpha(None) == 0
    assert glow_alpha(0.0) == 0
    assert 0 < glow_alpha(GLOW_FADE / 2) < 255
    assert glow_alpha(GLOW_FADE) == 255
    assert glow_alpha(GLOW_HOLD - 0.01) == 255
    assert 0 < glow_alpha(GLOW_HOLD + GLOW_FADE / 2) < 255
    assert glow_alpha(GLOW_HOLD + GLOW_FADE) == 0
    assert glow_alpha(5.0) == 0


def test_glow_spins_once_per_period():
    assert glow_angle(0.0) == 0.0
    assert glow_angle(GLOW_SPIN_PERIOD / 4) == pytest.approx(90.0)
    assert glow_angle(GLOW_SPIN_PERIOD * 1.5) == pytest.approx(180.0)
