from pixshop.domain.services.coordinate_mapper import map_pointer


def test_identity_when_rendered_at_native_size():
    p = map_pointer(37, 12, 800, 600, 800, 600)
    assert (p.native.x, p.native.y) == (37, 12)
    assert (p.display.x, p.display.y) == (37, 12)


def test_scales_by_natural_over_client():
    p = map_pointer(100, 50, 1000, 500, 2000, 1000)
    assert (p.native.x, p.native.y) == (200, 100)


def test_non_uniform_scaling_per_axis():
    p = map_pointer(100, 100, 400, 300, 800, 600)
    assert (p.native.x, p.native.y) == (200, 200)
    p = map_pointer(10, 10, 100, 100, 300, 50)
    assert (p.native.x, p.native.y) == (30, 5)


def test_rounds_half_up():
    # 1 * 2.5 = 2.5 -> 3 ; 3 * 0.5 = 1.5 -> 2
    p = map_pointer(1, 3, 100, 100, 250, 50)
    assert (p.native.x, p.native.y) == (3, 2)


def test_rounds_down_below_half():
    p = map_pointer(1, 1, 3, 3, 4, 4)  # 1.333 -> 1
    assert (p.native.x, p.native.y) == (1, 1)


def test_keeps_fractional_display_point():
    p = map_pointer(10.5, 20.25, 100, 100, 100, 100)
    assert p.display.x == 10.5
    assert p.display.y == 20.25
    assert (p.native.x, p.native.y) == (11, 20)
