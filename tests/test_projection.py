import pytest

from circuitsense.models import Corners, Point
from circuitsense.projection import box_centroid, project, project_box


def _corners(tl, tr, br, bl):
    mk = lambda p: Point(x=p[0], y=p[1])
    return Corners(top_left=mk(tl), top_right=mk(tr), bottom_right=mk(br), bottom_left=mk(bl))


# A camera-perspective trapezoid: far edge narrower than the near edge.
TRAPEZOID = _corners((320, 180), (710, 205), (880, 840), (140, 790))


def _close(p, x, y):
    return p.x == pytest.approx(x) and p.y == pytest.approx(y)


def test_corners_map_exactly():
    c = TRAPEZOID
    assert _close(project(0, 0, c), 320, 180)
    assert _close(project(1000, 0, c), 710, 205)
    assert _close(project(0, 1000, c), 140, 790)
    assert _close(project(1000, 1000, c), 880, 840)


def test_linear_in_u_for_fixed_v():
    c = TRAPEZOID
    a = project(0, 370, c)
    b = project(1000, 370, c)
    for u in (125, 500, 875):
        p = project(u, 370, c)
        t = u / 1000
        assert _close(p, a.x + t * (b.x - a.x), a.y + t * (b.y - a.y))


def test_linear_in_v_for_fixed_u():
    c = TRAPEZOID
    a = project(640, 0, c)
    b = project(640, 1000, c)
    for v in (100, 450, 990):
        p = project(640, v, c)
        t = v / 1000
        assert _close(p, a.x + t * (b.x - a.x), a.y + t * (b.y - a.y))


def test_center_of_parallelogram_is_its_center():
    c = _corners((100, 100), (500, 150), (600, 450), (200, 400))
    assert _close(project(500, 500, c), 350, 275)


def test_out_of_range_extrapolates():
    c = _corners((100, 100), (900, 100), (900, 900), (100, 900))
    assert _close(project(-250, 1250, c), -100, 1100)


def test_project_box_order_and_centroid():
    c = _corners((100, 100), (900, 100), (900, 900), (100, 900))
    tl, tr, br, bl = project_box(400, 200, 600, 300, c)
    assert _close(tl, 420, 260)
    assert _close(tr, 580, 260)
    assert _close(br, 580, 340)
    assert _close(bl, 420, 340)
    assert _close(box_centroid(400, 200, 600, 300, c), 500, 300)


def test_inverted_box_does_not_raise():
    c = _corners((0, 0), (1000, 0), (1000, 1000), (0, 1000))
    tl, tr, _, _ = project_box(600, 0, 400, 100, c)
    assert tl.x > tr.x
