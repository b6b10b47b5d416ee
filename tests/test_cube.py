"""
Identity cube, RBF mapper and trilinear applier.
Run from project root: python -m pytest tests/ -v
"""
import unittest

import numpy as np

from palette_clut.apply import apply_cube
from palette_clut.core_types import Palette
from palette_clut.cube import cube_node_values, generate_identity_cube, validate_cube
from palette_clut.errors import GenerationError, InvalidParameter
from palette_clut.rbf import interpolate_cube, kernel_weights


def _gradient_image(height=64, width=96, alpha=False):
    ys, xs = np.mgrid[0:height, 0:width]
    r = (xs * 255 // max(1, width - 1)).astype(np.uint8)
    g = (ys * 255 // max(1, height - 1)).astype(np.uint8)
    b = ((xs + ys) * 255 // max(1, height + width - 2)).astype(np.uint8)
    chans = [r, g, b]
    if alpha:
        chans.append(((xs * 7 + ys * 3) % 256).astype(np.uint8))
    return np.stack(chans, axis=-1)


class TestIdentityCube(unittest.TestCase):
    def test_shape_and_dtype(self):
        for level in (1, 2, 8, 17):
            cube = generate_identity_cube(level)
            self.assertEqual(cube.shape, (level, level, level, 3))
            self.assertEqual(cube.dtype, np.uint8)

    def test_nodes_hold_their_bin_values(self):
        level = 8
        cube = generate_identity_cube(level)
        values = cube_node_values(level)
        self.assertEqual(int(values[0]), 0)
        self.assertEqual(int(values[-1]), 255)
        for i, j, k in [(0, 0, 0), (7, 7, 7), (1, 4, 6), (5, 0, 3)]:
            self.assertEqual(
                tuple(int(v) for v in cube[i, j, k]),
                (int(values[i]), int(values[j]), int(values[k])),
            )

    def test_deterministic(self):
        a = generate_identity_cube(8)
        b = generate_identity_cube(8)
        self.assertEqual(a.tobytes(), b.tobytes())

    def test_invalid_level(self):
        for bad in (0, -3, 2.5, True, "8", None):
            with self.assertRaises(InvalidParameter):
                generate_identity_cube(bad)

    def test_validate_cube_rejects_wrong_shape(self):
        with self.assertRaises(GenerationError):
            validate_cube(np.zeros((4, 4, 3, 3), dtype=np.uint8), 4)
        with self.assertRaises(GenerationError):
            validate_cube(np.zeros((4, 4, 4, 3), dtype=np.float32), 4)


class TestRbfMapper(unittest.TestCase):
    def test_single_colour_palette_maps_every_node(self):
        level = 8
        red = Palette("red", ((255, 0, 0),))
        cube = interpolate_cube(generate_identity_cube(level), red, level)
        self.assertEqual(cube.shape, (level, level, level, 3))
        self.assertTrue(np.all(cube.reshape(-1, 3) == np.array([255, 0, 0], dtype=np.uint8)))

    def test_single_colour_with_inverse_quadratic(self):
        level = 5
        teal = Palette("teal", ((0, 128, 128),))
        cube = interpolate_cube(
            generate_identity_cube(level), teal, level, kernel="inverse_quadratic", sigma=10.0
        )
        self.assertTrue(np.all(cube.reshape(-1, 3) == np.array([0, 128, 128], dtype=np.uint8)))

    def test_deterministic(self):
        level = 8
        palette = Palette.from_hexes("nordish", ["#2E3440", "#88C0D0", "#BF616A", "#EBCB8B"])
        identity = generate_identity_cube(level)
        a = interpolate_cube(identity, palette, level)
        b = interpolate_cube(generate_identity_cube(level), palette, level)
        self.assertEqual(a.tobytes(), b.tobytes())

    def test_chunking_does_not_change_result(self):
        level = 6
        palette = Palette.from_hexes("p", ["#000000", "#FFFFFF", "#FF8800"])
        identity = generate_identity_cube(level)
        a = interpolate_cube(identity, palette, level)
        b = interpolate_cube(identity, palette, level, chunk_nodes=7)
        np.testing.assert_array_equal(a, b)

    def test_nodes_on_palette_colours_stay_close(self):
        level = 2
        palette = Palette("bw", ((0, 0, 0), (255, 255, 255)))
        cube = interpolate_cube(generate_identity_cube(level), palette, level)
        self.assertEqual(tuple(int(v) for v in cube[0, 0, 0]), (0, 0, 0))
        self.assertEqual(tuple(int(v) for v in cube[1, 1, 1]), (255, 255, 255))

    def test_output_is_convex_blend_of_palette(self):
        level = 8
        palette = Palette("two", ((40, 40, 40), (200, 60, 20)))
        cube = interpolate_cube(generate_identity_cube(level), palette, level)
        flat = cube.reshape(-1, 3).astype(int)
        self.assertTrue(np.all(flat >= np.array([40, 40, 20])))
        self.assertTrue(np.all(flat <= np.array([200, 60, 40])))

    def test_kernel_weights_positive_and_decreasing(self):
        d = np.array([[0.0, 1.0, 100.0, 10_000.0, 65_025.0]])
        for kernel in ("gaussian", "inverse_quadratic"):
            w = kernel_weights(d, kernel, 40.0)
            self.assertTrue(np.all(w[0, :3] > 0.0), kernel)
            self.assertTrue(np.all(np.diff(w[0]) <= 0.0), kernel)
            self.assertTrue(np.all(np.diff(w[0, :3]) < 0.0), kernel)
        w = kernel_weights(d, "inverse_quadratic", 40.0)
        self.assertTrue(np.all(w > 0.0))

    def test_gaussian_weights_stay_positive_for_small_sigma(self):
        w = kernel_weights(np.array([[1.0e6, 4.0e6]]), "gaussian", 1.0)
        self.assertEqual(float(w[0, 0]), 1.0)
        self.assertTrue(np.all(w > 0.0))
        # farthest in-gamut distance with a narrow kernel
        w = kernel_weights(np.array([[0.0, 65025.0]]), "gaussian", 5.0)
        self.assertEqual(float(w[0, 0]), 1.0)
        self.assertTrue(np.all(w > 0.0))

    def test_small_sigma_cube_is_still_well_defined(self):
        level = 4
        palette = Palette("bw", ((0, 0, 0), (255, 255, 255)))
        cube = interpolate_cube(generate_identity_cube(level), palette, level, sigma=2.0)
        self.assertEqual(tuple(int(v) for v in cube[0, 0, 0]), (0, 0, 0))
        self.assertEqual(tuple(int(v) for v in cube[3, 3, 3]), (255, 255, 255))

    def test_rejects_bad_parameters(self):
        identity = generate_identity_cube(4)
        palette = Palette("p", ((0, 0, 0),))
        with self.assertRaises(InvalidParameter):
            interpolate_cube(identity, palette, 4, kernel="cubic")
        with self.assertRaises(InvalidParameter):
            interpolate_cube(identity, palette, 4, sigma=0.0)
        with self.assertRaises(GenerationError):
            interpolate_cube(identity, palette, 5)


class TestApplyCube(unittest.TestCase):
    def test_identity_cube_preserves_image(self):
        img = _gradient_image()
        for level in (2, 4, 8, 16):
            out = apply_cube(img, generate_identity_cube(level), level)
            err = np.abs(out.astype(int) - img.astype(int)).max()
            self.assertLessEqual(err, 256 / level, f"level {level}")
            self.assertLessEqual(err, 1, f"level {level}")

    def test_identity_cube_random_pixels(self):
        rng = np.random.default_rng(5)
        img = rng.integers(0, 256, size=(20, 30, 3), dtype=np.uint8)
        level = 8
        out = apply_cube(img, generate_identity_cube(level), level)
        self.assertLessEqual(np.abs(out.astype(int) - img.astype(int)).max(), 256 / level)

    def test_solid_red_cube_gives_solid_red_with_alpha(self):
        level = 8
        cube = interpolate_cube(generate_identity_cube(level), Palette("red", ((255, 0, 0),)), level)
        img = _gradient_image(alpha=True)
        out = apply_cube(img, cube, level)
        self.assertTrue(np.all(out[..., 0] == 255))
        self.assertTrue(np.all(out[..., 1] == 0))
        self.assertTrue(np.all(out[..., 2] == 0))
        np.testing.assert_array_equal(out[..., 3], img[..., 3])

    def test_workers_do_not_change_output(self):
        level = 8
        palette = Palette.from_hexes("p", ["#282A36", "#F8F8F2", "#FF79C6", "#50FA7B"])
        cube = interpolate_cube(generate_identity_cube(level), palette, level)
        img = _gradient_image(height=300, width=40, alpha=True)
        single = apply_cube(img, cube, level, workers=1)
        multi = apply_cube(img, cube, level, workers=4)
        np.testing.assert_array_equal(single, multi)

    def test_trilinear_blends_between_nodes(self):
        level = 2
        cube = np.zeros((2, 2, 2, 3), dtype=np.uint8)
        cube[1, :, :] = (200, 0, 0)
        img = np.array([[[0, 0, 0], [255, 0, 0], [51, 0, 0]]], dtype=np.uint8)
        out = apply_cube(img, cube, level)
        self.assertEqual(tuple(int(v) for v in out[0, 0]), (0, 0, 0))
        self.assertEqual(tuple(int(v) for v in out[0, 1]), (200, 0, 0))
        self.assertEqual(tuple(int(v) for v in out[0, 2]), (40, 0, 0))

    def test_input_not_modified(self):
        img = _gradient_image(height=8, width=8)
        before = img.copy()
        apply_cube(img, generate_identity_cube(4), 4)
        np.testing.assert_array_equal(img, before)

    def test_level_mismatch(self):
        with self.assertRaises(GenerationError):
            apply_cube(_gradient_image(4, 4), generate_identity_cube(4), 8)


if __name__ == "__main__":
    unittest.main()
