"""
Cube persistence and the content-addressed cache store.
Run from project root: python -m pytest tests/ -v
"""
import io
import tempfile
import threading
import time
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest import mock

import numpy as np
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from palette_clut import cache as cache_mod
from palette_clut.cache import CubeStore, cache_key, is_likely_path, safe_clut_filename
from palette_clut.core_types import Palette
from palette_clut.cube import generate_identity_cube
from palette_clut.cube_io import (
    cube_to_image_array,
    load_cube_png,
    save_cube_png,
)
from palette_clut.errors import CubeIOError, GenerationError
from palette_clut.rbf import interpolate_cube

NORD = Palette.from_hexes("nord", ["#2E3440", "#88C0D0", "#BF616A", "#A3BE8C", "#ECEFF4"])


class TestCubePng(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)

    def tearDown(self):
        self._tmp.cleanup()

    def test_round_trip_exact(self):
        level = 8
        cube = interpolate_cube(generate_identity_cube(level), NORD, level)
        path = self.tmp / "c.png"
        save_cube_png(path, cube, level)
        loaded = load_cube_png(path, level)
        self.assertEqual(loaded.tobytes(), cube.tobytes())
        self.assertEqual(loaded.shape, (8, 8, 8, 3))

    def test_round_trip_to_file_object(self):
        level = 3
        cube = generate_identity_cube(level)
        buf = io.BytesIO()
        save_cube_png(buf, cube, level)
        path = self.tmp / "buf.png"
        path.write_bytes(buf.getvalue())
        np.testing.assert_array_equal(load_cube_png(path), cube)

    def test_layout(self):
        level = 4
        arr = cube_to_image_array(generate_identity_cube(level), level)
        self.assertEqual(arr.shape, (4, 16, 3))
        cube = generate_identity_cube(level)
        # pixel (x = g*L + r, y = b) holds cube[r, g, b]
        for r, g, b in [(0, 0, 0), (3, 1, 2), (1, 3, 0), (2, 2, 3)]:
            np.testing.assert_array_equal(arr[b, g * level + r], cube[r, g, b])

    def test_level_mismatch_is_rejected(self):
        path = self.tmp / "c.png"
        save_cube_png(path, generate_identity_cube(4), 4)
        with self.assertRaises(GenerationError):
            load_cube_png(path, 8)

    def test_plain_png_is_not_a_cube(self):
        path = self.tmp / "plain.png"
        Image.fromarray(np.zeros((8, 64, 3), dtype=np.uint8)).save(path)
        with self.assertRaises(GenerationError):
            load_cube_png(path, 8)

    def test_inconsistent_metadata_is_rejected(self):
        info = PngInfo()
        info.add_text("palette_clut.level", "8")
        info.add_text("palette_clut.layout", "rgb-rows-b")
        path = self.tmp / "bad.png"
        Image.fromarray(np.zeros((4, 16, 3), dtype=np.uint8)).save(path, pnginfo=info)
        with self.assertRaises(GenerationError):
            load_cube_png(path)

    def test_missing_or_garbage_file(self):
        with self.assertRaises(CubeIOError):
            load_cube_png(self.tmp / "nope.png")
        junk = self.tmp / "junk.png"
        junk.write_bytes(b"not a png")
        with self.assertRaises(CubeIOError):
            load_cube_png(junk)


class TestCacheKey(unittest.TestCase):
    def test_fixed_length_hex(self):
        key = cache_key(NORD)
        self.assertEqual(len(key), 16)
        int(key, 16)

    def test_deterministic(self):
        again = Palette.from_hexes("other-name", ["#2e3440", "#88c0d0", "#bf616a", "#a3be8c", "#eceff4"])
        self.assertEqual(cache_key(NORD), cache_key(again))

    def test_changing_one_colour_changes_key(self):
        colours = list(NORD.colours)
        colours[2] = (191, 97, 107)
        self.assertNotEqual(cache_key(NORD), cache_key(Palette("nord", tuple(colours))))

    def test_reordering_changes_key(self):
        colours = list(NORD.colours)
        colours[0], colours[1] = colours[1], colours[0]
        self.assertNotEqual(cache_key(NORD), cache_key(Palette("nord", tuple(colours))))

    def test_settings_tag_changes_key(self):
        self.assertNotEqual(cache_key(NORD), cache_key(NORD, "L16:gaussian:40.0"))
        store8 = CubeStore(tempfile.gettempdir(), 8)
        store4 = CubeStore(tempfile.gettempdir(), 4)
        self.assertEqual(store8.key_for(NORD), cache_key(NORD))
        self.assertNotEqual(store4.key_for(NORD), cache_key(NORD))


class TestSafeFilename(unittest.TestCase):
    def test_plain_name(self):
        self.assertEqual(safe_clut_filename("nord", "abc"), "nord_abc.png")

    def test_paths_collapse_to_base_name(self):
        self.assertTrue(is_likely_path("/home/me/themes/ocean.json"))
        self.assertTrue(is_likely_path("~/themes/ocean.yaml"))
        self.assertTrue(is_likely_path("themes\\ocean.yml"))
        self.assertFalse(is_likely_path("ocean"))
        self.assertEqual(safe_clut_filename("/home/me/themes/ocean.json", "k"), "ocean_k.png")
        self.assertEqual(safe_clut_filename("~/themes/ocean.yaml", "k"), "ocean_k.png")
        self.assertEqual(safe_clut_filename("C:\\themes\\ocean.yml", "k"), "ocean_k.png")

    def test_no_traversal(self):
        name = safe_clut_filename("../../etc/passwd", "k")
        self.assertNotIn("/", name)
        self.assertNotIn("..", name)
        self.assertEqual(safe_clut_filename("..", "k"), "theme_k.png")

    def test_odd_characters(self):
        self.assertEqual(safe_clut_filename("Catppuccin Mocha!", "k"), "Catppuccin_Mocha_k.png")


class TestCubeStore(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name) / "cache"

    def tearDown(self):
        self._tmp.cleanup()

    def test_ensure_creates_file_under_cluts(self):
        store = CubeStore(self.root, 8)
        path = store.ensure_cube("nord", NORD)
        self.assertTrue(path.is_file())
        self.assertEqual(path.parent, self.root / "cluts")
        self.assertEqual(path.name, f"nord_{cache_key(NORD)}.png")
        cube = store.load_cube(path)
        expected = interpolate_cube(generate_identity_cube(8), NORD, 8)
        np.testing.assert_array_equal(cube, expected)

    def test_second_call_reads_existing_entry(self):
        store = CubeStore(self.root, 8)
        with mock.patch.object(cache_mod, "interpolate_cube", wraps=cache_mod.interpolate_cube) as spy:
            first = store.ensure_cube("nord", NORD)
            before = first.read_bytes()
            mtime = first.stat().st_mtime_ns
            second = store.ensure_cube("nord", NORD)
        self.assertEqual(first, second)
        self.assertEqual(spy.call_count, 1)
        self.assertEqual(store.generation_count, 1)
        self.assertEqual(second.read_bytes(), before)
        self.assertEqual(second.stat().st_mtime_ns, mtime)

    def test_existing_entry_is_never_overwritten(self):
        store = CubeStore(self.root, 8)
        path = store.clut_path("nord", NORD)
        path.parent.mkdir(parents=True)
        sentinel = interpolate_cube(generate_identity_cube(8), Palette("x", ((1, 2, 3),)), 8)
        save_cube_png(path, sentinel, 8)
        self.assertEqual(store.ensure_cube("nord", NORD), path)
        np.testing.assert_array_equal(store.load_cube(path), sentinel)
        self.assertEqual(store.generation_count, 0)

    def test_directory_creation_is_idempotent(self):
        (self.root / "cluts").mkdir(parents=True)
        store = CubeStore(self.root, 4)
        self.assertTrue(store.ensure_cube("nord", NORD).is_file())

    def test_concurrent_callers_generate_once(self):
        store = CubeStore(self.root, 8)
        n_callers = 12
        barrier = threading.Barrier(n_callers)

        def call(_):
            barrier.wait()
            path = store.ensure_cube("nord", NORD)
            return store.load_cube(path)

        with mock.patch.object(cache_mod, "interpolate_cube", wraps=cache_mod.interpolate_cube) as spy:
            with ThreadPoolExecutor(max_workers=n_callers) as ex:
                cubes = list(ex.map(call, range(n_callers)))

        self.assertEqual(spy.call_count, 1)
        self.assertEqual(store.generation_count, 1)
        for cube in cubes:
            np.testing.assert_array_equal(cube, cubes[0])
        leftovers = [p.name for p in (self.root / "cluts").iterdir() if p.suffix != ".png"]
        self.assertEqual(leftovers, [])

    def test_separate_stores_share_the_creation_lock(self):
        real = cache_mod.interpolate_cube

        def slow_interpolate(*args, **kwargs):
            time.sleep(0.05)
            return real(*args, **kwargs)

        stores = [CubeStore(self.root, 8) for _ in range(4)]
        barrier = threading.Barrier(len(stores) * 2)

        def call(store):
            barrier.wait()
            return store.cube_for("nord", NORD)

        with mock.patch.object(cache_mod, "interpolate_cube", side_effect=slow_interpolate) as spy:
            with ThreadPoolExecutor(max_workers=len(stores) * 2) as ex:
                cubes = list(ex.map(call, stores * 2))

        self.assertEqual(spy.call_count, 1)
        self.assertEqual(sum(s.generation_count for s in stores), 1)
        for cube in cubes:
            np.testing.assert_array_equal(cube, cubes[0])

    def test_explicit_lock_is_used(self):
        own = threading.Lock()
        store = CubeStore(self.root, 4, lock=own)
        self.assertIs(store._lock, own)
        self.assertIs(CubeStore(self.root, 4)._lock, CubeStore(self.root / "x", 8)._lock)
        self.assertTrue(store.ensure_cube("nord", NORD).is_file())
        self.assertFalse(own.locked())

    def test_failed_generation_leaves_no_entry(self):
        store = CubeStore(self.root, 8)
        broken = np.zeros((8, 8, 7, 3), dtype=np.uint8)
        with mock.patch.object(cache_mod, "interpolate_cube", return_value=broken):
            with self.assertRaises(GenerationError):
                store.ensure_cube("nord", NORD)
        self.assertFalse(store.clut_path("nord", NORD).exists())
        self.assertEqual(list((self.root / "cluts").iterdir()), [])
        # a later call succeeds normally
        self.assertTrue(store.ensure_cube("nord", NORD).is_file())

    def test_failed_write_leaves_no_entry(self):
        store = CubeStore(self.root, 8)
        with mock.patch.object(cache_mod, "save_cube_png", side_effect=OSError("disk full")):
            with self.assertRaises(CubeIOError):
                store.ensure_cube("nord", NORD)
        self.assertEqual(list((self.root / "cluts").iterdir()), [])

    def test_directory_creation_failure(self):
        blocker = Path(self._tmp.name) / "file"
        blocker.write_text("x")
        store = CubeStore(blocker, 8)
        with self.assertRaises(CubeIOError):
            store.ensure_cube("nord", NORD)

    def test_distinct_palettes_get_distinct_entries(self):
        store = CubeStore(self.root, 4)
        other = Palette.from_hexes("nord", ["#000000", "#FFFFFF"])
        a = store.ensure_cube("nord", NORD)
        b = store.ensure_cube("nord", other)
        self.assertNotEqual(a, b)
        self.assertEqual(store.generation_count, 2)


if __name__ == "__main__":
    unittest.main()
