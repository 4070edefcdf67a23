"""
Gallery batch and command line tests
"""

import tempfile
import unittest
from unittest import mock
from pathlib import Path

import numpy as np

from watch_cutout.cli.batch_process import main
from watch_cutout.models.pixel_buffer import PixelBuffer
from watch_cutout.pipeline.background_remover import remove_background_gallery
from watch_cutout.services.pixel_buffer_service import PixelBufferService


def watch_on_white(path=None):
    pixels = np.full((40, 40, 4), 255, dtype=np.uint8)
    pixels[12:28, 12:28, :3] = (30, 30, 30)
    return PixelBuffer(pixels, Path(path) if path else None)


class TestGallery(unittest.TestCase):

    def setUp(self):
        self.service = PixelBufferService()
        self.tmp = tempfile.TemporaryDirectory()
        self.folder = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_outputs_are_written_as_png(self):
        gallery = [watch_on_white("shots/strap.jpg"), watch_on_white()]
        results = remove_background_gallery(
            gallery, pixel_buffer_service=self.service,
            output_dir=self.folder / "out", mask_dir=self.folder / "masks")

        self.assertEqual(len(results), 2)
        self.assertTrue((self.folder / "out" / "strap.png").is_file())
        self.assertTrue((self.folder / "out" / "cutout_0001.png").is_file())
        self.assertTrue((self.folder / "masks" / "strap_mask.png").is_file())

        saved = self.service.load(self.folder / "out" / "strap.png")
        self.assertEqual(saved.pixels[0, 0, 3], 0)
        self.assertEqual(saved.pixels[20, 20, 3], 255)


class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self.service = PixelBufferService()
        self.tmp = tempfile.TemporaryDirectory()
        self.folder = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_folder(self):
        photos = self.folder / "photos"
        self.service.save(watch_on_white(photos / "one.png"))
        self.service.save(watch_on_white(photos / "two.png"))

        code = main([str(photos), "-o", str(self.folder / "out")])

        self.assertEqual(code, 0)
        self.assertEqual(sorted(p.name for p in (self.folder / "out").iterdir()),
                         ["one.png", "two.png"])

    def test_single_file(self):
        self.service.save(watch_on_white(self.folder / "one.png"))
        code = main([str(self.folder / "one.png"), "-o", str(self.folder / "out"),
                     "--mask-dir", str(self.folder / "masks")])
        self.assertEqual(code, 0)
        self.assertTrue((self.folder / "masks" / "one_mask.png").is_file())

    def test_decode_timeout(self):
        self.service.save(watch_on_white(self.folder / "slow.png"))
        with mock.patch("watch_cutout.repositories.pixel_buffer_repository.cv2.imread",
                        side_effect=TimeoutError("cv2.imread timed-out after 5s")):
            code = main([str(self.folder / "slow.png"), "-o", str(self.folder / "out")])
        self.assertEqual(code, 1)
        self.assertFalse((self.folder / "out" / "slow.png").exists())

    def test_missing_file(self):
        self.assertEqual(main([str(self.folder / "nope.png"), "-o", str(self.folder / "out")]), 1)


if __name__ == '__main__':
    unittest.main()
