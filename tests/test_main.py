import io
import logging
import os
import tempfile
import unittest
from contextlib import redirect_stdout

from meristem.main import main, setup_logging
from meristem.presets import PresetLibrary


class TestCLI(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.out = self.tmp.name

    def tearDown(self):
        self.tmp.cleanup()

    def test_list_presets(self):
        buf = io.StringIO()
        with redirect_stdout(buf):
            self.assertEqual(main(["--list-presets"]), 0)
        for name in PresetLibrary.names():
            self.assertIn(name, buf.getvalue())

    def test_render_preset(self):
        code = main(["--preset", "koch_curve", "--generations", "1", "--canvas-size", "64",
                     "--output-dir", self.out])
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(os.path.join(self.out, "final.png")))

    def test_gif_implies_snapshots(self):
        gif = os.path.join(self.out, "growth.gif")
        code = main(["--preset", "koch_curve", "--generations", "1", "--canvas-size", "64", "48",
                     "--output-dir", self.out, "--gif", gif])
        self.assertEqual(code, 0)
        self.assertTrue(os.path.exists(gif))
        self.assertTrue(os.path.exists(os.path.join(self.out, "00004.png")))

    def test_unknown_preset(self):
        self.assertEqual(main(["--preset", "oak", "--output-dir", self.out]), 2)

    def test_negative_generations(self):
        self.assertEqual(main(["--generations", "-1", "--output-dir", self.out]), 2)

    def test_small_canvas(self):
        code = main(["--generations", "1", "--branch-length", "2", "--canvas-size", "20",
                     "--output-dir", self.out])
        self.assertEqual(code, 0)

    def test_max_length(self):
        self.assertEqual(main(["--max-length", "10", "--output-dir", self.out]), 2)


class TestLoggingSetup(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = logging.getLogger()
        self.saved = self.root.handlers[:]
        self.root.handlers = []

    def tearDown(self):
        for handler in self.root.handlers:
            handler.close()
        self.root.handlers = self.saved
        self.tmp.cleanup()

    def test_repeated_setup_adds_no_handlers(self):
        log_file = os.path.join(self.tmp.name, "run.log")
        setup_logging(log_file)
        first = self.root.handlers[:]
        self.assertEqual(len(first), 2)
        self.assertEqual(sum(isinstance(h, logging.FileHandler) for h in first), 1)
        setup_logging(log_file)
        self.assertEqual(self.root.handlers, first)


if __name__ == "__main__":
    unittest.main()
