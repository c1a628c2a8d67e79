"""Tests for the CLI: version, init success and failure exit codes."""

import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

from pyjit.cli import build_parser, main
from pyjit.constants import JIT_DIR_NAME, JIT_VERSION


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = Path(tempfile.mkdtemp(prefix="pyjit_cli_"))

    def _run(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_version_flags(self) -> None:
        for flag in ("-v", "--version"):
            with self.subTest(flag=flag):
                code, out, _ = self._run(flag)
                self.assertEqual(code, 0)
                self.assertIn(JIT_VERSION, out)

    def test_no_command(self) -> None:
        code, _, _ = self._run()
        self.assertEqual(code, 1)

    def test_init_defaults(self) -> None:
        code, out, _ = self._run("init", str(self.tmp))
        self.assertEqual(code, 0)
        self.assertIn("Initialized empty Jit repository", out)
        root = self.tmp / JIT_DIR_NAME
        self.assertEqual((root / "head").read_text(), str(root / "branches" / "main"))

    def test_init_quiet_bare_branch(self) -> None:
        code, out, _ = self._run("init", "-q", "--bare", "-b", "trunk", str(self.tmp))
        self.assertEqual(code, 0)
        self.assertEqual(out, "")
        self.assertTrue((self.tmp / "branches" / "trunk").is_file())
        self.assertFalse((self.tmp / JIT_DIR_NAME).exists())

    def test_init_bad_perm(self) -> None:
        code, _, err = self._run("init", "--perm", "abc", str(self.tmp))
        self.assertEqual(code, 1)
        self.assertIn("Error (parse-options)", err)
        self.assertEqual(list(self.tmp.iterdir()), [])

    def test_init_twice_reports_error(self) -> None:
        self.assertEqual(self._run("init", "-q", str(self.tmp))[0], 0)
        code, _, err = self._run("init", "-q", str(self.tmp))
        self.assertEqual(code, 1)
        self.assertIn("already contains a jit repository", err)

    def test_parser_maps_option_names(self) -> None:
        args = build_parser().parse_args(
            ["init", "--separate-jit-dir", "/s", "--object-format", "sha256", "--template", "/t"]
        )
        self.assertEqual(args.separate_jit_dir, "/s")
        self.assertEqual(args.object_format, "sha256")
        self.assertEqual(args.template, "/t")
        self.assertEqual(args.perm, "0755")
        self.assertEqual(args.initial_branch, "main")
