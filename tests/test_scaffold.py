"""Tests for scaffolding, the undo log, and the separate-dir link."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from pyjit.errors import AlreadyInitializedError, InsufficientPrivilegeError, JitIOError
from pyjit.layout import REPOSITORY_LAYOUT, EntryKind, is_valid_layout
from pyjit.scaffold import UndoLog, link_storage_dir, scaffold


class TestScaffold(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = Path(tempfile.mkdtemp(prefix="pyjit_scaffold_"))

    def test_all_mode_combinations(self) -> None:
        # same directory reused, as the modes without the guard dir tolerate existing entries
        cases = [
            (True, True, "SeparateAndBare"),
            (True, False, "SeparateAndNotBare"),
            (False, True, "NotSeparateAndBare"),
            (False, False, "NotSeparateAndNotBare"),
        ]
        for separate, bare, desc in cases:
            with self.subTest(desc):
                root = self.tmp if (separate or bare) else self.tmp / ".jit"
                scaffold(root, separate, bare, 0o755)
                self.assertTrue(is_valid_layout(root))

    def test_existing_jit_dir_is_already_initialized(self) -> None:
        root = self.tmp / ".jit"
        scaffold(root, False, False, 0o755)
        (root / "config").write_text("KEEP=1\n")
        with self.assertRaises(AlreadyInitializedError):
            scaffold(root, False, False, 0o755)
        self.assertEqual((root / "config").read_text(), "KEEP=1\n")

    def test_existing_file_not_truncated(self) -> None:
        (self.tmp / "config").write_text("A=1\n")
        scaffold(self.tmp, False, True, 0o755)
        self.assertEqual((self.tmp / "config").read_text(), "A=1\n")

    def test_directory_in_file_slot_fails(self) -> None:
        (self.tmp / "head").mkdir()
        with self.assertRaises(JitIOError):
            scaffold(self.tmp, False, True, 0o755)

    def test_file_in_directory_slot_fails(self) -> None:
        (self.tmp / "objects").write_text("")
        with self.assertRaises(JitIOError):
            scaffold(self.tmp, False, True, 0o755)

    @unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
    def test_symlink_in_file_slot_fails(self) -> None:
        outside = Path(tempfile.mkdtemp(prefix="pyjit_outside_")) / "target"
        (self.tmp / "head").symlink_to(outside)
        undo = UndoLog()
        with self.assertRaises(JitIOError):
            scaffold(self.tmp, False, True, 0o755, undo)
        self.assertFalse(outside.exists())
        undo.rollback()
        self.assertTrue((self.tmp / "head").is_symlink())
        self.assertEqual([p.name for p in self.tmp.iterdir()], ["head"])

    @unittest.skipIf(os.name == "nt", "POSIX modes only")
    def test_directory_permission_applied(self) -> None:
        old = os.umask(0)
        try:
            root = self.tmp / ".jit"
            scaffold(root, False, False, 0o750)
        finally:
            os.umask(old)
        self.assertEqual(root.stat().st_mode & 0o777, 0o750)
        self.assertEqual((root / "objects").stat().st_mode & 0o777, 0o750)

    def test_rollback_removes_only_new_entries(self) -> None:
        (self.tmp / "stage").write_text("keep")
        (self.tmp / "logs").mkdir()
        undo = UndoLog()
        scaffold(self.tmp, False, True, 0o755, undo)
        # stage and logs existed already
        self.assertEqual(len(undo), len(REPOSITORY_LAYOUT) - 2)
        undo.rollback()
        self.assertEqual(sorted(p.name for p in self.tmp.iterdir()), ["logs", "stage"])
        self.assertEqual((self.tmp / "stage").read_text(), "keep")

    def test_rollback_after_partial_failure(self) -> None:
        undo = UndoLog()
        root = self.tmp / ".jit"
        root.mkdir()
        (root / "branches").write_text("")
        with self.assertRaises(JitIOError):
            scaffold(root, True, False, 0o755, undo)
        created = [e.name for e in REPOSITORY_LAYOUT if (root / e.name).exists()]
        self.assertIn("main", created)
        undo.rollback()
        self.assertEqual([p.name for p in root.iterdir()], ["branches"])

    def test_entry_kinds(self) -> None:
        root = self.tmp / ".jit"
        scaffold(root, False, False, 0o755)
        for e in REPOSITORY_LAYOUT:
            p = root / e.name
            if e.kind is EntryKind.FILE:
                self.assertTrue(p.is_file(), e.name)
                self.assertEqual(p.stat().st_size, 0)
            else:
                self.assertTrue(p.is_dir(), e.name)


class TestUndoLog(unittest.TestCase):
    def test_runs_newest_first_and_continues_after_failure(self) -> None:
        calls = []
        undo = UndoLog()
        undo.push("first", lambda: calls.append(1))

        def boom() -> None:
            calls.append(2)
            raise OSError("nope")

        undo.push("second", boom)
        undo.push("third", lambda: calls.append(3))
        with self.assertLogs("pyjit.scaffold", level="WARNING"):
            undo.rollback()
        self.assertEqual(calls, [3, 2, 1])
        self.assertEqual(len(undo), 0)

    def test_discard(self) -> None:
        calls = []
        undo = UndoLog()
        undo.push("x", lambda: calls.append(1))
        undo.discard()
        undo.rollback()
        self.assertEqual(calls, [])


@unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
class TestLinkStorageDir(unittest.TestCase):
    def setUp(self) -> None:
        self.wk = Path(tempfile.mkdtemp(prefix="pyjit_wk_"))
        self.sep = Path(tempfile.mkdtemp(prefix="pyjit_sep_"))

    def test_creates_absolute_symlink(self) -> None:
        undo = UndoLog()
        link = link_storage_dir(self.sep, self.wk / ".jit", undo)
        self.assertTrue(link.is_symlink())
        self.assertEqual(os.readlink(link), os.path.abspath(self.sep))
        undo.rollback()
        self.assertFalse(os.path.lexists(link))
        self.assertTrue(self.sep.is_dir())

    def test_existing_link_path_is_already_initialized(self) -> None:
        (self.wk / ".jit").mkdir()
        with self.assertRaises(AlreadyInitializedError):
            link_storage_dir(self.sep, self.wk / ".jit")

    def test_privilege_error_is_distinct(self) -> None:
        err = OSError(1, "Operation not permitted")
        with mock.patch("pyjit.scaffold.os.symlink", side_effect=err):
            with self.assertRaises(InsufficientPrivilegeError):
                link_storage_dir(self.sep, self.wk / ".jit")

    def test_other_os_error_is_io_failure(self) -> None:
        err = OSError(28, "No space left on device")
        with mock.patch("pyjit.scaffold.os.symlink", side_effect=err):
            with self.assertRaises(JitIOError):
                link_storage_dir(self.sep, self.wk / ".jit")
