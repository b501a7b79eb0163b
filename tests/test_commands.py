import io
import os
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime, timezone
from pathlib import Path
from unittest import mock

import habit
import habit_commands
from habit_errors import AlreadyCompleted, InvalidName, NotFound
from habit_store import HabitStore


class CommandTestCase(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.path = Path(self._tmp.name) / "habits.json"


class CommandFunctionTests(CommandTestCase):
    def test_add_persists_and_resolves_by_id(self):
        created = habit_commands.add_habit(self.path, "Meditate", "breathing", 7)

        loaded = HabitStore.load(self.path).resolve(str(created.id))
        self.assertEqual(loaded.name, "Meditate")
        self.assertEqual(loaded, created)

    def test_add_blank_name_writes_nothing(self):
        with self.assertRaises(InvalidName):
            habit_commands.add_habit(self.path, "   ")
        self.assertFalse(self.path.exists())

    def test_add_invalid_frequency_writes_nothing(self):
        for frequency in (-1, True):
            with self.assertRaises(InvalidName):
                habit_commands.add_habit(self.path, "Run", None, frequency)
        self.assertFalse(self.path.exists())

        habit_commands.add_habit(self.path, "Run", None, 0)
        self.assertEqual(HabitStore.load(self.path).resolve("Run").target_frequency, 0)

    def test_complete_twice_same_day(self):
        habit_commands.add_habit(self.path, "Stretch")
        morning = datetime(2026, 4, 2, 7, tzinfo=timezone.utc)
        evening = datetime(2026, 4, 2, 21, tzinfo=timezone.utc)

        habit_commands.complete_habit(self.path, "stretch", when=morning)
        with self.assertRaises(AlreadyCompleted) as ctx:
            habit_commands.complete_habit(self.path, "STRETCH", when=evening)

        self.assertEqual(ctx.exception.name, "Stretch")
        self.assertEqual(HabitStore.load(self.path).habits[0].completions, [morning])

    def test_complete_missing(self):
        with self.assertRaises(NotFound):
            habit_commands.complete_habit(self.path, "Nothing")

    def test_list_filters_inactive_by_default(self):
        habit_commands.add_habit(self.path, "Keep")
        habit_commands.add_habit(self.path, "Pause")
        habit_commands.edit_habit(self.path, "Pause", active=False)

        self.assertEqual([h.name for h in habit_commands.list_habits(self.path)], ["Keep"])
        everything = habit_commands.list_habits(self.path, active_only=False)
        self.assertEqual([h.name for h in everything], ["Keep", "Pause"])

    def test_edit_fields(self):
        habit_commands.add_habit(self.path, "Read", "novels", 3)

        edited = habit_commands.edit_habit(
            self.path, "read", name="Read papers", description="arxiv", frequency="5"
        )

        self.assertEqual(edited.name, "Read papers")
        stored = HabitStore.load(self.path).resolve("Read papers")
        self.assertEqual(stored.description, "arxiv")
        self.assertEqual(stored.target_frequency, 5)

    def test_edit_null_sentinel_clears_optionals(self):
        habit_commands.add_habit(self.path, "Read", "novels", 3)

        habit_commands.edit_habit(self.path, "Read", description="null", frequency="NULL")

        stored = HabitStore.load(self.path).resolve("Read")
        self.assertIsNone(stored.description)
        self.assertIsNone(stored.target_frequency)

    def test_edit_rejections_leave_file_untouched(self):
        habit_commands.add_habit(self.path, "Read", "novels", 3)
        before = self.path.read_bytes()

        with self.assertRaises(InvalidName):
            habit_commands.edit_habit(self.path, "Read", name=" ")
        with self.assertRaises(InvalidName) as ctx:
            habit_commands.edit_habit(self.path, "Read", description="changed", frequency="weekly")
        self.assertEqual(ctx.exception.value, "frequency")
        with self.assertRaises(InvalidName):
            habit_commands.edit_habit(self.path, "Read", frequency="-2")
        with self.assertRaises(NotFound):
            habit_commands.edit_habit(self.path, "Write", name="Write more")

        self.assertEqual(self.path.read_bytes(), before)

    def test_remove(self):
        habit_commands.add_habit(self.path, "Read")
        self.assertEqual(habit_commands.remove_habit(self.path, "READ"), 1)
        self.assertEqual(HabitStore.load(self.path).habits, [])
        with self.assertRaises(NotFound):
            habit_commands.remove_habit(self.path, "Read")


class CliTests(CommandTestCase):
    def setUp(self):
        super().setUp()
        patcher = mock.patch.dict(os.environ, {"HABIT_STORAGE": str(self.path)})
        patcher.start()
        self.addCleanup(patcher.stop)

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = habit.main(list(argv))
        return code, out.getvalue(), err.getvalue()

    def test_meditate_lifecycle(self):
        code, out, _ = self.run_cli("add", "Meditate", "--frequency", "7")
        self.assertEqual(code, 0)
        self.assertIn("Added habit: 'Meditate'", out)

        code, out, _ = self.run_cli("list")
        self.assertIn("| Meditate", out)
        self.assertIn("Completions: 0/7 days", out)
        self.assertIn("Target: 7 days", out)

        code, out, _ = self.run_cli("complete", "meditate")
        self.assertEqual(code, 0)
        self.assertIn("Marked complete: 'Meditate'", out)

        code, out, _ = self.run_cli("list")
        self.assertIn("Completions: 1/7 days", out)

        code, out, err = self.run_cli("complete", "Meditate")
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("Error: habit already completed for date: Meditate", err)

        code, out, _ = self.run_cli("remove", "Meditate")
        self.assertEqual(code, 0)
        self.assertIn("Removed habit: Meditate", out)

        code, out, _ = self.run_cli("list")
        self.assertEqual(code, 0)
        self.assertIn("No habits to display (active = true)", out)
        self.assertNotIn("Meditate", out)

    def test_edit_description_to_null(self):
        self.run_cli("add", "Journal", "--description", "three lines")
        code, out, _ = self.run_cli("edit", "journal", "--description", "null")

        self.assertEqual(code, 0)
        self.assertIn("Updated habit: 'Journal'", out)
        self.assertIsNone(HabitStore.load(self.path).resolve("Journal").description)
        _, out, _ = self.run_cli("list")
        self.assertNotIn("Description:", out)

    def test_list_all_shows_inactive(self):
        self.run_cli("add", "Nap")
        self.run_cli("edit", "Nap", "--active", "false")

        _, out, _ = self.run_cli("list")
        self.assertIn("No habits to display", out)
        _, out, _ = self.run_cli("list", "--all")
        self.assertIn("Active: false", out)
        self.assertIn("Completions: 0/0 days", out)

    def test_not_found_exit_status(self):
        code, _, err = self.run_cli("remove", "ghost")
        self.assertEqual(code, 1)
        self.assertIn("habit not found: ghost", err)

    def test_blank_name_exit_status(self):
        code, _, err = self.run_cli("add", "  ")
        self.assertEqual(code, 1)
        self.assertIn("invalid habit name", err)
        self.assertFalse(self.path.exists())

    def test_corrupt_file_is_reported(self):
        self.path.write_text("[]", encoding="utf-8")
        code, _, err = self.run_cli("list")
        self.assertEqual(code, 1)
        self.assertIn("corrupt habit store", err)


if __name__ == "__main__":
    unittest.main()
