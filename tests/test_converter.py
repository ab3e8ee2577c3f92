"""
Converter & Project Tests.

Validates that the driver:
  1. Discovers files from paths, globs, exclusions and tsconfig.json
  2. Converts files in order and saves them by default
  3. Awaits asynchronous callbacks one file at a time
  4. Aborts on the first unsupported operator, leaving that file unchanged
"""

import asyncio
import os
import sys
import tempfile
import unittest

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, PROJECT_ROOT)

from n2b.converter import Converter, convert, convert_code, keep_in_memory
from n2b.errors import ConversionError, UnsupportedOperatorError
from n2b.options import ConversionOptions, ProjectOptions
from n2b.project import SOURCE_CODE_FILE_NAME, Project, load_tsconfig


def _write(directory, rel_path, text):
    path = os.path.join(directory, rel_path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)
    return path


def _read(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


class _TempProjectCase(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()


class TestProjectDiscovery(_TempProjectCase):

    def test_directory_is_scanned(self):
        _write(self.root, "a.ts", "const a = 1;")
        _write(self.root, "sub/b.js", "const b = 2;")
        _write(self.root, "notes.md", "1 + 2")
        _write(self.root, "node_modules/dep/index.js", "module.exports = 1 + 2;")
        _write(self.root, "types.d.ts", "declare const x: number;")

        project = Project()
        project.add_files_at_paths(self.root)
        names = [os.path.relpath(f.path, self.root) for f in project.get_source_files()]
        self.assertEqual(names, ["a.ts", os.path.join("sub", "b.js")])

    def test_glob_and_exclusion(self):
        _write(self.root, "src/a.ts", "")
        _write(self.root, "src/a.spec.ts", "")
        _write(self.root, "src/deep/c.ts", "")

        project = Project()
        project.add_files_at_paths([
            os.path.join(self.root, "src", "**", "*.ts"),
            "!" + os.path.join(self.root, "src", "**", "*.spec.ts"),
        ])
        names = sorted(os.path.basename(f.path) for f in project.get_source_files())
        self.assertEqual(names, ["a.ts", "c.ts"])

    def test_files_added_once(self):
        path = _write(self.root, "a.ts", "")
        project = Project()
        project.add_files_at_paths([path, path, self.root])
        self.assertEqual(len(project), 1)

    def test_missing_file_skipped(self):
        project = Project()
        project.add_files_at_paths(os.path.join(self.root, "missing.ts"))
        self.assertEqual(len(project), 0)

    def test_source_code_dummy_file(self):
        project = Project.from_options(ProjectOptions(source_code="const x = 1 + 2;"))
        files = project.get_source_files()
        self.assertEqual(len(files), 1)
        self.assertEqual(files[0].path, SOURCE_CODE_FILE_NAME)
        self.assertTrue(files[0].in_memory)

    def test_tsconfig_include_exclude(self):
        _write(self.root, "src/a.ts", "")
        _write(self.root, "src/a.spec.ts", "")
        _write(self.root, "scripts/tool.ts", "")
        tsconfig = _write(self.root, "tsconfig.json", (
            "{\n"
            "  // project sources\n"
            '  "compilerOptions": { "strict": true, },\n'
            '  "include": ["src/**/*"],\n'
            '  "exclude": ["src/**/*.spec.ts"],\n'
            "}\n"
        ))
        project = Project()
        project.add_files_from_tsconfig(tsconfig)
        names = [os.path.basename(f.path) for f in project.get_source_files()]
        self.assertEqual(names, ["a.ts"])

    def test_tsconfig_files_list(self):
        _write(self.root, "main.ts", "")
        _write(self.root, "other.ts", "")
        tsconfig = _write(self.root, "tsconfig.json", '{ "files": ["main.ts"] }')
        project = Project()
        project.add_files_from_tsconfig(tsconfig)
        names = [os.path.basename(f.path) for f in project.get_source_files()]
        self.assertEqual(names, ["main.ts"])

    def test_invalid_tsconfig(self):
        tsconfig = _write(self.root, "tsconfig.json", "not valid json {{{")
        self.assertIsNone(load_tsconfig(tsconfig))
        self.assertEqual(Project().add_files_from_tsconfig(tsconfig), [])
        self.assertIsNone(load_tsconfig(os.path.join(self.root, "nope.json")))


class TestConvertSync(_TempProjectCase):

    def test_convert_code(self):
        self.assertEqual(convert_code("1 + 2 * 3"), "Big(1).plus(Big(2).times(3))")

    def test_default_callback_saves(self):
        path = _write(self.root, "calc.ts", "export const total = price * 1.2;\n")
        files = Converter(ProjectOptions(source=path)).convert()
        self.assertEqual(len(files), 1)
        self.assertEqual(_read(path), "export const total = Big(price).times(1.2);\n")
        self.assertTrue(files[0].is_modified)

    def test_in_memory_file_not_saved(self):
        cwd = os.getcwd()
        os.chdir(self.root)
        try:
            files = Converter(ProjectOptions(source_code="1 + 2")).convert()
            self.assertFalse(os.path.exists(os.path.join(self.root, SOURCE_CODE_FILE_NAME)))
            self.assertEqual(files[0].get_full_text(), "Big(1).plus(2)")
        finally:
            os.chdir(cwd)

    def test_callback_order(self):
        for name in ("a.ts", "b.ts", "c.ts"):
            _write(self.root, name, "x = 1 + 1;\n")
        seen = []
        convert(ProjectOptions(source=self.root), lambda f: seen.append(os.path.basename(f.path)))
        self.assertEqual(seen, ["a.ts", "b.ts", "c.ts"])

    def test_options_threaded_through(self):
        path = _write(self.root, "t.ts", "let total = 0;\ntotal += 2;\n")
        options = ProjectOptions(source=path, variables={"total"}, prepend_new=True, append_to_number=True)
        Converter(options).convert()
        self.assertEqual(
            _read(path),
            "let total = new Big(0);\ntotal = total.plus(2).toNumber();\n",
        )

    def test_unsupported_operator_aborts_run(self):
        a = _write(self.root, "a.ts", "const a = 1 + 2;\n")
        b = _write(self.root, "b.ts", "const b = 1 + 2;\nconst bad = a != b;\n")
        c = _write(self.root, "c.ts", "const c = 1 + 2;\n")
        seen = []

        def on_converted(source_file):
            seen.append(os.path.basename(source_file.path))
            source_file.save()

        with self.assertRaises(UnsupportedOperatorError):
            Converter(ProjectOptions(source=self.root)).convert(on_converted)

        self.assertEqual(seen, ["a.ts"])
        self.assertEqual(_read(a), "const a = Big(1).plus(2);\n")
        self.assertEqual(_read(b), "const b = 1 + 2;\nconst bad = a != b;\n")
        self.assertEqual(_read(c), "const c = 1 + 2;\n")

    def test_plain_callback_returning_coroutine(self):
        seen = []

        async def write(source_file):
            await asyncio.sleep(0)
            seen.append(source_file.get_full_text())

        files = convert(ProjectOptions(source_code="x = 1 + 2;"), lambda f: write(f))
        self.assertEqual(len(files), 1)
        self.assertEqual(seen, ["x = Big(1).plus(2);"])

    def test_awaitables_run_in_file_order_without_loop(self):
        project = Project()
        for name in ("a.ts", "b.ts"):
            project.add_source_code("1 + 2", name)
        events = []

        async def later(name):
            events.append(("start", name))
            await asyncio.sleep(0.01)
            events.append(("end", name))

        Converter(ConversionOptions(), project).convert(lambda f: later(f.path))
        self.assertEqual(events, [("start", "a.ts"), ("end", "a.ts"), ("start", "b.ts"), ("end", "b.ts")])

    def test_awaitable_rejected_inside_running_loop(self):
        async def on_converted(source_file):
            pass

        converter = Converter(ConversionOptions(), Project())
        converter.project.add_source_code("1 + 2")

        async def run():
            converter.convert(on_converted)

        with self.assertRaises(ConversionError):
            asyncio.run(run())

    def test_diagnostics_collected(self):
        project = Project()
        project.add_source_code("Math.pow(a + 1, 2);")
        converter = Converter(ConversionOptions(), project)
        converter.convert(keep_in_memory)
        self.assertEqual(len(converter.diagnostics), 1)
        self.assertEqual(converter.diagnostics[0].path, SOURCE_CODE_FILE_NAME)


class TestConvertAsync(_TempProjectCase):

    def test_callbacks_awaited_in_file_order(self):
        for name in ("a.ts", "b.ts", "c.ts"):
            _write(self.root, name, "x = 1 + 1;\n")
        events = []

        async def on_converted(source_file):
            name = os.path.basename(source_file.path)
            events.append(("start", name))
            await asyncio.sleep(0.01)
            events.append(("end", name))

        result = convert(ProjectOptions(source=self.root), on_converted)
        files = asyncio.run(result)
        self.assertEqual(len(files), 3)
        self.assertEqual(events, [
            ("start", "a.ts"), ("end", "a.ts"),
            ("start", "b.ts"), ("end", "b.ts"),
            ("start", "c.ts"), ("end", "c.ts"),
        ])

    def test_mixed_sync_and_async_results(self):
        project = Project()
        project.add_source_code("1 + 2", "one.ts")
        project.add_source_code("3 * 4", "two.ts")
        seen = []

        async def later(name):
            seen.append(name)

        def on_converted(source_file):
            if source_file.path == "one.ts":
                seen.append(source_file.path)
                return None
            return later(source_file.path)

        files = asyncio.run(Converter(ConversionOptions(), project).convert_async(on_converted))
        self.assertEqual(seen, ["one.ts", "two.ts"])
        self.assertEqual([f.get_full_text() for f in files], ["Big(1).plus(2)", "Big(3).times(4)"])

    def test_async_abort(self):
        project = Project()
        project.add_source_code("1 + 2", "ok.ts")
        project.add_source_code("a && b", "bad.ts")
        seen = []

        async def on_converted(source_file):
            seen.append(source_file.path)

        with self.assertRaises(UnsupportedOperatorError):
            asyncio.run(Converter(ConversionOptions(), project).convert_async(on_converted))
        self.assertEqual(seen, ["ok.ts"])


class TestOptionsModel(_TempProjectCase):

    def test_options_are_frozen(self):
        options = ConversionOptions(variables=["total"])
        self.assertEqual(options.variables, frozenset({"total"}))
        with self.assertRaises(Exception):
            options.prepend_new = True

    def test_config_file_with_original_names(self):
        config = _write(self.root, "n2b.json", (
            '{"prependNew": true, "appendToNumber": false, '
            '"variables": ["total"], "sourceTsConfig": "tsconfig.json"}'
        ))
        options = ProjectOptions.from_file(config)
        self.assertTrue(options.prepend_new)
        self.assertEqual(options.variables, frozenset({"total"}))
        self.assertEqual(options.source_tsconfig, "tsconfig.json")

    def test_config_file_overrides(self):
        config = _write(self.root, "n2b.json", '{"prepend_new": true}')
        options = ProjectOptions.from_file(config, prepend_new=False, source=["src"])
        self.assertFalse(options.prepend_new)
        self.assertEqual(options.source, ["src"])
        self.assertFalse(options.conversion_options().prepend_new)


if __name__ == "__main__":
    unittest.main()
