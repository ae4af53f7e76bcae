"""Tests for file system traversal functionality."""

import logging
from pathlib import Path

import pytest

from sdklint.traversal import (
    BUILD_DIRS,
    DEFAULT_IGNORE_DIRS,
    find_java_files,
    is_java_file,
    should_ignore_directory,
)


class TestFileTypeChecks:
    """Test file type checking functions."""

    def test_is_java_file_recognizes_java_extension(self):
        assert is_java_file(Path("Main.java"))
        assert is_java_file(Path("src/main/java/com/acme/Service.java"))

    def test_is_java_file_case_insensitive(self):
        assert is_java_file(Path("MAIN.JAVA"))

    def test_is_java_file_rejects_other_files(self):
        assert not is_java_file(Path("Main.class"))
        assert not is_java_file(Path("Main.kt"))
        assert not is_java_file(Path("pom.xml"))
        assert not is_java_file(Path("build.gradle"))


class TestDirectoryFiltering:
    """Test directory ignore logic."""

    def test_should_ignore_directory_recognizes_ignored_dirs(self):
        ignore_set = {"target", "test"}
        assert should_ignore_directory(Path("target"), ignore_set)
        assert should_ignore_directory(Path("src/test"), ignore_set)

    def test_should_ignore_directory_case_sensitive(self):
        assert should_ignore_directory(Path("target"), {"target"})
        assert not should_ignore_directory(Path("Target"), {"target"})

    def test_default_ignore_dirs_includes_common_patterns(self):
        assert "target" in DEFAULT_IGNORE_DIRS
        assert "build" in DEFAULT_IGNORE_DIRS
        assert ".gradle" in DEFAULT_IGNORE_DIRS
        assert ".git" in DEFAULT_IGNORE_DIRS
        assert "test" in DEFAULT_IGNORE_DIRS

    def test_build_dirs_keep_test_sources(self):
        assert "test" not in BUILD_DIRS
        assert "target" in BUILD_DIRS


class TestTraversal:
    """Test file traversal functions."""

    @pytest.fixture
    def temp_project(self, tmp_path):
        """
        Maven-style layout:
          src/main/java/com/acme/App.java
          src/main/java/com/acme/Util.java
          src/main/resources/app.properties
          src/test/java/com/acme/AppTest.java   (ignored)
          target/generated/Gen.java             (ignored)
        """
        main = tmp_path / "src" / "main" / "java" / "com" / "acme"
        test = tmp_path / "src" / "test" / "java" / "com" / "acme"
        resources = tmp_path / "src" / "main" / "resources"
        target = tmp_path / "target" / "generated"
        for d in (main, test, resources, target):
            d.mkdir(parents=True)

        (main / "App.java").write_text("package com.acme; class App {}")
        (main / "Util.java").write_text("package com.acme; class Util {}")
        (resources / "app.properties").write_text("a=b")
        (test / "AppTest.java").write_text("package com.acme; class AppTest {}")
        (target / "Gen.java").write_text("class Gen {}")
        return tmp_path

    def test_find_java_files_collects_only_main_sources(self, temp_project):
        files = find_java_files(temp_project)
        names = {f.name for f in files}
        assert names == {"App.java", "Util.java"}
        assert all("target" not in f.parts for f in files)

    def test_find_java_files_custom_ignore_dirs(self, temp_project):
        files = find_java_files(temp_project, ignore_dirs=BUILD_DIRS)
        names = {f.name for f in files}
        assert names == {"App.java", "Util.java", "AppTest.java"}

    def test_find_java_files_with_filter_function(self, temp_project):
        files = find_java_files(temp_project, filter_fn=lambda p: p.name.startswith("App"))
        assert [f.name for f in files] == ["App.java"]

    def test_find_java_files_empty_directory(self, tmp_path):
        (tmp_path / "empty").mkdir()
        (tmp_path / "empty" / "README.txt").write_text("nothing here")
        assert find_java_files(tmp_path / "empty") == []

    def test_find_java_files_nonexistent_directory(self):
        with pytest.raises(FileNotFoundError):
            find_java_files(Path("/nonexistent/directory"))

    def test_find_java_files_on_file_not_directory(self, tmp_path):
        file_path = tmp_path / "Main.java"
        file_path.write_text("class Main {}")
        with pytest.raises(NotADirectoryError):
            find_java_files(file_path)

    def test_find_java_files_returns_sorted_results(self, temp_project):
        files = find_java_files(temp_project)
        assert files == sorted(files)

    def test_find_java_files_logs_progress(self, temp_project, caplog):
        with caplog.at_level(logging.INFO):
            find_java_files(temp_project)
        assert "Starting traversal" in caplog.text
        assert "Traversal complete" in caplog.text


class TestEdgeCases:
    """Test edge cases and error handling."""

    def test_nested_directories(self, tmp_path):
        nested = tmp_path / "a" / "b" / "c" / "d"
        nested.mkdir(parents=True)
        (nested / "Deep.java").write_text("class Deep {}")
        files = find_java_files(tmp_path)
        assert [f.name for f in files] == ["Deep.java"]

    def test_empty_ignore_dirs_set(self, tmp_path):
        (tmp_path / "target").mkdir()
        (tmp_path / "test").mkdir()
        (tmp_path / "target" / "Built.java").write_text("class Built {}")
        (tmp_path / "test" / "T.java").write_text("class T {}")
        files = find_java_files(tmp_path, ignore_dirs=set())
        assert {f.name for f in files} == {"Built.java", "T.java"}

    def test_single_file_in_root(self, tmp_path):
        (tmp_path / "Root.java").write_text("class Root {}")
        files = find_java_files(tmp_path)
        assert len(files) == 1
        assert files[0].name == "Root.java"
