"""环节一：文件分类与输出路径计算。"""

from __future__ import annotations

from pathlib import Path

import pytest

from image_minify.core.config import OperationConfig, OperationMode, OutputConfig, TargetFormat
from image_minify.core.exceptions import InvalidConfigurationError
from image_minify.core.output_manager import OutputManager, substitute_suffix
from image_minify.core.scanner import is_eligible, list_source_entries


@pytest.mark.parametrize("name", ["A.PNG", "a.png", "a.Png", "b.jpg", "c.JPEG", "d.webp", "archive.tar.png"])
def test_eligible_names(name: str) -> None:
    assert is_eligible(name)


@pytest.mark.parametrize("name", ["a.gif", "a", "a.", ".png", "notes.txt", "photo.png.bak"])
def test_ineligible_names(name: str) -> None:
    assert not is_eligible(name)


def test_list_source_entries_is_flat_and_sorted(source_dir: Path) -> None:
    (source_dir / "b.png").write_bytes(b"")
    (source_dir / "a.txt").write_text("hello")
    nested = source_dir / "nested"
    nested.mkdir()
    (nested / "inner.png").write_bytes(b"")

    entries = list_source_entries(source_dir)

    assert [entry.name for entry in entries] == ["a.txt", "b.png", "nested"]
    assert entries[1].extension == ".png"
    assert entries[1].path == source_dir / "b.png"


def test_compress_keeps_file_name(tmp_path: Path) -> None:
    output = OutputConfig(compressed_dir=tmp_path / "Compressed", converted_dir=tmp_path / "Converted")
    manager = OutputManager(output, OperationConfig.compress())

    assert manager.resolve("photo.JPG") == tmp_path / "Compressed" / "photo.JPG"
    assert (tmp_path / "Compressed").is_dir()
    assert not (tmp_path / "Converted").exists()


@pytest.mark.parametrize(
    ("name", "target", "expected"),
    [
        ("photo.png", TargetFormat.JPEG, "photo.jpeg"),
        ("archive.tar.png", TargetFormat.WEBP, "archive.tar.webp"),
        ("PHOTO.JPG", TargetFormat.PNG, "PHOTO.png"),
    ],
)
def test_convert_replaces_final_suffix(tmp_path: Path, name: str, target: TargetFormat, expected: str) -> None:
    output = OutputConfig(compressed_dir=tmp_path / "Compressed", converted_dir=tmp_path / "Converted")
    manager = OutputManager(output, OperationConfig.convert(target))

    assert manager.resolve(name) == tmp_path / "Converted" / expected


def test_substitute_suffix_without_extension_is_noop() -> None:
    assert substitute_suffix("README", "png") == "README"
    assert substitute_suffix("a.", "png") == "a."


def test_duplicate_destination_is_renamed(tmp_path: Path) -> None:
    output = OutputConfig(converted_dir=tmp_path / "Converted")
    manager = OutputManager(output, OperationConfig.convert(TargetFormat.WEBP))

    assert manager.resolve("a.jpg").name == "a.webp"
    assert manager.resolve("a.png").name == "a_1.webp"
    assert manager.resolve("a.webp").name == "a_2.webp"


def test_output_dir_created_lazily_and_idempotently(tmp_path: Path) -> None:
    output = OutputConfig(compressed_dir=tmp_path / "Compressed")
    (tmp_path / "Compressed").mkdir()

    manager = OutputManager(output, OperationConfig.compress())
    assert not manager.prepared

    manager.resolve("a.png")
    manager.resolve("b.png")
    assert manager.prepared

    OutputManager(output, OperationConfig.compress()).resolve("a.png")


def test_operation_config_is_validated() -> None:
    with pytest.raises(InvalidConfigurationError):
        OperationConfig(mode=OperationMode.COMPRESS, target_format=TargetFormat.PNG)
    with pytest.raises(InvalidConfigurationError):
        OperationConfig(mode=OperationMode.CONVERT)
