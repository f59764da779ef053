import pytest

import render
from mandelbrot_tga import EncodeFailed, read_image


def _run(tmp_path, *extra):
    argv = [
        "--width", "8",
        "--height", "6",
        "--max-iterations", "40",
        "--output", str(tmp_path / "set.tga"),
        "--log-file", str(tmp_path / "runs.txt"),
        *extra,
    ]
    return render.main(argv)


def test_renders_file_and_appends_log(tmp_path, capsys):
    assert _run(tmp_path, "--workers", "3", "--inside-color", "indigo", "--outside-color", "#FFFF00") == 0

    data = (tmp_path / "set.tga").read_bytes()
    assert len(data) == 18 + 8 * 6 * 3
    header, pixels = read_image(data)
    assert (header.width, header.height) == (8, 6)
    assert set(int(p) for p in pixels.ravel()) <= {0x4B0082, 0xFFFF00}

    log_lines = (tmp_path / "runs.txt").read_text().splitlines()
    assert len(log_lines) == 1
    assert "3 workers" in log_lines[0]
    assert "inside Indigo (#4B0082)" in log_lines[0]
    assert "outside Yellow (#FFFF00)" in log_lines[0]
    assert "Generating a Indigo and Yellow Mandelbrot set" in capsys.readouterr().out


def test_multiple_runs_log_each_run(tmp_path):
    assert _run(tmp_path, "--workers", "2", "--runs", "2") == 0

    log_lines = (tmp_path / "runs.txt").read_text().splitlines()
    assert [line.split(" run ")[1].split(":")[0] for line in log_lines] == ["1/2", "2/2"]


def test_no_log(tmp_path):
    assert _run(tmp_path, "--no-log") == 0

    assert (tmp_path / "set.tga").exists()
    assert not (tmp_path / "runs.txt").exists()


def test_output_suffix_is_added(tmp_path):
    assert render.main(["--width", "4", "--height", "2", "--no-log", "--output", str(tmp_path / "plain")]) == 0

    assert (tmp_path / "plain.tga").exists()


@pytest.mark.parametrize(
    "extra",
    [
        ["--workers", "9"],
        ["--workers", "0"],
        ["--inside-color", "teal"],
        ["--left", "2"],
        ["--max-iterations", "0"],
        ["--runs", "0"],
        ["--output", "picture.png"],
    ],
)
def test_invalid_arguments_exit_with_usage_error(tmp_path, extra):
    with pytest.raises(SystemExit) as excinfo:
        _run(tmp_path, *extra)

    assert excinfo.value.code == 2
    assert not (tmp_path / "set.tga").exists()


def test_encode_failure_returns_error(tmp_path, monkeypatch, capsys):
    def failing_write(path, pixels):
        raise EncodeFailed(PermissionError("read-only"), path)

    monkeypatch.setattr(render, "write_image", failing_write)

    assert _run(tmp_path) == 1
    assert "Encode failed" in capsys.readouterr().err
    assert not (tmp_path / "runs.txt").exists()


def test_default_workers_are_clamped_to_width():
    assert 1 <= render.default_workers(2) <= 2


def test_output_directory_that_cannot_be_created_returns_error(tmp_path, capsys):
    (tmp_path / "file").write_text("not a directory")
    output = tmp_path / "file" / "sub" / "set.tga"

    assert render.main(["--width", "4", "--height", "2", "--no-log", "--output", str(output)]) == 1
    assert "Encode failed" in capsys.readouterr().err
    assert not output.exists()


def test_missing_output_directory_is_created(tmp_path):
    output = tmp_path / "nested" / "dir" / "set.tga"

    assert render.main(["--width", "4", "--height", "2", "--no-log", "--output", str(output)]) == 0
    assert output.stat().st_size == 18 + 4 * 2 * 3
