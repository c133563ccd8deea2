"""
test_gen_cl_header.py - command line front end tests
"""

import json
from pathlib import Path

import pytest

from gen_cl_header import main


@pytest.fixture
def project(tmp_path: Path, jni_dir: Path) -> Path:
    (jni_dir / "add.cl").write_text("__kernel void add() {}\n}\n")
    (jni_dir / "ops").mkdir()
    (jni_dir / "ops" / "mul.CL").write_text("__kernel void mul() {}\n")
    return tmp_path


class TestGenerateCommand:

    def test_generates_default_header(self, project, jni_dir, capsys):
        assert main([str(project)]) == 0

        text = (jni_dir / "opencl_cl_files.h").read_text()
        assert "static const char *CLCL_ADD = " in text
        assert "static const size_t CLCL_MUL__SIZE = 23;" in text
        out = capsys.readouterr().out
        assert out.startswith("Success!")
        assert "(2 kernel files)" in out

    def test_command_line_overrides(self, project, jni_dir):
        assert main([str(project), "--prefix", "K_", "--size-suffix", "_LEN", "--header-name", "kernels.h"]) == 0

        text = (jni_dir / "kernels.h").read_text()
        assert "#ifndef __KERNELS_H__" in text
        assert "static const size_t K_ADD_LEN = " in text
        assert not (jni_dir / "opencl_cl_files.h").exists()

    def test_config_file(self, project, tmp_path):
        native = tmp_path / "native"
        native.mkdir()
        (native / "blur.cl").write_text("b\n")
        config = tmp_path / "cl.json"
        config.write_text(json.dumps({"jniPath": "native", "variablePrefix": "", "headerName": "gpu.h"}))

        assert main([str(project), "--config", str(config)]) == 0

        text = (native / "gpu.h").read_text()
        assert "static const char *CLCL_BLUR = " in text
        assert "CLCL_ADD" not in text

    def test_command_line_beats_config_file(self, project, jni_dir, tmp_path):
        config = tmp_path / "cl.json"
        config.write_text(json.dumps({"variablePrefix": "FROM_FILE_"}))

        assert main([str(project), "--config", str(config), "--prefix", "FROM_CLI_"]) == 0
        assert "FROM_CLI_ADD" in (jni_dir / "opencl_cl_files.h").read_text()

    def test_missing_jni_folder_fails(self, tmp_path, capsys):
        assert main([str(tmp_path)]) == 1

        err = capsys.readouterr().err
        assert "Failure!" in err
        assert "Error: " in err
        assert "No such file or directory" in err

    def test_unreadable_kernel_fails(self, project, jni_dir, capsys):
        (jni_dir / "zz.cl").write_bytes(b"\xff\n")
        assert main([str(project)]) == 1
        assert "utf-8" in capsys.readouterr().err

    def test_missing_project(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope")]) == 1
        assert "not found" in capsys.readouterr().err

    def test_bad_config(self, project, tmp_path, capsys):
        config = tmp_path / "cl.json"
        config.write_text("{not json")
        assert main([str(project), "--config", str(config)]) == 1
        assert "Cannot load config" in capsys.readouterr().err


class TestListCommand:

    def test_lists_without_writing(self, project, jni_dir, capsys):
        assert main([str(project), "--list"]) == 0

        out = capsys.readouterr().out
        assert "CLCL_ADD" in out
        assert "CLCL_MUL__SIZE = 23" in out
        assert "Kernel files: 2" in out
        assert not (jni_dir / "opencl_cl_files.h").exists()

    def test_list_follows_walk_order(self, project, capsys):
        main([str(project), "--list"])
        out = capsys.readouterr().out
        assert out.index("CLCL_ADD") < out.index("CLCL_MUL")

    def test_list_missing_folder_is_empty(self, tmp_path, capsys):
        assert main([str(tmp_path), "--list"]) == 0
        assert "Kernel files: 0" in capsys.readouterr().out
