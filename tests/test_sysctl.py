import sys

import pytest

from procsuite import sysctl
from procsuite.sysctl import (
    SysctlError,
    get_all_sysctl_variables,
    get_sysctl,
    handle_one_arg,
    main,
    normalize_var,
    set_sysctl,
    variable_path,
)


@pytest.fixture
def sys_root(tmp_path, monkeypatch):
    (tmp_path / "kernel").mkdir()
    (tmp_path / "fs").mkdir()
    (tmp_path / "kernel" / "ostype").write_text("Linux\n")
    (tmp_path / "kernel" / "hostname").write_text("localhost\n")
    (tmp_path / "fs" / "overflowuid").write_text("65534\n")
    monkeypatch.setattr(sysctl, "PROC_SYS_ROOT", tmp_path)
    monkeypatch.setattr(sys, "platform", "linux")
    return tmp_path


def test_invalid_arg():
    with pytest.raises(SystemExit) as excinfo:
        main(["--definitely-invalid"])
    assert excinfo.value.code == 1


def test_get_simple(sys_root, capsys):
    assert main(["kernel.ostype", "fs.overflowuid"]) == 0
    assert capsys.readouterr().out == "kernel.ostype = Linux\nfs.overflowuid = 65534\n"


def test_get_value_only(sys_root, capsys):
    assert main(["-n", "kernel.ostype", "fs.overflowuid"]) == 0
    assert capsys.readouterr().out == "Linux\n65534\n"


def test_get_key_only(sys_root, capsys):
    assert main(["-N", "kernel.ostype", "fs.overflowuid"]) == 0
    assert capsys.readouterr().out == "kernel.ostype\nfs.overflowuid\n"


def test_continues_on_error(sys_root, capsys):
    assert main(["nonexisting", "kernel.ostype"]) == 1
    captured = capsys.readouterr()
    assert captured.out == "kernel.ostype = Linux\n"
    assert captured.err == "sysctl: error reading key 'nonexisting': No such file or directory\n"


def test_ignoring_errors(sys_root, capsys):
    assert main(["-e", "nonexisting", "nonexisting2=foo", "kernel.ostype"]) == 0
    captured = capsys.readouterr()
    assert captured.out == "kernel.ostype = Linux\n"
    assert captured.err == ""


def test_fails_on_unsupported_platforms(monkeypatch, capsys):
    monkeypatch.setattr(sys, "platform", "darwin")
    assert main(["-a"]) == 1
    assert capsys.readouterr().err == "sysctl: `sysctl` currently only supports Linux.\n"


def test_slash_names_are_normalized(sys_root, capsys):
    assert main(["kernel/ostype"]) == 0
    assert capsys.readouterr().out == "kernel.ostype = Linux\n"


def test_assignment_writes_and_prints(sys_root, capsys):
    assert main(["kernel.hostname=box"]) == 0
    assert capsys.readouterr().out == "kernel.hostname = box\n"
    assert (sys_root / "kernel" / "hostname").read_text() == "box"


def test_quiet_assignment_prints_nothing(sys_root, capsys):
    assert main(["-q", "kernel.hostname=box"]) == 0
    assert capsys.readouterr().out == ""
    assert get_sysctl("kernel.hostname") == "box"


def test_all_lists_every_variable(sys_root, capsys):
    assert main(["-a", "-N"]) == 0
    assert capsys.readouterr().out == "fs.overflowuid\nkernel.hostname\nkernel.ostype\n"


def test_no_arguments_prints_help(sys_root, capsys):
    assert main([]) == 0
    assert "usage" in capsys.readouterr().out


def test_normalize_var():
    assert normalize_var("kernel/ostype") == "kernel.ostype"


def test_variable_path(tmp_path):
    assert variable_path("kernel.ostype", tmp_path) == tmp_path / "kernel" / "ostype"


def test_get_all_sysctl_variables(sys_root):
    assert get_all_sysctl_variables(sys_root) == ["fs/overflowuid", "kernel/hostname", "kernel/ostype"]


def test_set_then_get_round_trip(sys_root):
    set_sysctl("kernel.hostname", "other", sys_root)
    assert get_sysctl("kernel.hostname", sys_root) == "other"


def test_set_missing_variable_fails(sys_root):
    with pytest.raises(FileNotFoundError):
        set_sysctl("kernel.missing", "1", sys_root)
    assert not (sys_root / "kernel" / "missing").exists()


def test_handle_one_arg_read(sys_root):
    assert handle_one_arg("fs/overflowuid", False, sys_root) == ("fs.overflowuid", "65534")


def test_handle_one_arg_write_error(sys_root):
    with pytest.raises(SysctlError) as excinfo:
        handle_one_arg("nonexisting2=foo", False, sys_root)
    assert str(excinfo.value) == "error writing key 'nonexisting2': No such file or directory"


def test_handle_one_arg_quiet_write(sys_root):
    assert handle_one_arg("kernel.hostname=box", True, sys_root) is None
    assert get_sysctl("kernel.hostname", sys_root) == "box"