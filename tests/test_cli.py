import argparse

import pytest

import cli
from channel_registry import ChannelRole
from config_store import MemoryConfigStore
from sequences import SweepMode
from sweep_settings import OutputConfig, TransferConfig
from version import __version__


def test_demo_transfer_run_writes_csv(tmp_path, capsys):
    out = tmp_path / "transfer.csv"
    code = cli.main(["transfer", "--gate", "0,-10,3", "--sd", "-1,-1,1", "--delay", "0",
                     "--four-probe", "-o", str(out)])
    assert code == 0
    lines = out.read_text().splitlines()
    assert lines[0].startswith("SD Voltage,Gate Voltage")
    assert len(lines) == 2 + 3
    assert "Sweep completed: 3 rows" in capsys.readouterr().out


def test_rejected_run_exit_code(tmp_path, capsys):
    store = MemoryConfigStore()
    code = cli.main(["output", "--delay", "0", "--role", "gate=4:0", "-o", str(tmp_path / "o.csv")],
                    store=store)
    # demo registry assigns every role first, then the explicit role moves gate to an empty slot
    assert code == 2
    assert "Gate channel" in capsys.readouterr().err
    assert store.get_int("channels/gate/instrument") == 3


def test_build_config_from_arguments():
    args = cli.build_parser().parse_args(
        ["output", "--sd", "0 -5 6", "--limit", "1e-4", "--mode", "bidirectional", "--profile", "fast",
         "-o", "x.csv"]
    )
    config = cli.build_config(args)
    assert isinstance(config, OutputConfig)
    assert (config.sd_min, config.sd_max, config.sd_steps) == (0.0, -5.0, 6)
    assert config.current_limit == 1e-4
    assert config.inner_mode is SweepMode.BIDIRECTIONAL
    assert config.averaging_count == 1
    assert config.output_path == "x.csv"


def test_default_output_name_is_timestamped():
    config = cli.build_config(cli.build_parser().parse_args(["transfer"]))
    assert isinstance(config, TransferConfig)
    assert "fet_transfer_" in str(config.output_path)


@pytest.mark.parametrize("raw", ["1,2", "a,b,c"])
def test_axis_argument_errors(raw):
    with pytest.raises(argparse.ArgumentTypeError):
        cli._axis_arg(raw)


def test_role_argument():
    role, sel = cli._role_arg("4pp1=2:1")
    assert role is ChannelRole.PROBE_A
    assert (sel.instrument, sel.channel) == (1, 1)
    with pytest.raises(argparse.ArgumentTypeError):
        cli._role_arg("drain=1")


def test_four_probe_rejected_for_output_sweep(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["output", "--four-probe", "-o", str(tmp_path / "o.csv")])
    assert exc_info.value.code == 2
    assert "only available for transfer sweeps" in capsys.readouterr().err
    assert not (tmp_path / "o.csv").exists()


def test_version_option(capsys):
    with pytest.raises(SystemExit) as exc_info:
        cli.main(["--version"])
    assert exc_info.value.code == 0
    assert capsys.readouterr().out.strip() == f"fet-sweep {__version__}"
