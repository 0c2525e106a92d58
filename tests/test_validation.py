from channel_registry import ChannelRegistry, ChannelRole
from sweep_settings import OutputConfig, TransferConfig
from validation import ValidationContext, validate


def test_clean_context_has_no_problems(registry, tmp_path):
    config = TransferConfig(output_path=str(tmp_path / "t.csv"), use_four_probe=True)
    _, errors = registry.resolve_all(config.required_roles())
    assert validate(ValidationContext(config, errors, running=False)) == []


def test_all_problems_reported_at_once(store):
    reg = ChannelRegistry([None] * 4, store)
    config = TransferConfig(output_path="  ", use_four_probe=True)
    _, errors = reg.resolve_all(config.required_roles())
    problems = validate(ValidationContext(config, errors, running=True))

    assert len(problems) >= 3
    assert len(set(problems)) == len(problems)
    assert any("already running" in p for p in problems)
    assert any("output file" in p for p in problems)
    assert any("Source-drain" in p for p in problems)
    assert any("Gate" in p for p in problems)
    assert sum("four-probe" in p for p in problems) == 2


def test_probe_roles_ignored_without_four_probe(store):
    reg = ChannelRegistry([None] * 4, store)
    config = TransferConfig(output_path="out.csv", use_four_probe=False)
    assert ChannelRole.PROBE_A not in config.required_roles()
    _, errors = reg.resolve_all(config.required_roles())
    problems = validate(ValidationContext(config, errors))
    assert len(problems) == 2
    assert not any("four-probe" in p for p in problems)


def test_config_problems_included():
    config = OutputConfig(output_path="out.csv", sd_steps=0, delay=-1)
    problems = validate(ValidationContext(config))
    assert "Number of source-drain steps must be at least 1" in problems
    assert "Delay time cannot be negative" in problems


def test_state_problems_come_first_with_operator_messages():
    config = OutputConfig(output_path="")
    problems = validate(ValidationContext(config, running=True))
    assert problems == [
        "Another experiment is already running. Please wait until it has finished.",
        "No output file selected. Please select a file to output to.",
    ]


def test_shared_channel_is_a_problem(registry, tmp_path):
    registry.select(ChannelRole.PROBE_B, 0, 2)
    config = TransferConfig(output_path=str(tmp_path / "t.csv"), use_four_probe=True)
    _, errors = registry.resolve_all(config.required_roles())
    problems = validate(ValidationContext(config, errors))
    assert problems == [
        "Four-point-probe 2 channel: instrument 1, channel 2 is already assigned to the "
        "Four-point-probe 1 channel. (required for four-probe measurement)"
    ]
