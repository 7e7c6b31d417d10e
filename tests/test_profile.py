from pathlib import Path

import pytest

from localcoder_runner.profile import DEFAULT_PROFILE, RuntimeProfile, get_profile, load_profiles


def test_bundled_profiles_include_minimal_and_stdlib() -> None:
    profiles = load_profiles()
    assert {"minimal", "stdlib"} <= set(profiles)
    assert profiles["minimal"].preload_modules == []
    assert "math" in profiles["stdlib"].preload_modules


def test_default_profile_is_minimal() -> None:
    assert get_profile().name == DEFAULT_PROFILE == "minimal"


def test_unknown_profile_lists_available_names() -> None:
    with pytest.raises(ValueError, match=r"Unknown runtime profile 'gpu' \(available: minimal, stdlib\)"):
        get_profile("gpu")


def test_profile_file_is_parsed(tmp_path: Path) -> None:
    profile_file = tmp_path / "profiles.toml"
    profile_file.write_text(
        (
            "[profiles.data]\n"
            'description = "data helpers"\n'
            'preload_modules = ["statistics"]\n'
            'exposed_paths = ["/opt/shared"]\n'
        ),
        encoding="utf-8",
    )
    profile = get_profile("data", profile_file)
    assert profile == RuntimeProfile(
        name="data",
        preload_modules=["statistics"],
        exposed_paths=["/opt/shared"],
        description="data helpers",
    )


@pytest.mark.parametrize(
    "body, message",
    [
        ('[profiles.bad]\npreload_modules = "math"\n', "'preload_modules' must be a list of strings"),
        ("[profiles.bad]\nexposed_paths = [1]\n", "'exposed_paths' must contain only strings"),
        ('profiles = "nope"\n', "'profiles' must be a TOML table"),
        ("[profiles\n", "Invalid profile file"),
    ],
)
def test_invalid_profile_files_raise_value_error(tmp_path: Path, body: str, message: str) -> None:
    profile_file = tmp_path / "profiles.toml"
    profile_file.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError, match=message):
        load_profiles(profile_file)


def test_missing_profile_file_raises_value_error(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Cannot read profile file"):
        load_profiles(tmp_path / "missing.toml")
