from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

DEFAULT_PROFILE = "minimal"


def _default_profiles_path() -> Path:
    """Return bundled profiles TOML path.

    Example:
        ```python
        path = _default_profiles_path()
        ```
    """
    return Path(__file__).with_name("profiles.toml")


def _read_profiles_toml(path: Path) -> dict[str, Any]:
    """Read a profiles TOML file and return its `[profiles]` table.

    Example:
        ```python
        raw = _read_profiles_toml(Path("/tmp/profiles.toml"))
        ```
    """
    try:
        raw = tomllib.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ValueError(f"Cannot read profile file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid profile file {path}: {exc}") from exc
    profiles = raw.get("profiles", {})
    if not isinstance(profiles, dict):
        raise ValueError("'profiles' must be a TOML table")
    return profiles


def _list_of_str(value: Any, field_name: str) -> list[str]:
    """Validate and normalize a list-of-strings profile field.

    Example:
        ```python
        modules = _list_of_str(["math", "re"], "preload_modules")
        ```
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' must contain only strings")
        out.append(item)
    return out


@dataclass(frozen=True, slots=True)
class RuntimeProfile:
    """Environment the embedded runtime is configured with at startup.

    Example:
        ```python
        profile = RuntimeProfile(name="stdlib", preload_modules=["math"])
        ```
    """

    name: str = DEFAULT_PROFILE
    preload_modules: list[str] = field(default_factory=list)
    exposed_paths: list[str] = field(default_factory=list)
    description: str = ""

    @classmethod
    def from_table(cls, name: str, table: Any) -> "RuntimeProfile":
        """Create a profile from one `[profiles.<name>]` TOML table.

        Example:
            ```python
            profile = RuntimeProfile.from_table("mine", {"preload_modules": ["math"]})
            ```
        """
        if not isinstance(table, dict):
            raise ValueError(f"Profile '{name}' must be a TOML table")
        return cls(
            name=name,
            preload_modules=_list_of_str(table.get("preload_modules", []), "preload_modules"),
            exposed_paths=_list_of_str(table.get("exposed_paths", []), "exposed_paths"),
            description=str(table.get("description", "")),
        )


def load_profiles(path: str | Path | None = None) -> dict[str, RuntimeProfile]:
    """Load all profiles from `path`, or from the bundled file when omitted.

    Example:
        ```python
        profiles = load_profiles()
        assert "minimal" in profiles
        ```
    """
    source = Path(path) if path is not None else _default_profiles_path()
    return {
        str(name): RuntimeProfile.from_table(str(name), table)
        for name, table in _read_profiles_toml(source).items()
    }


def get_profile(name: str = DEFAULT_PROFILE, path: str | Path | None = None) -> RuntimeProfile:
    """Return one named profile.

    Example:
        ```python
        profile = get_profile("stdlib")
        ```
    """
    profiles = load_profiles(path)
    try:
        return profiles[name]
    except KeyError:
        known = ", ".join(sorted(profiles)) or "none"
        raise ValueError(f"Unknown runtime profile '{name}' (available: {known})") from None
