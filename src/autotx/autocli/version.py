"""Version gating for methods that declare ``since``."""

from __future__ import annotations

import re

from autotx.errors import ConfigurationError

_VERSION = re.compile(r"^v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_version(text: str) -> tuple[int, int, int]:
    match = _VERSION.match(text.strip())
    if match is None:
        raise ValueError(f"invalid version {text!r}")
    return tuple(int(part or 0) for part in match.groups())  # type: ignore[return-value]


def is_supported_version(since: str | None, app_versions: dict[str, str]) -> bool:
    """Whether a method added in *since* exists in the running application.

    *since* is ``"<module> <version>"`` or a bare ``"<version>"`` (checked
    against ``cosmos-sdk``).  Modules with no known running version are
    assumed to support the method.
    """
    if not since:
        return True
    module, _, version = since.strip().rpartition(" ")
    module = module or "cosmos-sdk"
    running = app_versions.get(module)
    if running is None:
        return True
    try:
        return parse_version(version) <= parse_version(running)
    except ValueError as exc:
        raise ConfigurationError(f"invalid version in since={since!r}: {exc}") from exc
