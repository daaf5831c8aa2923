from pathlib import Path
from typing import Iterable, Optional, Tuple

from hypothesis import settings

# Prevent Hypothesis from writing a local example database (e.g. `.hypothesis/`) during tests.
settings.register_profile("kano-tests", database=None)
settings.load_profile("kano-tests")


def write_toolbox_config(
    root: Path,
    *,
    data: Optional[Iterable[Tuple[str, str, str]]] = None,
    header: str = "",
) -> Path:
    """Write a toolbox config TOML for tests.

    Args:
        root: Temporary directory (tmp_path).
        data: (key, type, value) triples written as [[data]] entries.
        header: Raw TOML placed before the data entries.

    Returns:
        Path to the written config file.
    """
    lines = [header] if header else []
    for key, type_name, value in data or ():
        lines.extend(
            [
                "[[data]]",
                f'key = "{key}"',
                f'type = "{type_name}"',
                f'value = "{value}"',
                "",
            ]
        )
    path = root / "tools.toml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
