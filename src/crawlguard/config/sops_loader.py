"""
YAML config loading, with SOPS for encrypted files.

Encrypted files are decrypted by shelling out to ``sops -d``; site
policy files are plain YAML and read directly.
"""

import logging
import subprocess
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

SOPS_INSTALL_HINT = (
    "sops binary not found on PATH; see https://github.com/getsops/sops/releases"
)


def _as_mapping(data: Any, source: Path) -> dict[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(
            f"{source} must contain a YAML mapping, got {type(data).__name__}"
        )
    return data


def decrypt_sops_file(file_path: Path) -> dict[str, Any]:
    """
    Run ``sops -d`` on a file and parse the plaintext as YAML.

    Raises:
        FileNotFoundError: If the file is missing
        RuntimeError: If sops is not installed or refuses to decrypt
    """
    if not file_path.exists():
        raise FileNotFoundError(f"No encrypted config at {file_path}")

    try:
        completed = subprocess.run(
            ["sops", "-d", str(file_path)],
            capture_output=True,
            text=True,
            check=True,
        )
    except FileNotFoundError as e:
        raise RuntimeError(SOPS_INSTALL_HINT) from e
    except subprocess.CalledProcessError as e:
        raise RuntimeError(
            f"sops could not decrypt {file_path}: {e.stderr.strip()}"
        ) from e

    logger.debug(f"Decrypted {file_path}")
    return _as_mapping(yaml.safe_load(completed.stdout), file_path)


def load_yaml_file(file_path: Path) -> dict[str, Any]:
    """Read an unencrypted YAML mapping; an empty file gives {}."""
    if not file_path.exists():
        raise FileNotFoundError(f"No config at {file_path}")

    with open(file_path, encoding="utf-8") as f:
        return _as_mapping(yaml.safe_load(f), file_path)
