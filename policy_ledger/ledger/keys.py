"""
Key material loader.

The keystore and signcerts directories of an MSP each hold a single PEM file
whose name is not known in advance (keystore files are named after the key's
SKI). We list the directory and take the first regular file by name.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Union

from .contracts.interfaces import KeyMaterial
from .errors import IOFailureError, NotFoundError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def first_file_in(directory: PathLike) -> Path:
    directory = Path(directory)
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError as exc:
        raise NotFoundError(f"Key material directory does not exist: {directory}") from exc
    except OSError as exc:
        raise IOFailureError(f"Cannot list key material directory {directory}: {exc}") from exc

    files = [name for name in names if (directory / name).is_file()]
    if not files:
        raise NotFoundError(f"No files in directory: {directory}")
    if len(files) > 1:
        logger.warning("Directory %s holds %d files; using %s", directory, len(files), files[0])
    return directory / files[0]


def read_key_material(directory: PathLike) -> bytes:
    path = first_file_in(directory)
    try:
        return path.read_bytes()
    except FileNotFoundError as exc:
        raise NotFoundError(f"Key material file disappeared: {path}") from exc
    except OSError as exc:
        raise IOFailureError(f"Cannot read key material file {path}: {exc}") from exc


def load_key_material(key_directory: PathLike, cert_directory: PathLike) -> KeyMaterial:
    """Read the private key and the identity certificate from their MSP directories."""
    return KeyMaterial(
        private_key=read_key_material(key_directory),
        certificate=read_key_material(cert_directory),
    )
