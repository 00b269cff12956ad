# repositories.py

import logging
import os
import re

from errors import UnsafeRepositoryName

logger = logging.getLogger(__name__)

_ALLOWED_NAME = re.compile(r"[A-Za-z0-9._-]+")


def is_valid_repository_name(name: str) -> bool:
    """Only ASCII letters, digits, '.', '-' and '_' are allowed, and never '..'."""
    if not name or not _ALLOWED_NAME.fullmatch(name):
        return False
    return ".." not in name


def folder_name_for(name: str, suffix: str) -> str:
    if suffix and not name.endswith(suffix):
        return name + suffix
    return name


def resolve_workdir(name: str, parent_dir: str, suffix: str = "") -> str:
    """
    Map a repository name to its checkout below `parent_dir`.

    The result is always a strict descendant of `parent_dir`; anything else raises
    UnsafeRepositoryName.
    """
    if not is_valid_repository_name(name):
        logger.warning(f"Invalid repository name: {name!r}")
        raise UnsafeRepositoryName()

    folder_name = folder_name_for(name, suffix)
    if not is_valid_repository_name(folder_name):
        logger.warning(f"Invalid folder name {folder_name!r} for repository {name!r}")
        raise UnsafeRepositoryName()

    parent = os.path.normpath(os.path.abspath(parent_dir))
    workdir = os.path.normpath(os.path.join(parent, folder_name))
    if os.path.commonpath([parent, workdir]) != parent or workdir == parent:
        logger.warning(f"Invalid folder name {workdir} for repository {name!r}")
        raise UnsafeRepositoryName()

    return workdir
