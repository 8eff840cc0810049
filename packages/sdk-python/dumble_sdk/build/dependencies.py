"""
Dependency Classification
=========================

Decides whether a package imported from source is bundled into a task's
output or left external for the host to resolve at load time.

Rules, in order:
1. Absolute paths are not packages; ordinary lookup handles them
2. Node.js built-ins are external
3. The package itself (self-reference) is external
4. Runtime, peer and optional dependencies are external
5. devDependencies-only packages are bundled
6. Anything undeclared is an error

The decision depends only on the manifest and the specifier, so every task
classifies a given import the same way.
"""

import os
import re
from typing import Optional

from dumble_common import DEV_DEPENDENCY_TYPE, NODE_BUILTINS, UndeclaredDependencyError
from dumble_common.constants import NODE_BUILTIN_PREFIX, PACKAGE_SPECIFIER_PATTERN
from dumble_common.logger import get_logger
from dumble_schema import PackageManifest

from ..engines.base import ResolveResult

logger = get_logger(__name__)

PACKAGE_SPECIFIER = re.compile(PACKAGE_SPECIFIER_PATTERN)


def looks_like_package(specifier: str) -> bool:
    """
    Check whether a specifier names a package rather than a relative path.

    Examples:
        >>> looks_like_package("@scope/pkg/sub")
        True
        >>> looks_like_package("./util")
        False
    """
    return PACKAGE_SPECIFIER.match(specifier) is not None


def package_name(specifier: str) -> str:
    """
    Package-name portion of a specifier.

    Scoped names keep their first two segments, unscoped names only the first.

    Examples:
        >>> package_name("@babel/core/lib/index.js")
        '@babel/core'
        >>> package_name("lodash/fp")
        'lodash'
    """
    if specifier.startswith("@"):
        return "/".join(specifier.split("/", 2)[:2])
    return specifier.split("/", 1)[0]


def is_builtin(specifier: str) -> bool:
    """
    Check whether a specifier names a Node.js built-in module.

    Examples:
        >>> is_builtin("node:test")
        True
        >>> is_builtin("fs/promises")
        True
        >>> is_builtin("fsevents")
        False
    """
    if specifier.startswith(NODE_BUILTIN_PREFIX):
        return True
    return specifier in NODE_BUILTINS


class DependencyClassifier:
    """
    Classifies package imports against a manifest.

    Example:
        >>> classifier = DependencyClassifier(manifest)
        >>> classifier.classify("react")
        ResolveResult(path=None, external=True)
    """

    def __init__(self, manifest: PackageManifest):
        self.manifest = manifest

    def classify(self, specifier: str, importer: Optional[str] = None) -> Optional[ResolveResult]:
        """
        Decide external vs bundled for a package specifier.

        Args:
            specifier: Import specifier as written in source
            importer: File containing the import, for error messages

        Returns:
            ResolveResult with ``external`` set, or None for absolute paths

        Raises:
            UndeclaredDependencyError: If the manifest declares the package
                under no dependency type
        """
        if os.path.isabs(specifier):
            return None
        if is_builtin(specifier):
            return ResolveResult(external=True)

        name = package_name(specifier)
        if name == self.manifest.name:
            return ResolveResult(external=True)

        kinds = self.manifest.dependency_kinds(name)
        if not kinds:
            raise UndeclaredDependencyError(name, importer)

        kinds.discard(DEV_DEPENDENCY_TYPE)
        external = bool(kinds)
        logger.debug("Classified dependency", name=name, external=external)
        return ResolveResult(external=external)
