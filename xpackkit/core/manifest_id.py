"""
Package identity parsing.

A dependency descriptor such as ``@xpack-dev-tools/cmake@3.20.6-2`` or
``busybox@1.0.0`` is split into scope, name and version, and rendered in the
canonical forms used for folder names, cache paths and URLs.

Usage:
    from xpackkit.core.manifest_id import ManifestId

    manifest_id = ManifestId("@xpack-dev-tools/cmake@3.20.6-2")
    manifest_id.full_name()     # '@xpack-dev-tools/cmake@3.20.6-2'
    manifest_id.posix_path()    # '@xpack-dev-tools/cmake/3.20.6-2'
    manifest_id.folder_name()   # 'xpack-dev-tools-cmake'
"""

import os
import posixpath
from dataclasses import dataclass, field
from typing import Mapping, Optional


@dataclass(frozen=True)
class ManifestId:
    """
    Structural parts of a package descriptor.

    Attributes:
        scope: Scope including the leading '@', or None for unscoped packages
        name: Package name without scope
        version: Explicit version from the descriptor, or the fallback version
    """

    descriptor: str = field(compare=False)
    fallback_version: Optional[str] = field(default=None, repr=False, compare=False)
    scope: Optional[str] = field(init=False, default=None)
    name: str = field(init=False, default="")
    version: str = field(init=False, default="")

    def __post_init__(self):
        descriptor = self.descriptor.strip()
        scope = None
        rest = descriptor

        if descriptor.startswith("@"):
            scope, sep, rest = descriptor.partition("/")
            if not sep or len(scope) < 2:
                raise ValueError(f"Invalid scoped package descriptor: {descriptor!r}")

        name, _, version = rest.partition("@")
        if not name:
            raise ValueError(f"Missing package name in descriptor: {descriptor!r}")

        version = version or self.fallback_version
        if not version:
            raise ValueError(f"Missing package version in descriptor: {descriptor!r}")

        # Frozen dataclass; parsed parts are assigned once here.
        object.__setattr__(self, "scope", scope)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "version", version)

    @classmethod
    def from_manifest(cls, manifest: Mapping) -> "ManifestId":
        """
        Build the id of an installed package from its manifest.

        The descriptor comes from the '_from' field written by the installer,
        falling back to 'name'; the manifest 'version' supplies the version
        when the descriptor has none.
        """
        descriptor = manifest.get("_from") or manifest.get("name")
        if not descriptor:
            raise ValueError("Manifest has neither '_from' nor 'name'")
        return cls(descriptor, manifest.get("version"))

    def _segments(self) -> list:
        if self.scope:
            return [self.scope, self.name, self.version]
        return [self.name, self.version]

    def scoped_name(self) -> str:
        if self.scope:
            return f"{self.scope}/{self.name}"
        return self.name

    def relative_path(self) -> str:
        """Path of the package inside a versioned store, native separators."""
        return os.path.join(*self._segments())

    def posix_path(self) -> str:
        """Same as relative_path() but always joined with '/'."""
        return posixpath.join(*self._segments())

    def full_name(self) -> str:
        return f"{self.scoped_name()}@{self.version}"

    def folder_name(self) -> str:
        """
        Single filesystem-safe segment for flat folder layouts.

        Example:
            >>> ManifestId("@foo/bar@1.0.0").folder_name()
            'foo-bar'
        """
        if self.scope:
            return f"{self.scope[1:]}-{self.name}"
        return self.name

    def __str__(self) -> str:
        return self.full_name()


__all__ = ["ManifestId"]
