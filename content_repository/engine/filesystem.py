"""
Filesystem engine for the content repository.

Presents a directory tree as a typed repository:
- Directories are fs:directory nodes whose entries are child nodes
- Regular files are fs:file nodes with an fs:content stream property
- Every node carries its stat metadata as fs:* scalar properties

Node types:
    fs:object      abstract, the thirteen stat properties
    fs:file        fs:object + fs:content
    fs:directory   fs:object, any child named anything of type fs:object

Invariants:
    - Repository paths map below the configured root and never escape it
    - fs:content exists only for regular files
    - Type definitions are created per engine instance and frozen

How to change safely:
    - Keep stat property names in sync with STAT_FIELDS
    - The write path is not implemented; mutable-class stat properties
      are declared updatable so callers can stage changes
"""

from __future__ import annotations

import io
import logging
import os
from typing import IO, Any, Dict, List, Optional

from ..config import RepositorySettings
from ..errors import ConfigError, NotFoundError
from ..paths import normalize_path, split_property_path
from ..schema import HANDLE, NodeType, PropertyType, TypeRegistry
from .base import READ_MODE, Engine, PathStatus, register_engine

logger = logging.getLogger(__name__)

FS_NAMESPACE = "http://contentment.org/content-repository/engine/fs"

CONTENT = "fs:content"

# Property name -> os.stat_result attribute
STAT_FIELDS: Dict[str, str] = {
    "fs:dev": "st_dev",
    "fs:ino": "st_ino",
    "fs:mode": "st_mode",
    "fs:nlink": "st_nlink",
    "fs:uid": "st_uid",
    "fs:gid": "st_gid",
    "fs:rdev": "st_rdev",
    "fs:size": "st_size",
    "fs:atime": "st_atime",
    "fs:mtime": "st_mtime",
    "fs:ctime": "st_ctime",
    "fs:blksize": "st_blksize",
    "fs:blocks": "st_blocks",
}

_MUTABLE_STATS = {"fs:mode", "fs:uid", "fs:gid", "fs:atime", "fs:mtime", "fs:ctime"}
_TIME_STATS = {"fs:atime", "fs:mtime", "fs:ctime"}


def build_registry() -> TypeRegistry:
    """Build the frozen type registry for a filesystem engine."""
    registry = TypeRegistry()

    registry.register_property_type(
        PropertyType(
            name="fs:scalar",
            auto_created=True,
            updatable=True,
            removable=False,
            engine_default=True,
            description="Stat field the OS allows changing",
        )
    )
    registry.register_property_type(
        PropertyType(
            name="fs:scalar-static",
            auto_created=True,
            updatable=False,
            removable=False,
            engine_default=True,
            description="Stat field fixed by the OS",
        )
    )
    registry.register_property_type(
        PropertyType(
            name="fs:handle",
            value_type=HANDLE,
            auto_created=True,
            updatable=False,
            removable=False,
            engine_default=True,
            description="File content stream",
        )
    )

    registry.register_node_type(
        NodeType(
            name="fs:object",
            abstract=True,
            child_properties={
                name: "fs:scalar" if name in _MUTABLE_STATS else "fs:scalar-static"
                for name in STAT_FIELDS
            },
            mutable=True,
        )
    )
    registry.register_node_type(
        NodeType(
            name="fs:file",
            supertypes=("fs:object",),
            child_properties={CONTENT: "fs:handle"},
            mutable=True,
        )
    )
    registry.register_node_type(
        NodeType(
            name="fs:directory",
            supertypes=("fs:object",),
            child_nodes={"*": ("fs:object",)},
            mutable=True,
        )
    )

    registry.freeze()
    return registry


@register_engine("filesystem", "FileSystem", "fs")
class FileSystemEngine(Engine):
    """Engine exposing a directory tree.

    Attributes:
        root: Absolute, canonical root directory
        encoding: Text encoding used for fs:content

    Example:
        >>> engine = FileSystemEngine(root="/srv/content")
        >>> engine.node_type_of("/").name
        'fs:directory'
        >>> engine.path_exists("/index.html/fs:content")
        <PathStatus.PROPERTY_EXISTS: 'property'>
    """

    namespaces = {"fs": FS_NAMESPACE}

    def __init__(self, root: Optional[str] = None, encoding: str = "utf-8") -> None:
        """Initialize the engine.

        Args:
            root: Directory to expose, defaults to the working directory
            encoding: Encoding for reading fs:content

        Raises:
            ConfigError: If root does not exist or is not a directory
        """
        root = os.path.realpath(os.path.abspath(root or os.curdir))
        if not os.path.exists(root):
            raise ConfigError(f"Sorry, root {root} does not exist!", root=root)
        if not os.path.isdir(root):
            raise ConfigError(f"Sorry, root {root} is not a directory!", root=root)

        super().__init__(build_registry())
        self.root = root
        self.encoding = encoding
        logger.debug(f"Filesystem engine attached at {root}")

    @classmethod
    def from_settings(cls, settings: RepositorySettings) -> FileSystemEngine:
        """Create an engine from repository settings."""
        return cls(root=settings.root, encoding=settings.encoding)

    def real_path(self, path: str) -> str:
        """Map a repository path to a filesystem path below the root."""
        relative = normalize_path(path).lstrip("/")
        if not relative:
            return self.root
        return os.path.join(self.root, *relative.split("/"))

    def _check_real_path(self, real_path: str, path: str) -> None:
        if not os.path.lexists(real_path):
            raise NotFoundError(f'no file found at path "{path}"', path)

    def path_exists(self, path: str) -> PathStatus:
        if os.path.lexists(self.real_path(path)):
            return PathStatus.NODE_EXISTS

        node_path, name = split_property_path(path)
        if name != CONTENT and name not in STAT_FIELDS:
            return PathStatus.NOT_EXISTS

        node_real_path = self.real_path(node_path)

        # fs:content exists for regular files only, stat properties for any node
        if name == CONTENT:
            exists = os.path.isfile(node_real_path)
        else:
            exists = os.path.lexists(node_real_path)
        return PathStatus.PROPERTY_EXISTS if exists else PathStatus.NOT_EXISTS

    def node_type_of(self, path: str) -> NodeType:
        real_path = self.real_path(path)
        self._check_real_path(real_path, path)

        if os.path.isdir(real_path):
            type_name = "fs:directory"
        elif os.path.isfile(real_path):
            type_name = "fs:file"
        else:
            type_name = "fs:object"
        return self.registry.node_type(type_name)

    def nodes_in(self, path: str) -> List[str]:
        real_path = self.real_path(path)
        self._check_real_path(real_path, path)

        if not os.path.isdir(real_path):
            return []
        return sorted(os.listdir(real_path))

    def properties_in(self, path: str) -> List[str]:
        real_path = self.real_path(path)
        self._check_real_path(real_path, path)

        properties = list(STAT_FIELDS)
        if os.path.isfile(real_path):
            properties.append(CONTENT)
        return properties

    def _stat_value(self, real_path: str, name: str) -> Any:
        # dangling symlinks are nodes too, report the link itself
        st = os.stat(real_path) if os.path.exists(real_path) else os.lstat(real_path)
        value = getattr(st, STAT_FIELDS[name], 0)
        if name in _TIME_STATS:
            return int(value)
        return value

    def _open_content(self, node_path: str, real_path: str) -> IO[str]:
        if not os.path.isfile(real_path):
            raise NotFoundError(
                f'no "{CONTENT}" property associated with node at "{node_path}"',
                normalize_path(node_path, CONTENT),
            )
        return open(real_path, "r", encoding=self.encoding, errors="surrogateescape", newline="")

    def _resolve_property(self, path: str) -> tuple[str, str, str]:
        node_path, name = split_property_path(path)
        real_path = self.real_path(node_path)
        self._check_real_path(real_path, node_path)
        if name != CONTENT and name not in STAT_FIELDS:
            raise NotFoundError(
                f'no "{name}" property associated with node at "{node_path}"', path
            )
        return node_path, name, real_path

    def get_scalar(self, path: str) -> Any:
        node_path, name, real_path = self._resolve_property(path)

        if name == CONTENT:
            with self._open_content(node_path, real_path) as handle:
                return handle.read()
        return self._stat_value(real_path, name)

    def get_handle(self, path: str, mode: Optional[str] = READ_MODE) -> IO[Any]:
        self.check_mode(mode, path)
        node_path, name, real_path = self._resolve_property(path)

        if name == CONTENT:
            return self._open_content(node_path, real_path)
        return io.StringIO(str(self._stat_value(real_path, name)))
